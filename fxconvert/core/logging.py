import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
user_id_ctx: ContextVar[str | None] = ContextVar("user_id", default=None)

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.request_id = request_id_ctx.get() or "-"
        record.user_id = user_id_ctx.get() or "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        base: Dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created)),
            "request_id": getattr(record, "request_id", "-"),
            "user_id": getattr(record, "user_id", "-"),
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


def _resolve_level(debug: bool, level_name: Optional[str]) -> int:
    if level_name:
        level = logging.getLevelName(level_name.upper())
        if isinstance(level, int):
            return level
        raise ValueError(f"Unknown log level '{level_name}'")
    return logging.DEBUG if debug else logging.INFO


def _make_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler._fxconvert_owned = True  # type: ignore[attr-defined]
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JsonFormatter())
    return handler


def init_logging(
    debug: bool = False,
    level_name: Optional[str] = None,
    log_dir: Optional[Path] = None,
) -> None:
    root = logging.getLogger()
    # replace only our own handlers; foreign ones (pytest, uvicorn) stay
    for h in [h for h in root.handlers if getattr(h, "_fxconvert_owned", False)]:
        root.removeHandler(h)
        h.close()
    level = _resolve_level(debug, level_name)
    root.setLevel(level)

    root.addHandler(_make_handler(logging.StreamHandler(sys.stdout), level))
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        # error.log keeps failures only; combined.log mirrors stdout
        for filename, file_level in (("error.log", logging.ERROR), ("combined.log", level)):
            file_handler = RotatingFileHandler(
                log_dir / filename,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
            root.addHandler(_make_handler(file_handler, file_level))


async def request_context_middleware(request, call_next):  # type: ignore
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    token = request_id_ctx.set(rid)
    user_token = user_id_ctx.set(None)
    logger = logging.getLogger("fxconvert.request")
    logger.debug("request start %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        logger.debug("request end %s", response.status_code)
        return response
    finally:
        user_id_ctx.reset(user_token)
        request_id_ctx.reset(token)

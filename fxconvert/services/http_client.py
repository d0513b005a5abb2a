from __future__ import annotations

"""Lightweight HTTP client util for upstream JSON endpoints.

Uses stdlib urllib: GET JSON with a hard timeout and optional retries.
Every failure mode (connection error, timeout, HTTP status >= 400, invalid
JSON) surfaces as a single HttpError so callers treat the upstream uniformly.
"""
import json
import time
import urllib.request
from typing import Any, Dict, Optional

USER_AGENT = "fxconvert/1.0"


class HttpError(Exception):
    pass


def get_json(
    url: str, *, timeout: float = 5.0, retries: int = 0, backoff: float = 0.5
) -> Dict[str, Any]:
    last_err: Optional[Exception] = None
    request = urllib.request.Request(
        url, headers={"Accept": "application/json", "User-Agent": USER_AGENT}
    )
    for attempt in range(retries + 1):
        try:
            with urllib.request.urlopen(request, timeout=timeout) as resp:  # nosec B310
                if resp.status >= 400:
                    raise HttpError(f"HTTP {resp.status} for {url}")
                data = resp.read()
                payload = json.loads(data.decode("utf-8"))
                if not isinstance(payload, dict):
                    raise HttpError(f"Expected a JSON object from {url}")
                return payload
        except (
            OSError,  # URLError, HTTPError, socket timeouts, resets
            HttpError,
            ValueError,
        ) as e:  # ValueError for JSON / UTF-8 decode
            last_err = e
            if attempt == retries:
                break
            time.sleep(backoff * (2**attempt))
    raise HttpError(f"Failed to fetch JSON from {url}: {last_err}")

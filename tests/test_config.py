import pytest

from fxconvert.core.config import Settings


def test_defaults(tmp_path):
    s = Settings(data_dir=tmp_path)
    s.init_post_load()
    assert s.db_path == tmp_path / "app.sqlite3"
    assert s.rates_cache_ttl_seconds == 300
    assert s.quota_window_seconds == 86400
    assert (s.quota_weekday_limit, s.quota_weekend_limit) == (100, 200)


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("RATE_SOURCE", "STATIC")
    monkeypatch.setenv("QUOTA_WEEKDAY_LIMIT", "7")
    s = Settings(data_dir=tmp_path)
    s.init_post_load()
    assert s.rate_source == "static"
    assert s.quota_weekday_limit == 7


def test_rejects_unknown_rate_source(tmp_path):
    s = Settings(data_dir=tmp_path, rate_source="ouija")
    with pytest.raises(ValueError):
        s.init_post_load()

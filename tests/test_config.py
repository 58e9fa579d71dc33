import pytest

from seller_analytics.config import AnalyticsConfig, AppConfig, DataSourceConfig


def test_defaults(monkeypatch):
    for name in ("ANALYTICS_DEFAULT_RANGE", "ANALYTICS_TIMEZONE", "DATA_SOURCE", "DATA_PATH", "DATA_SEED"):
        monkeypatch.delenv(name, raising=False)
    config = AppConfig.from_env()
    assert config.analytics.default_range == "day"
    assert config.analytics.timezone == "UTC"
    assert config.data_source.kind == "mock"
    assert config.data_source.seed == 2024


def test_from_env_overrides(monkeypatch):
    monkeypatch.setenv("ANALYTICS_DEFAULT_RANGE", "WEEK")
    monkeypatch.setenv("ANALYTICS_TIMEZONE", "Africa/Lagos")
    monkeypatch.setenv("DATA_SOURCE", "json")
    monkeypatch.setenv("DATA_PATH", "/tmp/export.json")
    monkeypatch.setenv("DATA_SEED", "9")

    config = AppConfig.from_env()

    assert config.analytics.default_range == "week"
    assert str(config.analytics.tzinfo) == "Africa/Lagos"
    assert config.data_source.kind == "json"
    assert config.data_source.path == "/tmp/export.json"
    assert config.data_source.seed == 9


def test_invalid_values_are_rejected():
    with pytest.raises(ValueError):
        AnalyticsConfig(default_range="quarter")
    with pytest.raises(ValueError):
        AnalyticsConfig(timezone="Mars/Olympus")
    with pytest.raises(ValueError):
        DataSourceConfig(kind="json")
    with pytest.raises(ValueError):
        DataSourceConfig(kind="postgres")

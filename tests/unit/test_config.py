import pytest

from eventsource_session._config import ENV_HTTP_DEBUG, ENV_URL, EndpointConfig, http_debug_enabled


def test_from_env_or_value_uses_explicit_value(monkeypatch):
    # Aunque el entorno tenga una URL, el valor explícito debe prevalecer.
    monkeypatch.setenv(ENV_URL, "https://env.example.com/stream")

    cfg = EndpointConfig.from_env_or_value("https://explicit.example.com/stream")

    assert isinstance(cfg, EndpointConfig)
    assert cfg.url == "https://explicit.example.com/stream"


def test_from_env_or_value_reads_from_env(monkeypatch):
    monkeypatch.setenv(ENV_URL, "http://localhost:8080/events")

    cfg = EndpointConfig.from_env_or_value(None)

    assert cfg.url == "http://localhost:8080/events"


def test_from_env_or_value_raises_if_missing(monkeypatch):
    monkeypatch.delenv(ENV_URL, raising=False)

    with pytest.raises(ValueError) as exc:
        EndpointConfig.from_env_or_value(None)

    assert "Stream URL missing" in str(exc.value)


@pytest.mark.parametrize("url", ["ftp://example.com/feed", "not a url", "/relative/path"])
def test_from_env_or_value_rejects_non_http(url):
    with pytest.raises(ValueError):
        EndpointConfig.from_env_or_value(url)


@pytest.mark.parametrize("value,expected", [("1", True), ("TRUE", True), ("on", True), ("", False), ("0", False)])
def test_http_debug_flag(monkeypatch, value, expected):
    monkeypatch.setenv(ENV_HTTP_DEBUG, value)
    assert http_debug_enabled() is expected

from __future__ import annotations

import pytest

from collab_fetch.config import Config
from collab_fetch.errors import ConfigurationError
from collab_fetch.retry import RetryPolicy
from collab_fetch.retry_filter import DEFAULT_RETRY_FILTER, no_retry

pytestmark = pytest.mark.unit


def test_defaults() -> None:
    config = Config()

    assert config.base_url is None
    assert config.timeout_s is None
    assert config.retry == RetryPolicy()
    assert config.retry_filter is DEFAULT_RETRY_FILTER


def test_config_is_frozen() -> None:
    config = Config()
    with pytest.raises(AttributeError):
        config.timeout_s = 3.0  # type: ignore[misc]


@pytest.mark.parametrize("timeout", [0, -1.5])
def test_rejects_non_positive_timeout(timeout: float) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        Config(timeout_s=timeout)
    assert exc_info.value.hint


def test_rejects_non_http_base_url() -> None:
    with pytest.raises(ConfigurationError):
        Config(base_url="ftp://storage.example.com")


def test_rejects_non_callable_filter() -> None:
    with pytest.raises(ConfigurationError):
        Config(retry_filter=[400, 404])  # type: ignore[arg-type]


def test_from_env_reads_variables(monkeypatch) -> None:
    monkeypatch.setenv("COLLAB_FETCH_BASE_URL", "https://storage.example.com/api/")
    monkeypatch.setenv("COLLAB_FETCH_TIMEOUT_S", "2.5")
    monkeypatch.setenv("COLLAB_FETCH_MAX_ATTEMPTS", "5")

    config = Config.from_env()

    assert config.base_url == "https://storage.example.com/api/"
    assert config.timeout_s == 2.5
    assert config.retry.max_attempts == 5


def test_from_env_overrides_win(monkeypatch) -> None:
    monkeypatch.setenv("COLLAB_FETCH_TIMEOUT_S", "2.5")
    filt = no_retry()

    config = Config.from_env(timeout_s=9.0, retry_filter=filt)

    assert config.timeout_s == 9.0
    assert config.retry_filter is filt


@pytest.mark.parametrize(
    ("var", "value"),
    [
        ("COLLAB_FETCH_TIMEOUT_S", "soon"),
        ("COLLAB_FETCH_MAX_ATTEMPTS", "many"),
        ("COLLAB_FETCH_MAX_ATTEMPTS", "0"),
    ],
)
def test_from_env_bad_values_raise_configuration_error(
    monkeypatch, var: str, value: str
) -> None:
    monkeypatch.setenv(var, value)
    with pytest.raises(ConfigurationError) as exc_info:
        Config.from_env()
    assert var in str(exc_info.value)


def test_repr_is_compact() -> None:
    text = repr(Config(base_url="https://h.example.com", timeout_s=1.0))
    assert text == "Config(base_url='https://h.example.com', timeout_s=1.0, max_attempts=3)"

"""Configuration: frozen Config with environment resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

from collab_fetch.errors import ConfigurationError
from collab_fetch.retry import RetryPolicy
from collab_fetch.retry_filter import DEFAULT_RETRY_FILTER, RetryFilter

_ENV_BASE_URL = "COLLAB_FETCH_BASE_URL"
_ENV_TIMEOUT_S = "COLLAB_FETCH_TIMEOUT_S"
_ENV_MAX_ATTEMPTS = "COLLAB_FETCH_MAX_ATTEMPTS"

DEFAULT_USER_AGENT = "collab-fetch"


@dataclass(frozen=True)
class Config:
    """Immutable client configuration.

    ``timeout_s=None`` means no transport timeout: in-flight requests are
    not cancellable from here, callers wrap them externally if needed.
    The retry filter is explicit so no process-wide policy is hidden.

    Example:
        config = Config(base_url="https://storage.example.com/api/v2/")
    """

    base_url: str | None = None
    timeout_s: float | None = None
    user_agent: str = DEFAULT_USER_AGENT
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    retry_filter: RetryFilter = DEFAULT_RETRY_FILTER

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0 or None, got {self.timeout_s}",
                hint="Use None to disable the transport timeout.",
            )
        if self.base_url is not None and not self.base_url.startswith(
            ("http://", "https://")
        ):
            raise ConfigurationError(
                f"base_url must be an http(s) URL, got {self.base_url!r}",
                hint=f"Set {_ENV_BASE_URL} or pass base_url='https://...'.",
            )
        if not callable(self.retry_filter):
            raise ConfigurationError(
                "retry_filter must be callable",
                hint="Use no_retry(), allow_list([...]) or block_list([...]).",
            )

    @classmethod
    def from_env(cls, **overrides: object) -> Config:
        """Build a Config from ``COLLAB_FETCH_*`` variables (and a .env file).

        Keyword overrides win over the environment.
        """
        load_dotenv()
        values: dict[str, object] = {}

        base_url = os.environ.get(_ENV_BASE_URL)
        if base_url:
            values["base_url"] = base_url

        raw_timeout = os.environ.get(_ENV_TIMEOUT_S)
        if raw_timeout:
            try:
                values["timeout_s"] = float(raw_timeout)
            except ValueError as exc:
                raise ConfigurationError(
                    f"{_ENV_TIMEOUT_S} must be a number, got {raw_timeout!r}",
                    hint="Seconds as a float, e.g. 30 or 2.5.",
                ) from exc

        raw_attempts = os.environ.get(_ENV_MAX_ATTEMPTS)
        if raw_attempts:
            try:
                values["retry"] = RetryPolicy(max_attempts=int(raw_attempts))
            except ValueError as exc:
                raise ConfigurationError(
                    f"{_ENV_MAX_ATTEMPTS} must be an integer >= 1, got {raw_attempts!r}",
                    hint="Use 1 to disable the outer retry loop.",
                ) from exc

        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]

    def __repr__(self) -> str:
        """Return a compact, developer-friendly representation."""
        return (
            f"Config(base_url={self.base_url!r}, timeout_s={self.timeout_s}, "
            f"max_attempts={self.retry.max_attempts})"
        )

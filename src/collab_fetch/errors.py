"""Exception hierarchy for collab_fetch."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from collab_fetch._http import AUTH_FAILURE_STATUS_CODES

if TYPE_CHECKING:
    from collections.abc import Iterator


class CollabFetchError(Exception):
    """Base exception for all collab_fetch errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(CollabFetchError):
    """Configuration validation or resolution failed."""


class ErrorKind(Enum):
    """Where a network failure was detected.

    The numeric ``status_code`` stays the primary telemetry signal; the kind
    tells callers which layer produced it without decoding synthetic codes.
    """

    TRANSPORT = "transport"
    MALFORMED = "malformed"
    SERVER_STATUS = "server_status"
    AUTH = "auth"


class NetworkError(CollabFetchError):
    """A classified request failure.

    Carries everything a retry loop or telemetry sink needs: the status code
    (real or synthetic), whether the request may be retried, and an optional
    server-provided retry-after hint. Instances are frozen once built.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        can_retry: bool,
        retry_after_s: float | None = None,
        details: Any = None,
        kind: ErrorKind | None = None,
    ) -> None:
        super().__init__(message)
        if kind is None:
            kind = (
                ErrorKind.AUTH
                if status_code in AUTH_FAILURE_STATUS_CODES
                else ErrorKind.SERVER_STATUS
            )
        fields = {
            "status_code": status_code,
            "can_retry": bool(can_retry),
            "retry_after_s": retry_after_s,
            "details": details,
            "kind": kind,
        }
        for name, value in fields.items():
            object.__setattr__(self, name, value)
        object.__setattr__(self, "_frozen", True)

    status_code: int
    can_retry: bool
    retry_after_s: float | None
    details: Any
    kind: ErrorKind

    def __setattr__(self, name: str, value: Any) -> None:
        # Exception machinery (tracebacks, chaining) still needs to write dunders.
        if getattr(self, "_frozen", False) and not name.startswith("__"):
            raise AttributeError(f"NetworkError is immutable; cannot set {name!r}")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"NetworkError is immutable; cannot delete {name!r}")

    def __reduce__(self) -> tuple[Any, tuple[str, dict[str, Any]]]:
        """Rebuild through the keyword-only constructor (copy, pickle)."""
        return (
            _rebuild_network_error,
            (
                str(self),
                {
                    "status_code": self.status_code,
                    "can_retry": self.can_retry,
                    "retry_after_s": self.retry_after_s,
                    "details": self.details,
                    "kind": self.kind,
                },
            ),
        )

    @property
    def is_auth_failure(self) -> bool:
        return self.status_code in AUTH_FAILURE_STATUS_CODES

    def __repr__(self) -> str:
        return (
            f"NetworkError({str(self)!r}, status_code={self.status_code}, "
            f"can_retry={self.can_retry}, retry_after_s={self.retry_after_s}, "
            f"kind={self.kind.value})"
        )


def walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)


def find_network_error(exc: BaseException) -> NetworkError | None:
    """Return the first NetworkError in *exc*'s chain, if any."""
    for e in walk_exception_chain(exc):
        if isinstance(e, NetworkError):
            return e
    return None


def _rebuild_network_error(message: str, fields: dict[str, Any]) -> NetworkError:
    return NetworkError(message, **fields)

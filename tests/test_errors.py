from __future__ import annotations

import copy
import pickle

import pytest

from collab_fetch.errors import (
    CollabFetchError,
    ConfigurationError,
    ErrorKind,
    NetworkError,
    find_network_error,
    walk_exception_chain,
)

pytestmark = pytest.mark.unit


def test_network_error_structured_metadata() -> None:
    err = NetworkError(
        "boom",
        status_code=503,
        can_retry=True,
        retry_after_s=2.0,
        details={"raw": 1},
    )

    assert str(err) == "boom"
    assert err.status_code == 503
    assert err.can_retry is True
    assert err.retry_after_s == 2.0
    assert err.details == {"raw": 1}
    assert err.kind is ErrorKind.SERVER_STATUS
    assert err.is_auth_failure is False


def test_network_error_defaults() -> None:
    err = NetworkError("fail", status_code=404, can_retry=False)
    assert err.retry_after_s is None
    assert err.details is None
    assert err.hint is None


@pytest.mark.parametrize("status", [401, 403])
def test_auth_status_defaults_to_auth_kind(status: int) -> None:
    err = NetworkError("denied", status_code=status, can_retry=True)
    assert err.kind is ErrorKind.AUTH
    assert err.is_auth_failure is True


def test_explicit_kind_wins_over_status() -> None:
    err = NetworkError(
        "truncated", status_code=400, can_retry=True, kind=ErrorKind.MALFORMED
    )
    assert err.kind is ErrorKind.MALFORMED


def test_network_error_is_immutable() -> None:
    err = NetworkError("x", status_code=500, can_retry=True)

    with pytest.raises(AttributeError):
        err.can_retry = False  # type: ignore[misc]
    with pytest.raises(AttributeError):
        del err.status_code

    assert err.can_retry is True


def test_network_error_can_be_raised_and_chained() -> None:
    with pytest.raises(NetworkError) as exc_info:
        try:
            raise OSError("reset")
        except OSError as cause:
            raise NetworkError("wrapped", status_code=709, can_retry=True) from cause

    assert isinstance(exc_info.value.__cause__, OSError)


def test_subclass_hierarchy() -> None:
    assert issubclass(NetworkError, CollabFetchError)
    assert issubclass(ConfigurationError, CollabFetchError)
    err = ConfigurationError("bad", hint="fix it")
    assert err.hint == "fix it"


def test_find_network_error_walks_causes() -> None:
    inner = NetworkError("inner", status_code=401, can_retry=True)
    outer = RuntimeError("outer")
    outer.__cause__ = inner

    assert find_network_error(outer) is inner
    assert find_network_error(RuntimeError("plain")) is None


def test_walk_exception_chain_survives_cycles() -> None:
    a = ValueError("a")
    b = ValueError("b")
    a.__context__ = b
    b.__context__ = a

    assert list(walk_exception_chain(a)) == [a, b]


def test_network_error_survives_copy_and_pickle() -> None:
    err = NetworkError(
        "throttled",
        status_code=429,
        can_retry=True,
        retry_after_s=3.0,
        details={"code": 429},
        kind=ErrorKind.SERVER_STATUS,
    )

    for clone in (copy.copy(err), copy.deepcopy(err), pickle.loads(pickle.dumps(err))):
        assert clone is not err
        assert str(clone) == "throttled"
        assert clone.status_code == 429
        assert clone.can_retry is True
        assert clone.retry_after_s == 3.0
        assert clone.details == {"code": 429}
        assert clone.kind is ErrorKind.SERVER_STATUS
        with pytest.raises(AttributeError):
            clone.status_code = 500  # type: ignore[misc]

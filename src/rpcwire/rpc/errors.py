"""
Error model: closed set of error codes, HTTP status mapping and the wire form.
Errors are exceptions (raise them from service methods) and values (sent as {code, msg, meta}).
"""
from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class ErrorCode(str, Enum):
    """Error kinds understood by server and client. Each maps to exactly one HTTP status."""

    CANCELED = "canceled"
    UNKNOWN = "unknown"
    INVALID_ARGUMENT = "invalid_argument"
    MALFORMED = "malformed"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    NOT_FOUND = "not_found"
    BAD_ROUTE = "bad_route"
    ALREADY_EXISTS = "already_exists"
    PERMISSION_DENIED = "permission_denied"
    UNAUTHENTICATED = "unauthenticated"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    FAILED_PRECONDITION = "failed_precondition"
    ABORTED = "aborted"
    OUT_OF_RANGE = "out_of_range"
    UNIMPLEMENTED = "unimplemented"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"
    DATA_LOSS = "dataloss"


_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.CANCELED: 408,
    ErrorCode.UNKNOWN: 500,
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.MALFORMED: 400,
    ErrorCode.DEADLINE_EXCEEDED: 408,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.BAD_ROUTE: 404,
    ErrorCode.ALREADY_EXISTS: 409,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.RESOURCE_EXHAUSTED: 429,
    ErrorCode.FAILED_PRECONDITION: 412,
    ErrorCode.ABORTED: 409,
    ErrorCode.OUT_OF_RANGE: 400,
    ErrorCode.UNIMPLEMENTED: 501,
    ErrorCode.INTERNAL: 500,
    ErrorCode.UNAVAILABLE: 503,
    ErrorCode.DATA_LOSS: 500,
}


def is_valid_error_code(code: Any) -> bool:
    """True if code (enum member or its string value) belongs to ErrorCode."""
    if isinstance(code, ErrorCode):
        return True
    try:
        ErrorCode(code)
    except ValueError:
        return False
    return True


def status_for(code: ErrorCode | str) -> int:
    """HTTP status for an error code. Anything unrecognized maps to 500."""
    try:
        return _HTTP_STATUS[ErrorCode(code)]
    except ValueError:
        return 500


class RpcError(Exception):
    """
    RPC failure with a code, a human message and string metadata.
    Immutable: with_meta() returns a new error. `cause` is kept for logs only, never sent.
    """

    def __init__(
        self,
        code: ErrorCode | str,
        msg: str,
        meta: Mapping[str, str] | None = None,
        *,
        cause: BaseException | None = None,
    ) -> None:
        self._code = ErrorCode(code)
        self._msg = msg
        self._meta = MappingProxyType({str(k): str(v) for k, v in (meta or {}).items()})
        self._cause = cause
        super().__init__(f"[{self._code.value}] {msg}")
        if cause is not None:
            self.__cause__ = cause

    @property
    def code(self) -> ErrorCode:
        return self._code

    @property
    def msg(self) -> str:
        return self._msg

    @property
    def meta(self) -> Mapping[str, str]:
        return self._meta

    @property
    def cause(self) -> BaseException | None:
        return self._cause

    @property
    def http_status(self) -> int:
        return status_for(self._code)

    def with_meta(self, key: str, value: str) -> RpcError:
        """Copy of this error with one more metadata entry."""
        meta = dict(self._meta)
        meta[key] = value
        return RpcError(self._code, self._msg, meta, cause=self._cause)

    def to_dict(self) -> dict[str, Any]:
        """Wire form: {"code", "msg", "meta"}."""
        return {"code": self._code.value, "msg": self._msg, "meta": dict(self._meta)}

    @classmethod
    def from_dict(cls, data: Any) -> RpcError:
        """
        Rebuild an error from its wire form.
        A payload with an unknown code becomes an internal error that keeps the payload in meta.
        """
        if not isinstance(data, dict) or not isinstance(data.get("code"), str):
            raise ValueError("error payload must be an object with a string 'code'")
        code = data["code"]
        meta = data.get("meta") or {}
        if not isinstance(meta, dict):
            meta = {}
        if not is_valid_error_code(code):
            return internal_error(f"invalid type returned from server error response: {code}").with_meta(
                "body", repr(data)
            )
        return cls(code, str(data.get("msg", "")), meta)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RpcError):
            return NotImplemented
        return (self._code, self._msg, dict(self._meta)) == (other._code, other._msg, dict(other._meta))

    def __hash__(self) -> int:
        return hash((self._code, self._msg, tuple(sorted(self._meta.items()))))

    def __repr__(self) -> str:
        return f"RpcError(code={self._code.value!r}, msg={self._msg!r}, meta={dict(self._meta)!r})"


def _invalid_code(
    code: Any, msg: str, meta: Mapping[str, str] | None, cause: BaseException | None = None
) -> RpcError:
    extra = dict(meta or {})
    extra.update({"invalid_code": str(code), "original_msg": msg})
    return RpcError(ErrorCode.INTERNAL, f"invalid error type {code}", extra, cause=cause)


def new_error(code: ErrorCode | str, msg: str, meta: Mapping[str, str] | None = None) -> RpcError:
    """
    Error with `code`, `msg` and `meta`. Never raises: a code outside ErrorCode gives an internal error
    that keeps the rejected code and message in meta.
    """
    if not is_valid_error_code(code):
        return _invalid_code(code, msg, meta)
    return RpcError(code, msg, meta)


def wrap(cause: BaseException, code: ErrorCode | str, msg: str) -> RpcError:
    """Error with `code`/`msg` on the wire; `cause` stays local (logging, __cause__)."""
    if not is_valid_error_code(code):
        return _invalid_code(code, msg, None, cause)
    return RpcError(code, msg, cause=cause)


def invalid_argument_error(argument: str, validation: str) -> RpcError:
    """invalid_argument for one argument, e.g. ("inches", "I can't make a hat that small!")."""
    return RpcError(ErrorCode.INVALID_ARGUMENT, f"{argument} {validation}", {"argument": argument})


def required_argument_error(argument: str) -> RpcError:
    return invalid_argument_error(argument, "is required")


def not_found_error(msg: str) -> RpcError:
    return RpcError(ErrorCode.NOT_FOUND, msg)


def internal_error(msg: str) -> RpcError:
    return RpcError(ErrorCode.INTERNAL, msg)


def internal_error_with(cause: BaseException) -> RpcError:
    """Internal error carrying the text of `cause`; meta["cause"] names its class."""
    return RpcError(ErrorCode.INTERNAL, str(cause) or type(cause).__name__, {"cause": type(cause).__name__}, cause=cause)


def error_from_intermediary(status: int, body: str, location: str | None = None) -> RpcError:
    """
    Error for a non-2xx response that did not come from an rpcwire server (proxy, load balancer).
    The code is inferred from the HTTP status.
    """
    if 300 <= status < 400:
        msg = "unexpected HTTP status code {} received, Location={!r}".format(status, location or "")
        code = ErrorCode.INTERNAL
        meta = {"location": location or ""}
    else:
        msg = f"Error from intermediary with HTTP status code {status}"
        if status == 400:
            code = ErrorCode.INTERNAL
        elif status == 401:
            code = ErrorCode.UNAUTHENTICATED
        elif status == 403:
            code = ErrorCode.PERMISSION_DENIED
        elif status == 404:
            code = ErrorCode.BAD_ROUTE
        elif status == 429:
            code = ErrorCode.RESOURCE_EXHAUSTED
        elif status in (502, 503, 504):
            code = ErrorCode.UNAVAILABLE
        else:
            code = ErrorCode.UNKNOWN
        meta = {}
    meta.update(
        {
            "http_error_from_intermediary": "true",
            "status_code": str(status),
            "body": body,
        }
    )
    return RpcError(code, msg, meta)

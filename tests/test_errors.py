import pytest

from rpcwire.rpc.errors import (
    ErrorCode,
    RpcError,
    error_from_intermediary,
    internal_error_with,
    invalid_argument_error,
    is_valid_error_code,
    new_error,
    required_argument_error,
    status_for,
    wrap,
)


@pytest.mark.parametrize(
    "code,status",
    [
        (ErrorCode.CANCELED, 408),
        (ErrorCode.UNKNOWN, 500),
        (ErrorCode.INVALID_ARGUMENT, 400),
        (ErrorCode.MALFORMED, 400),
        (ErrorCode.DEADLINE_EXCEEDED, 408),
        (ErrorCode.NOT_FOUND, 404),
        (ErrorCode.BAD_ROUTE, 404),
        (ErrorCode.ALREADY_EXISTS, 409),
        (ErrorCode.PERMISSION_DENIED, 403),
        (ErrorCode.UNAUTHENTICATED, 401),
        (ErrorCode.RESOURCE_EXHAUSTED, 429),
        (ErrorCode.FAILED_PRECONDITION, 412),
        (ErrorCode.ABORTED, 409),
        (ErrorCode.OUT_OF_RANGE, 400),
        (ErrorCode.UNIMPLEMENTED, 501),
        (ErrorCode.INTERNAL, 500),
        (ErrorCode.UNAVAILABLE, 503),
        (ErrorCode.DATA_LOSS, 500),
    ],
)
def test_status_for_every_code(code, status):
    assert status_for(code) == status
    assert status_for(code.value) == status


def test_status_for_unknown_code_is_500():
    assert status_for("teapot") == 500
    assert status_for("") == 500


def test_is_valid_error_code():
    assert is_valid_error_code("bad_route")
    assert is_valid_error_code(ErrorCode.DATA_LOSS)
    assert not is_valid_error_code("data_loss")
    assert not is_valid_error_code(None)


def test_new_error_defaults_to_empty_meta():
    err = new_error(ErrorCode.NOT_FOUND, "no such hat")
    assert err.code is ErrorCode.NOT_FOUND
    assert err.msg == "no such hat"
    assert dict(err.meta) == {}
    assert err.http_status == 404
    assert err.to_dict() == {"code": "not_found", "msg": "no such hat", "meta": {}}


def test_error_is_immutable():
    err = new_error("aborted", "try again", {"attempt": "1"})
    with pytest.raises(TypeError):
        err.meta["attempt"] = "2"  # type: ignore[index]
    with pytest.raises(AttributeError):
        err.code = ErrorCode.INTERNAL  # type: ignore[misc]

    other = err.with_meta("retry_after", "5")
    assert dict(err.meta) == {"attempt": "1"}
    assert dict(other.meta) == {"attempt": "1", "retry_after": "5"}
    assert other.code is ErrorCode.ABORTED


def test_wrap_keeps_cause_off_the_wire():
    cause = KeyError("hat-42")
    err = wrap(cause, ErrorCode.NOT_FOUND, "hat not found")
    assert err.cause is cause
    assert err.__cause__ is cause
    assert err.to_dict() == {"code": "not_found", "msg": "hat not found", "meta": {}}


def test_internal_error_with_names_the_cause():
    err = internal_error_with(ValueError("bad value"))
    assert err.code is ErrorCode.INTERNAL
    assert err.msg == "bad value"
    assert err.meta["cause"] == "ValueError"


def test_argument_errors():
    err = invalid_argument_error("inches", "I can't make a hat that small!")
    assert err.to_dict() == {
        "code": "invalid_argument",
        "msg": "inches I can't make a hat that small!",
        "meta": {"argument": "inches"},
    }
    assert required_argument_error("color").msg == "color is required"


def test_from_dict_rebuilds_equal_error():
    original = new_error(ErrorCode.PERMISSION_DENIED, "no hats for you", {"user": "u1"})
    assert RpcError.from_dict(original.to_dict()) == original
    assert RpcError.from_dict({"code": "unavailable", "msg": "later"}).meta == {}


def test_from_dict_with_unknown_code_is_internal():
    err = RpcError.from_dict({"code": "teapot", "msg": "short and stout"})
    assert err.code is ErrorCode.INTERNAL
    assert "teapot" in err.msg
    assert "short and stout" in err.meta["body"]


def test_from_dict_rejects_non_error_payloads():
    with pytest.raises(ValueError):
        RpcError.from_dict(["not", "an", "object"])
    with pytest.raises(ValueError):
        RpcError.from_dict({"msg": "no code"})


@pytest.mark.parametrize(
    "status,code",
    [
        (400, ErrorCode.INTERNAL),
        (401, ErrorCode.UNAUTHENTICATED),
        (403, ErrorCode.PERMISSION_DENIED),
        (404, ErrorCode.BAD_ROUTE),
        (429, ErrorCode.RESOURCE_EXHAUSTED),
        (502, ErrorCode.UNAVAILABLE),
        (503, ErrorCode.UNAVAILABLE),
        (504, ErrorCode.UNAVAILABLE),
        (500, ErrorCode.UNKNOWN),
        (418, ErrorCode.UNKNOWN),
    ],
)
def test_error_from_intermediary_status_mapping(status, code):
    err = error_from_intermediary(status, "<html>oops</html>")
    assert err.code is code
    assert err.meta["http_error_from_intermediary"] == "true"
    assert err.meta["status_code"] == str(status)
    assert err.meta["body"] == "<html>oops</html>"


def test_error_from_intermediary_redirect():
    err = error_from_intermediary(302, "", location="http://elsewhere/")
    assert err.code is ErrorCode.INTERNAL
    assert err.meta["location"] == "http://elsewhere/"
    assert "302" in err.msg


def test_new_error_with_unknown_code_is_internal():
    err = new_error("not-a-code", "boom", {"hat": "7"})
    assert err.code is ErrorCode.INTERNAL
    assert err.msg == "invalid error type not-a-code"
    assert dict(err.meta) == {"hat": "7", "invalid_code": "not-a-code", "original_msg": "boom"}
    assert err.http_status == 500


def test_wrap_with_unknown_code_is_internal():
    cause = ValueError("x")
    err = wrap(cause, "bogus", "boom")
    assert err.code is ErrorCode.INTERNAL
    assert err.meta["invalid_code"] == "bogus"
    assert err.cause is cause

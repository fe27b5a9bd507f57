"""Request builders and a hook recorder used across the test suite."""
from typing import Optional

from rpcwire.core.request import Request
from rpcwire.rpc.hooks import ServerHooks

HAT_PATH = "/twirp/example.Haberdasher/MakeHat"


def post(
    body: bytes,
    content_type: Optional[str] = "application/json",
    path: str = HAT_PATH,
    method: str = "POST",
    **headers: str,
) -> Request:
    all_headers = {k.replace("_", "-"): v for k, v in headers.items()}
    if content_type is not None:
        all_headers["Content-Type"] = content_type
    return Request(body, method, path=path, headers=all_headers)


class Recorder:
    """Collects hook calls as (slot, detail) tuples; detail is the method name or the error code."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Optional[str]]] = []
        self.contexts: list = []

    def slots(self) -> list[str]:
        return [slot for slot, _ in self.calls]

    def errors(self) -> list[str]:
        return [detail for slot, detail in self.calls if slot == "error"]

    def hooks(self) -> ServerHooks:
        def make(slot):
            def hook(ctx):
                self.calls.append((slot, ctx.method_name))
                self.contexts.append(ctx)
                return ctx

            return hook

        def error(ctx, err):
            self.calls.append(("error", err.code.value))
            self.contexts.append(ctx)
            return ctx

        return ServerHooks(
            request_received=make("request_received"),
            request_routed=make("request_routed"),
            response_prepared=make("response_prepared"),
            response_sent=make("response_sent"),
            error=error,
        )

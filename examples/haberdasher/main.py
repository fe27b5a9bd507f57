"""
Haberdasher server: Application + RpcModule with a logging hook.
To run: rpcwire serve haberdasher.main:app --app-dir examples
Then: rpcwire call http://localhost:8000 example.Haberdasher/MakeHat -d '{"inches": 12}'
"""
import logging
import time

from rpcwire import Application, RpcModule, ServerConfig, ServerHooks
from rpcwire.core.context import RequestContext
from rpcwire.rpc.errors import RpcError

from .service import haberdasher_descriptor

logger = logging.getLogger("haberdasher")


def _start(ctx: RequestContext) -> RequestContext:
    return ctx.set("started_at", time.monotonic())


def _sent(ctx: RequestContext) -> None:
    elapsed_ms = (time.monotonic() - ctx["started_at"]) * 1000
    logger.info("%s.%s -> %s in %.1fms", ctx.service_name, ctx.method_name, ctx.status_code, elapsed_ms)


def _error(ctx: RequestContext, err: RpcError) -> None:
    logger.warning("%s -> %s %s: %s", ctx.path, ctx.status_code, err.code.value, err.msg)


timing_hooks = ServerHooks(request_received=_start, response_sent=_sent, error=_error)

app = Application(ServerConfig.from_env())
app.register(RpcModule().server(haberdasher_descriptor()).hooks(timing_hooks))

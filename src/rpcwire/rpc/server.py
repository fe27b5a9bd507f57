"""
Server: routes POST {prefix}/{package.Service}/{Method} to a MethodBinding and drives
decode -> invoke -> encode, firing hooks at each stage. Failures are answered with a structured error
({code, msg, meta}) in the request's encoding, or JSON when the encoding was never resolved.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Iterable

from rpcwire.core.config import ServerConfig
from rpcwire.core.context import (
    CODEC,
    HTTP_METHOD,
    INBOUND_HEADERS,
    METHOD_NAME,
    PACKAGE_NAME,
    PATH,
    SERVICE_NAME,
    STATUS_CODE,
    RequestContext,
)
from rpcwire.core.request import Request
from rpcwire.core.responses import Response
from rpcwire.rpc.codecs import CodecRegistry, JsonCodec, ProtobufCodec
from rpcwire.rpc.descriptor import MethodBinding, ServiceDescriptor
from rpcwire.rpc.errors import (
    ErrorCode,
    RpcError,
    internal_error_with,
    new_error,
    status_for,
    wrap,
)
from rpcwire.rpc.hooks import (
    PREPARED,
    RECEIVED,
    ROUTED,
    SENT,
    HookChain,
    ServerHooks,
    advance_context,
    chain_hooks,
)
from rpcwire.rpc.protocol import Codec, ContextSource

logger = logging.getLogger("rpcwire.server")

Writer = Callable[[Response], Awaitable[None]]


def _bad_route(msg: str, request: Request) -> RpcError:
    return new_error(ErrorCode.BAD_ROUTE, msg, {"twirp_invalid_route": f"{request.method} {request.path}"})


def _as_chain(hooks: ServerHooks | HookChain | Iterable[ServerHooks] | None) -> HookChain:
    if hooks is None:
        return chain_hooks()
    if isinstance(hooks, HookChain):
        return hooks
    if isinstance(hooks, ServerHooks):
        return chain_hooks(hooks)
    return chain_hooks(*hooks)


class Server:
    """
    Request handler for one service. Holds no per-request state: descriptor, hooks and codecs
    are fixed at construction, so one instance serves concurrent requests.
    """

    def __init__(
        self,
        descriptor: ServiceDescriptor,
        hooks: ServerHooks | HookChain | Iterable[ServerHooks] | None = None,
        context_source: ContextSource | None = None,
        config: ServerConfig | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.config = config or ServerConfig()
        self.hooks = _as_chain(hooks)
        self.context_source = context_source
        self.codecs = CodecRegistry(
            (
                ProtobufCodec(),
                JsonCodec(
                    emit_defaults=self.config.json_emit_defaults,
                    camel_case=self.config.json_camel_case,
                ),
            ),
            missing=self.config.missing_content_type,
        )
        self.path_prefix = f"{self.config.prefix}/{descriptor.full_name}/"

    def __repr__(self) -> str:
        return f"Server({self.descriptor.full_name!r}, prefix={self.config.prefix!r})"

    async def handle(self, request: Request, write: Writer | None = None) -> Response:
        """
        Serve one request. `write` (optional) sends the response on the transport;
        response_sent fires after it returns. The response is also returned.
        """
        ctx = RequestContext(
            {
                SERVICE_NAME: self.descriptor.name,
                PACKAGE_NAME: self.descriptor.package,
                HTTP_METHOD: request.method,
                PATH: request.path,
                INBOUND_HEADERS: dict(request.headers),
            }
        )
        codec: Codec | None = None
        try:
            ctx = await self.hooks.fire(RECEIVED, ctx)
            binding = self._route(request)
            ctx.set(METHOD_NAME, binding.name)
            ctx = await self.hooks.fire(ROUTED, ctx)
            codec = self.codecs.select(request.content_type)
            ctx.set(CODEC, codec.name)
            value = binding.decode(request.body, codec)
            ctx = await self._apply_context_source(ctx, request)
            result = await self._invoke(binding, value, ctx)
            body = binding.encode(result, codec)
            ctx.set(STATUS_CODE, 200)
            ctx = await self.hooks.fire(PREPARED, ctx)
            response = Response(body, codec.content_type, 200, headers=ctx.response_headers)
        except RpcError as err:
            return await self._write_error(ctx, err, codec, write)
        except asyncio.CancelledError:
            await self._canceled(ctx)
            raise
        except Exception as e:
            logger.exception("unhandled failure serving %s", request.path)
            return await self._write_error(ctx, internal_error_with(e), codec, write)

        if write is not None:
            try:
                await write(response)
            except asyncio.CancelledError:
                await self._canceled(ctx)
                raise
            except Exception as e:
                await self.hooks.fire_error(ctx, wrap(e, ErrorCode.INTERNAL, "failed to write response"))
                raise
        try:
            await self.hooks.fire(SENT, ctx)
        except RpcError as err:
            # Response is already on the wire; the error only reaches the error hooks.
            await self.hooks.fire_error(ctx, err)
        return response

    def _route(self, request: Request) -> MethodBinding:
        if request.method != "POST":
            raise _bad_route(f"unsupported method {request.method} (only POST is allowed)", request)
        path = request.path
        if not path.startswith(self.path_prefix):
            raise _bad_route(f'no handler for path "{path}"', request)
        binding = self.descriptor.method(path[len(self.path_prefix):])
        if binding is None:
            raise _bad_route(f'no handler for path "{path}"', request)
        logger.debug("routed %s to %s.%s", path, self.descriptor.full_name, binding.name)
        return binding

    async def _apply_context_source(self, ctx: RequestContext, request: Request) -> RequestContext:
        if self.context_source is None:
            return ctx
        try:
            result = self.context_source(ctx, request)
            if inspect.isawaitable(result):
                result = await result
        except RpcError:
            raise
        except Exception as e:
            logger.exception("context source failed")
            raise internal_error_with(e) from e
        return advance_context(ctx, result, "context source")

    def _timeout(self, ctx: RequestContext) -> float | None:
        timeout = self.config.invoke_timeout
        if ctx.deadline is not None:
            remaining = ctx.deadline - time.monotonic()
            timeout = remaining if timeout is None else min(timeout, remaining)
        return timeout

    async def _invoke(self, binding: MethodBinding, value: Any, ctx: RequestContext) -> Any:
        timeout = self._timeout(ctx)
        if timeout is not None and timeout <= 0:
            raise new_error(ErrorCode.DEADLINE_EXCEEDED, f"deadline passed before calling {binding.name}")
        if timeout is None:
            return await self._call(binding, value, ctx)
        try:
            return await asyncio.wait_for(self._call(binding, value, ctx), timeout)
        except asyncio.TimeoutError as e:
            raise wrap(e, ErrorCode.DEADLINE_EXCEEDED, f"{binding.name} did not complete before its deadline") from e

    async def _call(self, binding: MethodBinding, value: Any, ctx: RequestContext) -> Any:
        # A TimeoutError raised by the method itself is internal, so wait_for only ever reports the deadline.
        try:
            result = binding.invoke(value, ctx)
            if inspect.isawaitable(result):
                result = await result
        except RpcError:
            raise
        except Exception as e:
            logger.exception("%s.%s raised", self.descriptor.full_name, binding.name)
            raise internal_error_with(e) from e
        return result

    async def _write_error(
        self,
        ctx: RequestContext,
        err: RpcError,
        codec: Codec | None,
        write: Writer | None,
    ) -> Response:
        status = status_for(err.code)
        ctx.set(STATUS_CODE, status)
        logger.debug("%s failed with %s: %s", ctx.path, err.code.value, err.msg)
        ctx = await self.hooks.fire_error(ctx, err)
        codec = codec or self.codecs.json
        response = Response(codec.encode_error(err), codec.content_type, status, headers=ctx.response_headers)
        if write is not None:
            await write(response)
        return response

    async def _canceled(self, ctx: RequestContext) -> None:
        err = new_error(ErrorCode.CANCELED, "request canceled")
        ctx.set(STATUS_CODE, status_for(err.code))
        await self.hooks.fire_error(ctx, err)


def new_server(
    descriptor: ServiceDescriptor,
    hooks: ServerHooks | HookChain | Iterable[ServerHooks] | None = None,
    context_source: ContextSource | None = None,
    config: ServerConfig | None = None,
) -> Server:
    return Server(descriptor, hooks, context_source, config)

"""
Client: the server's mirror. Builds POST {base_url}{prefix}/{package.Service}/{Method}, encodes the request
with the chosen codec and turns the reply into a response message or an RpcError with the server's code/msg/meta.
"""
from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from rpcwire.core.context import (
    CODEC,
    METHOD_NAME,
    PACKAGE_NAME,
    SERVICE_NAME,
    STATUS_CODE,
    RequestContext,
)
from rpcwire.rpc.codecs import JsonCodec, ProtobufCodec, media_type
from rpcwire.rpc.descriptor import ServiceDescriptor, snake_case
from rpcwire.rpc.errors import (
    ErrorCode,
    RpcError,
    error_from_intermediary,
    wrap,
)
from rpcwire.rpc.hooks import ClientHooks, HookChain
from rpcwire.rpc.protocol import Codec

logger = logging.getLogger("rpcwire.client")


class Client:
    """
    Facade: await call(service, method, request, response_type, ctx) -> response message.
    Raises RpcError for error responses and transport failures.
    Pass http_client to share connections (or to use an in-process transport); otherwise one is created and
    closed by aclose() / `async with`.
    """

    def __init__(
        self,
        base_url: str,
        codec: Codec,
        *,
        prefix: str = "/twirp",
        http_client: httpx.AsyncClient | None = None,
        hooks: ClientHooks | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.codec = codec
        prefix = prefix.strip().rstrip("/")
        self.prefix = prefix if not prefix or prefix.startswith("/") else "/" + prefix
        self._owns_client = http_client is None
        self._http = http_client if http_client is not None else httpx.AsyncClient()
        self._timeout = timeout
        self.hooks = HookChain([hooks] if hooks is not None else [])

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _request_timeout(self) -> Any:
        return self._timeout if self._timeout is not None else httpx.USE_CLIENT_DEFAULT

    def url_for(self, service: str, method: str) -> str:
        return f"{self.base_url}{self.prefix}/{service}/{method}"

    async def call(
        self,
        service: str,
        method: str,
        request: Any,
        response_type: type[Any],
        ctx: RequestContext | None = None,
    ) -> Any:
        """Call service ("package.Service") method with a request message; return a response_type message."""

        def decode(content: bytes) -> Any:
            try:
                return self.codec.decode(content, response_type)
            except RpcError as e:
                raise wrap(e, ErrorCode.INTERNAL, "failed to unmarshal response") from e

        return await self._call(service, method, lambda: self.codec.encode(request), decode, ctx)

    async def call_raw(
        self,
        service: str,
        method: str,
        body: bytes,
        ctx: RequestContext | None = None,
    ) -> bytes:
        """Like call(), for a body already in this client's encoding; returns the raw response body."""
        return await self._call(service, method, lambda: body, lambda content: content, ctx)

    async def _call(
        self,
        service: str,
        method: str,
        encode: Callable[[], bytes],
        decode: Callable[[bytes], Any],
        ctx: RequestContext | None,
    ) -> Any:
        ctx = ctx.copy() if ctx is not None else RequestContext()
        package, _, name = service.rpartition(".")
        ctx.update({SERVICE_NAME: name, PACKAGE_NAME: package, METHOD_NAME: method, CODEC: self.codec.name})
        try:
            body = encode()
            ctx = await self.hooks.fire("request_prepared", ctx)
            resp = await self._post(self.url_for(service, method), body, ctx)
            ctx.set(STATUS_CODE, resp.status_code)
            if not 200 <= resp.status_code < 300:
                raise self._error_from_response(resp)
            if media_type(resp.headers.get("content-type")) != self.codec.content_type:
                raise RpcError(
                    ErrorCode.INTERNAL,
                    f"expected response Content-Type {self.codec.content_type!r}, got {resp.headers.get('content-type')!r}",
                )
            value = decode(resp.content)
            ctx = await self.hooks.fire("response_received", ctx)
        except RpcError as err:
            await self.hooks.fire_error(ctx, err)
            raise
        return value

    async def _post(self, url: str, body: bytes, ctx: RequestContext) -> httpx.Response:
        headers = ctx.request_headers
        headers["Content-Type"] = self.codec.content_type
        headers["Accept"] = self.codec.content_type
        try:
            return await self._http.post(url, content=body, headers=headers, timeout=self._request_timeout())
        except httpx.TimeoutException as e:
            raise wrap(e, ErrorCode.DEADLINE_EXCEEDED, f"request to {url} timed out") from e
        except httpx.HTTPError as e:
            raise wrap(e, ErrorCode.INTERNAL, f"failed to do request: {e}") from e

    def _error_from_response(self, resp: httpx.Response) -> RpcError:
        """Structured error from the body, or an intermediary error when the body is not one of ours."""
        content_type = media_type(resp.headers.get("content-type"))
        codecs = [self.codec] if content_type == self.codec.content_type else []
        if content_type == JsonCodec.content_type and self.codec.content_type != content_type:
            codecs.append(JsonCodec())
        for codec in codecs:
            try:
                return codec.decode_error(resp.content)
            except ValueError:
                logger.debug("error body from %s is not a %s error", resp.url, codec.name)
        text = resp.content.decode("utf-8", errors="replace")
        return error_from_intermediary(resp.status_code, text, resp.headers.get("location"))


class ProtobufClient(Client):
    """Client speaking application/protobuf."""

    def __init__(self, base_url: str, **kwargs: Any) -> None:
        super().__init__(base_url, ProtobufCodec(), **kwargs)


class JsonClient(Client):
    """Client speaking application/json."""

    def __init__(self, base_url: str, **kwargs: Any) -> None:
        super().__init__(base_url, JsonCodec(), **kwargs)


class ServiceClient:
    """
    Attribute-style stub over a Client: `await stub.MakeHat(size)` (or `stub.make_hat(size)`).
    Response types come from the descriptor's bindings.
    """

    def __init__(self, client: Client, descriptor: ServiceDescriptor) -> None:
        self._client = client
        self._descriptor = descriptor
        self._by_snake = {snake_case(name): name for name in descriptor.methods}

    def __getattr__(self, attr: str) -> Callable[..., Any]:
        name = attr if attr in self._descriptor.methods else self._by_snake.get(attr)
        if name is None:
            raise AttributeError(f"{self._descriptor.full_name} has no method {attr!r}")
        binding = self._descriptor.methods[name]
        if binding.output_type is None:
            raise AttributeError(f"{self._descriptor.full_name}.{name} has no declared response type")

        async def call(request: Any, ctx: RequestContext | None = None) -> Any:
            return await self._client.call(self._descriptor.full_name, name, request, binding.output_type, ctx)

        call.__name__ = name
        return call


"""RPC protocols: codec, context source and request handler. Implementations are pluggable."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rpcwire.core.context import RequestContext
    from rpcwire.core.request import Request
    from rpcwire.core.responses import Response
    from rpcwire.rpc.errors import RpcError


@runtime_checkable
class Codec(Protocol):
    """Encode/decode pair for one wire content type (binary schema or JSON)."""

    name: str
    content_type: str

    def decode(self, data: bytes, message_type: type[Any]) -> Any:
        ...

    def encode(self, value: Any) -> bytes:
        ...

    def encode_error(self, error: RpcError) -> bytes:
        ...

    def decode_error(self, data: bytes) -> RpcError:
        ...


@runtime_checkable
class ContextSource(Protocol):
    """Puts transport data (headers, auth, trace ids) into the context before the method runs."""

    def __call__(self, ctx: RequestContext, request: Request) -> RequestContext | Awaitable[RequestContext] | None:
        ...


@runtime_checkable
class RpcHandler(Protocol):
    """Inbound handler: request -> response. The Server implements it."""

    path_prefix: str

    async def handle(
        self,
        request: Request,
        write: Callable[[Response], Awaitable[None]] | None = None,
    ) -> Response:
        ...

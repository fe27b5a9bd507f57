"""Application: composed from modules via app.register(module). An ASGI app backed by Starlette."""
from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator

from starlette.applications import Starlette
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse
from starlette.routing import Route

from rpcwire.core.config import ServerConfig
from rpcwire.core.module import Module
from rpcwire.core.request import Request
from rpcwire.core.responses import Response
from rpcwire.rpc.codecs import JsonCodec
from rpcwire.rpc.errors import ErrorCode, new_error, status_for

if TYPE_CHECKING:
    from rpcwire.rpc.client import Client
    from rpcwire.rpc.protocol import RpcHandler

logger = logging.getLogger("rpcwire.app")


class _RpcEndpoint:
    """ASGI endpoint: hands each HTTP request to the server owning its path."""

    def __init__(self, app: Application) -> None:
        self._app = app

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        http_request = StarletteRequest(scope, receive)
        body = await http_request.body()
        request = Request(
            body,
            scope["method"],
            path=scope["path"],
            headers=http_request.headers.items(),
        )

        async def write(response: Response) -> None:
            await StarletteResponse(
                response.body,
                status_code=response.status_code,
                headers=response.headers,
                media_type=response.media_type,
            )(scope, receive, send)

        server = self._app.server_for(request.path)
        if server is None:
            # No server owns the path, so no server hooks fire.
            err = new_error(
                ErrorCode.BAD_ROUTE,
                f'no handler for path "{request.path}"',
                {"twirp_invalid_route": f"{request.method} {request.path}"},
            )
            codec = JsonCodec()
            await write(Response(codec.encode_error(err), codec.content_type, status_for(err.code)))
            return
        await server.handle(request, write)


class Application:
    """
    Application. Composed from modules via register(module).
    Every registered server owns the paths under its prefix; any other path gets a JSON bad_route error
    written by the application itself, outside every server's hooks.
    """

    def __init__(self, config: ServerConfig | None = None) -> None:
        self.config = config or ServerConfig()
        self._modules: list[Module] = []
        self._servers: list[RpcHandler] = []
        self.clients: dict[str, Client] = {}
        self._asgi = Starlette(
            routes=[Route("/{path:path}", _RpcEndpoint(self))],
            lifespan=self._lifespan,
        )

    def register(self, module: Module) -> Application:
        """Register a module (RpcModule, etc.). Returns self for chaining."""
        module.register_into(self)
        self._modules.append(module)
        return self

    def add_server(self, server: RpcHandler) -> None:
        for existing in self._servers:
            if existing.path_prefix == server.path_prefix:
                raise ValueError(f"a server is already registered for {server.path_prefix!r}")
        self._servers.append(server)
        logger.debug("serving %s", server.path_prefix)

    def add_client(self, name: str, client: Client) -> None:
        if name in self.clients:
            raise ValueError(f"client {name!r} already registered")
        self.clients[name] = client

    @property
    def servers(self) -> tuple[RpcHandler, ...]:
        return tuple(self._servers)

    def server_for(self, path: str) -> RpcHandler | None:
        for server in self._servers:
            if path.startswith(server.path_prefix):
                return server
        return None

    async def aclose(self) -> None:
        """Close registered clients (called on ASGI shutdown)."""
        for client in self.clients.values():
            await client.aclose()

    @contextlib.asynccontextmanager
    async def _lifespan(self, app: Starlette) -> AsyncIterator[None]:
        yield
        await self.aclose()

    async def __call__(self, scope: dict[str, Any], receive: Any, send: Any) -> None:
        await self._asgi(scope, receive, send)

    def run(self, host: str = "127.0.0.1", port: int = 8000, **kwargs: Any) -> None:
        """Run HTTP server (blocks), via uvicorn."""
        try:
            import uvicorn
        except ImportError:
            raise RuntimeError("Application.run requires uvicorn; pip install 'rpcwire[server]'") from None
        uvicorn.run(self, host=host, port=port, **kwargs)

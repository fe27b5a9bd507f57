"""
RpcModule: building block for RPC: servers (accept calls) and clients (call other services).
Configure via .server(...), .hooks(...) and .client(...); register with app.register(rpc).
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rpcwire.core.config import ServerConfig
from rpcwire.core.module import Module
from rpcwire.rpc.client import Client
from rpcwire.rpc.descriptor import ServiceDescriptor
from rpcwire.rpc.hooks import ServerHooks
from rpcwire.rpc.protocol import ContextSource
from rpcwire.rpc.server import Server

if TYPE_CHECKING:
    from rpcwire.core.app import Application


class RpcModule(Module):
    """
    RPC as object: .server(descriptor) for each served service, .hooks(...) shared by them,
    .client(name, client) for outbound calls (available as app.clients[name]).
    """

    def __init__(self, config: ServerConfig | None = None) -> None:
        self._config = config
        self._services: list[tuple[ServiceDescriptor, ContextSource | None]] = []
        self._hooks: list[ServerHooks] = []
        self._clients: list[tuple[str, Client]] = []

    def server(
        self,
        descriptor: ServiceDescriptor,
        context_source: ContextSource | None = None,
    ) -> RpcModule:
        """Serve a service at {prefix}/{package.Service}/{Method}."""
        self._services.append((descriptor, context_source))
        return self

    def hooks(self, *hooks: ServerHooks) -> RpcModule:
        """Hooks for every server of this module, fired in the order given (calls accumulate)."""
        self._hooks.extend(hooks)
        return self

    def client(self, name: str, client: Client) -> RpcModule:
        self._clients.append((name, client))
        return self

    def build_servers(self, default_config: ServerConfig | None = None) -> list[Server]:
        config = self._config or default_config or ServerConfig()
        return [
            Server(descriptor, list(self._hooks), context_source, config)
            for descriptor, context_source in self._services
        ]

    def register_into(self, app: Application) -> None:
        for server in self.build_servers(app.config):
            app.add_server(server)
        for name, client in self._clients:
            app.add_client(name, client)

    def __repr__(self) -> str:
        names: list[Any] = [d.full_name for d, _ in self._services]
        return f"RpcModule(services={names})"

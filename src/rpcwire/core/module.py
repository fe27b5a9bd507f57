"""Module protocol: anything with register_into(app) can be attached to an Application."""
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rpcwire.core.app import Application


@runtime_checkable
class Module(Protocol):
    """Building block: configured on its own, attached via app.register(module)."""

    def register_into(self, app: Application) -> None:
        """Attach servers and clients to the app."""
        ...

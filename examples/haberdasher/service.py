"""Haberdasher implementation: one object serves the whole contract."""
import random

from rpcwire.core.context import RequestContext, set_response_header
from rpcwire.rpc.descriptor import ServiceDescriptor
from rpcwire.rpc.errors import invalid_argument_error

from .haberdasher_pb import HABERDASHER, Hat, Size

COLORS = ("white", "black", "brown", "red", "blue")
NAMES = ("bowler", "baseball cap", "top hat", "derby")


class HaberdasherService:
    """MakeHat: a hat of the requested size with a random color and style."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    async def make_hat(self, size: Size, ctx: RequestContext) -> Hat:
        if size.inches <= 0:
            raise invalid_argument_error("inches", "I can't make a hat that small!")
        set_response_header(ctx, "X-Hat-Maker", "rpcwire")
        return Hat(
            inches=size.inches,
            color=self._rng.choice(COLORS),
            name=self._rng.choice(NAMES),
        )


def haberdasher_descriptor(service: HaberdasherService | None = None) -> ServiceDescriptor:
    return ServiceDescriptor.from_proto(HABERDASHER, service or HaberdasherService())

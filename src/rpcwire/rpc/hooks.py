"""
Lifecycle hooks. A ServerHooks value has optional slots; several are composed, in registration
order, into a HookChain. Per request the slots fire: received -> routed -> [method] -> response_prepared -> response_sent,
and `error` fires instead of the last two when the request fails.
"""
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from rpcwire.core.context import RequestContext
from rpcwire.rpc.errors import RpcError, internal_error, internal_error_with

logger = logging.getLogger("rpcwire.hooks")

ContextResult = Union[RequestContext, None, Awaitable[Optional[RequestContext]]]
ContextHook = Callable[[RequestContext], ContextResult]
ErrorHook = Callable[[RequestContext, RpcError], ContextResult]

RECEIVED = "request_received"
ROUTED = "request_routed"
PREPARED = "response_prepared"
SENT = "response_sent"
ERROR = "error"


@dataclass(frozen=True)
class ServerHooks:
    """
    Optional lifecycle callbacks. Each takes the RequestContext and returns it (or None for "unchanged");
    `error` also takes the RpcError. Callbacks may be plain functions or coroutines.
    Raising RpcError from a callback fails the request with that error.
    """

    request_received: Optional[ContextHook] = None
    request_routed: Optional[ContextHook] = None
    response_prepared: Optional[ContextHook] = None
    response_sent: Optional[ContextHook] = None
    error: Optional[ErrorHook] = None


@dataclass(frozen=True)
class ClientHooks:
    """Client-side observers: request_prepared(ctx), response_received(ctx), error(ctx, err)."""

    request_prepared: Optional[ContextHook] = None
    response_received: Optional[ContextHook] = None
    error: Optional[ErrorHook] = None


async def _call(callback: Callable[..., Any], *args: Any) -> Any:
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def advance_context(previous: RequestContext, result: Any, slot: str) -> RequestContext:
    """Context to continue with after a callback returned `result` (None keeps `previous`)."""
    if result is None:
        return previous
    if not isinstance(result, RequestContext):
        raise internal_error(f"{slot} hook returned {type(result).__name__}, expected RequestContext")
    if result is not previous and not result.covers(previous):
        missing = [k for k in previous.recorded if k not in result]
        raise internal_error(f"{slot} hook dropped context facts: {', '.join(missing)}")
    return result


class HookChain:
    """
    Ordered, immutable composition of hooks; safe to share between concurrent requests.
    fire() threads the context through every populated slot. fire_error() never raises.
    """

    def __init__(self, hooks: Iterable[Any] = ()) -> None:
        self._hooks: tuple[Any, ...] = tuple(h for h in hooks if h is not None)

    def __len__(self) -> int:
        return len(self._hooks)

    def __iter__(self):
        return iter(self._hooks)

    async def fire(self, slot: str, ctx: RequestContext) -> RequestContext:
        """
        Run `slot` of every hook in order, replacing ctx with each returned context.
        A failing callback is reported as RpcError (as raised, or internal for any other exception).
        """
        for hook in self._hooks:
            callback = getattr(hook, slot, None)
            if callback is None:
                continue
            try:
                result = await _call(callback, ctx)
            except RpcError:
                raise
            except Exception as e:
                logger.exception("%s hook failed", slot)
                raise internal_error_with(e) from e
            ctx = advance_context(ctx, result, slot)
        return ctx

    async def fire_error(self, ctx: RequestContext, error: RpcError) -> RequestContext:
        """Run every `error` slot once. Failures inside error hooks are logged and skipped."""
        for hook in self._hooks:
            callback = getattr(hook, ERROR, None)
            if callback is None:
                continue
            try:
                result = await _call(callback, ctx, error)
                ctx = advance_context(ctx, result, ERROR)
            except Exception:
                logger.exception("error hook failed while handling %r", error)
        return ctx


def chain_hooks(*hooks: ServerHooks | None) -> HookChain:
    """Compose hooks in order; None entries are skipped."""
    return HookChain(hooks)


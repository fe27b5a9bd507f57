"""
RequestContext: per-request bag of facts threaded through hooks, decode, invoke and encode.
Facts are only ever added (or refined); nothing is removed, so later stages see everything earlier ones recorded.
"""
from __future__ import annotations

from typing import Any, Iterator, Mapping

SERVICE_NAME = "service_name"
PACKAGE_NAME = "package_name"
METHOD_NAME = "method_name"
STATUS_CODE = "status_code"
HTTP_METHOD = "http_method"
PATH = "path"
CODEC = "codec"
DEADLINE = "deadline"
INBOUND_HEADERS = "inbound_headers"
REQUEST_HEADERS = "request_headers"
RESPONSE_HEADERS = "response_headers"

# Headers owned by the runtime; callers may not set them.
_RESERVED_RESPONSE_HEADERS = frozenset({"content-type", "content-length"})
_RESERVED_REQUEST_HEADERS = frozenset({"accept", "content-type", "content-length"})


class RequestContext(Mapping[str, Any]):
    """
    Append-only key/value bag for one request. Read it like a dict; write with set() / update().
    `recorded` lists keys in the order they were first recorded.
    """

    __slots__ = ("_facts", "_order")

    def __init__(self, facts: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        self._facts: dict[str, Any] = {}
        self._order: list[str] = []
        self.update(facts or {}, **kwargs)

    def __getitem__(self, key: str) -> Any:
        return self._facts[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._facts)

    def set(self, key: str, value: Any) -> RequestContext:
        """Record a fact; returns self so hooks can `return ctx.set(...)`."""
        if key not in self._facts:
            self._order.append(key)
        self._facts[key] = value
        return self

    def update(self, facts: Mapping[str, Any] | None = None, **kwargs: Any) -> RequestContext:
        for key, value in {**(facts or {}), **kwargs}.items():
            self.set(key, value)
        return self

    def copy(self) -> RequestContext:
        """Independent context with the same facts (header dicts are copied too)."""
        new = RequestContext()
        for key in self._order:
            value = self._facts[key]
            new.set(key, dict(value) if isinstance(value, dict) else value)
        return new

    @property
    def recorded(self) -> tuple[str, ...]:
        return tuple(self._order)

    def covers(self, other: RequestContext) -> bool:
        """True if every fact key recorded in `other` is also known here."""
        return all(key in self._facts for key in other.recorded)

    @property
    def service_name(self) -> str | None:
        return self._facts.get(SERVICE_NAME)

    @property
    def package_name(self) -> str | None:
        return self._facts.get(PACKAGE_NAME)

    @property
    def method_name(self) -> str | None:
        return self._facts.get(METHOD_NAME)

    @property
    def status_code(self) -> int | None:
        return self._facts.get(STATUS_CODE)

    @property
    def http_method(self) -> str | None:
        return self._facts.get(HTTP_METHOD)

    @property
    def path(self) -> str | None:
        return self._facts.get(PATH)

    @property
    def codec(self) -> Any:
        return self._facts.get(CODEC)

    @property
    def deadline(self) -> float | None:
        """Absolute time.monotonic() value after which the method call is abandoned."""
        return self._facts.get(DEADLINE)

    @property
    def inbound_headers(self) -> dict[str, str]:
        """Headers of the inbound HTTP request (lowercased names)."""
        return dict(self._facts.get(INBOUND_HEADERS) or {})

    @property
    def request_headers(self) -> dict[str, str]:
        return dict(self._facts.get(REQUEST_HEADERS) or {})

    @property
    def response_headers(self) -> dict[str, str]:
        return dict(self._facts.get(RESPONSE_HEADERS) or {})

    def __repr__(self) -> str:
        return f"RequestContext({dict(self._facts)!r})"


def set_response_header(ctx: RequestContext, name: str, value: str) -> RequestContext:
    """Header to send with the response of this request. Content-Type/Content-Length are reserved."""
    if name.lower() in _RESERVED_RESPONSE_HEADERS:
        raise ValueError(f"header {name!r} is set by the server and cannot be overridden")
    headers = ctx.response_headers
    headers[name] = value
    return ctx.set(RESPONSE_HEADERS, headers)


def with_http_request_headers(ctx: RequestContext, headers: Mapping[str, str]) -> RequestContext:
    """Extra headers for an outbound client call made with this context."""
    for name in headers:
        if name.lower() in _RESERVED_REQUEST_HEADERS:
            raise ValueError(f"header {name!r} is set by the client and cannot be overridden")
    merged = ctx.request_headers
    merged.update(headers)
    return ctx.set(REQUEST_HEADERS, merged)

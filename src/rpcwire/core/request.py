"""Transport-neutral inbound request: what the server needs from any HTTP layer."""
from __future__ import annotations

from typing import Iterable, Mapping


class Request:
    """Request-like object: raw body bytes, HTTP method, path and headers (lowercased names)."""

    def __init__(
        self,
        body: bytes,
        method: str,
        *,
        path: str = "",
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
    ) -> None:
        self.body = body or b""
        self.method = method
        self.path = path
        if isinstance(headers, Mapping):
            self._headers = {str(k).lower(): str(v) for k, v in headers.items()}
        elif headers is not None:
            self._headers = {str(k).lower(): str(v) for k, v in headers}
        else:
            self._headers = {}

    @property
    def headers(self) -> dict[str, str]:
        """Request headers (lowercased names)."""
        return self._headers

    @property
    def content_type(self) -> str | None:
        return self._headers.get("content-type")

    def __repr__(self) -> str:
        return f"Request({self.method} {self.path}, {len(self.body)} bytes)"

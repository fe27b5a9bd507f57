"""Transport-neutral response produced by the server."""
from __future__ import annotations

import json
from typing import Any


class Response:
    """Response with .body (bytes), .status_code, .media_type and extra .headers."""

    def __init__(
        self,
        content: bytes | str,
        media_type: str = "application/json",
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.body = content if isinstance(content, bytes) else content.encode()
        self.media_type = media_type
        self.status_code = status_code
        self.headers = dict(headers or {})

    def json(self) -> Any:
        return json.loads(self.body.decode())

    def __repr__(self) -> str:
        return f"Response({self.status_code}, {self.media_type}, {len(self.body)} bytes)"

"""Config: one object per server, created in code or loaded from the environment."""
from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class Config:
    """Base for config objects: environment loading shared by all of them."""

    @classmethod
    def load_from_env(cls, env_prefix: str = "RPCWIRE_", /, **defaults: Any) -> dict[str, Any]:
        """Load from os.environ with env_prefix and defaults. Returns dict (raw strings from env)."""
        result = dict(defaults)
        for key, value in os.environ.items():
            if key.startswith(env_prefix):
                name = key[len(env_prefix):].lower()
                result[name] = value
        return result


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"{name}: expected a boolean, got {value!r}")


def _parse_timeout(name: str, value: Any) -> float | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name}: expected seconds as a number, got {value!r}") from None
    if timeout <= 0:
        raise ValueError(f"{name}: must be positive, got {value!r}")
    return timeout


@dataclass(frozen=True)
class ServerConfig(Config):
    """
    Server settings.
    prefix: URL prefix before /{Service}/{Method} ("" for none).
    missing_content_type: "reject" (bad_route) or "json" when a request has no Content-Type.
    json_emit_defaults / json_camel_case: JSON codec options.
    invoke_timeout: seconds a method may run before deadline_exceeded (None: no limit).
    """

    prefix: str = "/twirp"
    missing_content_type: str = "reject"
    json_emit_defaults: bool = True
    json_camel_case: bool = False
    invoke_timeout: float | None = None

    def __post_init__(self) -> None:
        prefix = self.prefix.strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = "/" + prefix
        object.__setattr__(self, "prefix", prefix)
        if self.missing_content_type not in ("reject", "json"):
            raise ValueError(f"missing_content_type must be 'reject' or 'json', got {self.missing_content_type!r}")
        object.__setattr__(self, "json_emit_defaults", _parse_bool("json_emit_defaults", self.json_emit_defaults))
        object.__setattr__(self, "json_camel_case", _parse_bool("json_camel_case", self.json_camel_case))
        object.__setattr__(self, "invoke_timeout", _parse_timeout("invoke_timeout", self.invoke_timeout))

    @classmethod
    def from_env(cls, env_prefix: str = "RPCWIRE_", /, **defaults: Any) -> ServerConfig:
        """
        ServerConfig from env vars, e.g. RPCWIRE_PREFIX=/rpc, RPCWIRE_INVOKE_TIMEOUT=2.5.
        Variables that do not name a field are ignored. Keyword defaults name fields, e.g. prefix="/rpc".
        """
        names = {f.name for f in dataclasses.fields(cls)}
        values = cls.load_from_env(env_prefix, **defaults)
        return cls(**{k: v for k, v in values.items() if k in names})

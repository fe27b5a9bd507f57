from rpcwire.core.app import Application
from rpcwire.core.config import Config, ServerConfig
from rpcwire.core.context import RequestContext, set_response_header, with_http_request_headers
from rpcwire.core.module import Module
from rpcwire.core.request import Request
from rpcwire.core.responses import Response

__all__ = [
    "Application",
    "Config",
    "Module",
    "Request",
    "RequestContext",
    "Response",
    "ServerConfig",
    "set_response_header",
    "with_http_request_headers",
]

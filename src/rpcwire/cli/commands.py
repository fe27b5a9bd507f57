"""
CLI commands: serve an application, call a method with JSON. Requires typer (rpcwire[cli]).
"""
import asyncio
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import httpx
import typer

from rpcwire.core.app import Application
from rpcwire.core.context import RequestContext, with_http_request_headers
from rpcwire.rpc.client import JsonClient
from rpcwire.rpc.errors import RpcError
from rpcwire.rpc.protocol import RpcHandler

app = typer.Typer(help="rpcwire CLI: serve services and call them.")
logger = logging.getLogger("rpcwire.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_app(target: str, app_dir: Optional[Path] = None) -> Application:
    """
    Resolve "module:attr" to an Application. A bare server (anything with handle/path_prefix)
    is wrapped in a new Application.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(f"expected 'module:attribute', got {target!r}")
    if app_dir is not None:
        sys.path.insert(0, str(app_dir.resolve()))
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"cannot import {module_name!r}: {e}") from e
    obj = getattr(module, attr, None)
    if obj is None:
        raise typer.BadParameter(f"{module_name!r} has no attribute {attr!r}")
    if isinstance(obj, Application):
        return obj
    if isinstance(obj, RpcHandler):
        application = Application()
        application.add_server(obj)
        return application
    raise typer.BadParameter(f"{target!r} is neither an Application nor a server")


def _parse_headers(values: List[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"header must look like 'Name: value', got {item!r}")
        headers[name.strip()] = value.strip()
    return headers


@app.command()
def serve(
    target: str = typer.Argument(..., help="Application or server as module:attribute"),
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    app_dir: Optional[Path] = typer.Option(None, "--app-dir", help="Directory added to sys.path first"),
    log_level: str = typer.Option("info", "--log-level", help="Logging level"),
) -> None:
    """Serve an application over HTTP (uvicorn)."""
    _configure_logging(log_level)
    application = load_app(target, app_dir)
    logger.info("loaded %s with %d server(s)", target, len(application.servers))
    for server in application.servers:
        typer.echo(f"serving POST {server.path_prefix}{{Method}}")
    application.run(host=host, port=port, log_level=log_level.lower())


async def _call_json(
    base_url: str,
    service: str,
    method: str,
    data: str,
    prefix: str,
    headers: dict[str, str],
    timeout: Optional[float],
    http_client: Optional[httpx.AsyncClient] = None,
) -> Any:
    """Send data as the JSON request body and return the decoded JSON response as the server wrote it."""
    ctx = with_http_request_headers(RequestContext(), headers) if headers else None
    async with JsonClient(base_url, prefix=prefix, timeout=timeout, http_client=http_client) as client:
        raw = await client.call_raw(service, method, data.encode("utf-8"), ctx)
    return json.loads(raw)


@app.command()
def call(
    base_url: str = typer.Argument(..., help="Server base URL, e.g. http://localhost:8000"),
    route: str = typer.Argument(..., help="package.Service/Method"),
    data: str = typer.Option("{}", "--data", "-d", help="Request message as JSON"),
    prefix: str = typer.Option("/twirp", "--prefix", help="Path prefix"),
    header: List[str] = typer.Option([], "--header", "-H", help="Extra header 'Name: value' (repeatable)"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds to wait"),
) -> None:
    """Call a method with a JSON request; prints the JSON response or the error."""
    service, sep, method = route.rpartition("/")
    if not sep or not service or not method:
        raise typer.BadParameter(f"route must be package.Service/Method, got {route!r}")
    try:
        payload = json.loads(data)
    except ValueError as e:
        raise typer.BadParameter(f"--data is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise typer.BadParameter("--data must be a JSON object")
    try:
        result = asyncio.run(
            _call_json(base_url, service, method, data, prefix, _parse_headers(header), timeout)
        )
    except RpcError as err:
        typer.echo(json.dumps(err.to_dict(), indent=2), err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(result, indent=2))

"""
CLI subcommands for reading resources and invoking operations.

Usage:
    beanscope resources query <pattern> [--max-depth N] [--max-count N] [--max-size N]
    beanscope resources get <name> [--max-depth N] ...
    beanscope resources invoke <name> <operation> [-p TYPE[:NAME]=VALUE ...]
    beanscope resources stores
"""

import xml.etree.ElementTree as ET
from typing import Optional

import typer

from beanscope.cli._http import _http_get, _http_get_xml, _http_post_xml
from beanscope.invoke.models import (
    ERROR_REASON_TAG,
    RESPONSE_TAG,
    RESULT_TAG,
    InvocationRequest,
    MethodParameter,
    OutcomeStatus,
)

resources_app = typer.Typer(help="Read managed resources and invoke their operations")


def parse_param(text: str) -> MethodParameter:
    """
    Parse ``TYPE[:NAME]=VALUE`` into a parameter.

    ``int=5``, ``int:generation=0`` and ``string:level=`` are all valid.
    """
    head, sep, value = text.partition("=")
    if not sep:
        raise typer.BadParameter(f"Expected TYPE[:NAME]=VALUE, got '{text}'")
    type_name, _, name = head.partition(":")
    if not type_name.strip():
        raise typer.BadParameter(f"Missing type in '{text}'")
    return MethodParameter(name=name.strip(), type_name=type_name.strip(), value=value)


def _limits(max_depth, max_count, max_size) -> dict:
    params = {"max_depth": max_depth, "max_count": max_count, "max_size": max_size}
    return {k: v for k, v in params.items() if v is not None}


@resources_app.command("query")
def resources_query(
    pattern: str = typer.Argument(help="Resource name or pattern, e.g. 'python:*'"),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", help="Expansion depth"),
    max_count: Optional[int] = typer.Option(None, "--max-count", help="Composite budget"),
    max_size: Optional[int] = typer.Option(None, "--max-size", help="Soft size budget"),
):
    """Print every resource matching a pattern as XML."""
    params = {"query": pattern, **_limits(max_depth, max_count, max_size)}
    typer.echo(_http_get_xml("/resources", params=params))


@resources_app.command("get")
def resources_get(
    name: str = typer.Argument(help="Name matching exactly one resource"),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", help="Expansion depth"),
    max_count: Optional[int] = typer.Option(None, "--max-count", help="Composite budget"),
    max_size: Optional[int] = typer.Option(None, "--max-size", help="Soft size budget"),
):
    """Print a single resource as XML."""
    params = {"query": name, **_limits(max_depth, max_count, max_size)}
    typer.echo(_http_get_xml("/resource", params=params))


@resources_app.command("invoke")
def resources_invoke(
    name: str = typer.Argument(help="Name matching exactly one resource"),
    operation: str = typer.Argument(help="Operation to invoke"),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-p", help="Parameter as TYPE[:NAME]=VALUE (repeatable)"
    ),
    max_time: Optional[int] = typer.Option(None, "--max-time", help="Seconds to wait"),
    max_size: Optional[int] = typer.Option(None, "--max-size", help="Response size limit"),
    raw: bool = typer.Option(False, "--raw", help="Print the response document as-is"),
):
    """
    Invoke an operation on a resource.

    Examples:
        beanscope resources invoke python:type=Memory collect
        beanscope resources invoke python:type=Memory collect -p int:generation=0
        beanscope resources invoke beanscope:type=Logging setLevel -p string=DEBUG
    """
    request = InvocationRequest(
        resource=name,
        operation=operation,
        params=tuple(parse_param(p) for p in param or []),
    )
    query = {k: v for k, v in {"max_time": max_time, "max_size": max_size}.items() if v is not None}
    document = _http_post_xml("/invoke", request.to_xml(), params=query)

    if raw:
        typer.echo(document)

    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        typer.echo(f"❌ Unreadable response: {e}")
        raise typer.Exit(code=1)

    if root.findtext(RESULT_TAG) != OutcomeStatus.SUCCESS.value:
        reason = root.find(ERROR_REASON_TAG)
        code = reason.get("code") if reason is not None else None
        message = reason.text if reason is not None else "unknown error"
        if not raw:
            typer.echo(f"❌ {code + ': ' if code else ''}{message}")
        raise typer.Exit(code=1)

    if raw:
        return
    response = root.find(RESPONSE_TAG)
    if response is None:
        typer.echo(f"✅ {operation} completed")
    else:
        typer.echo(f"✅ ({response.get('type')}) {response.text or ''}")


@resources_app.command("stores")
def resources_stores():
    """List the stores registered with the server."""
    data = _http_get("/stores")
    stores = data.get("stores", [])

    if not stores:
        typer.echo("No stores registered.")
        return

    typer.echo(f"📦 Stores ({len(stores)}):\n")
    for store in stores:
        typer.echo(
            f"  • {store['name']}\n"
            f"     Resources: {store.get('resources', 0)}\n"
            f"     Registered: {store.get('registered_at', 'unknown')}\n"
        )

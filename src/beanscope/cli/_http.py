"""
Shared HTTP helpers for CLI commands that talk to the running server.
"""

import os
import xml.etree.ElementTree as ET

import typer


def get_server_url() -> str:
    """Get the server URL from environment or default."""
    port = os.getenv("BEANSCOPE_PORT")
    if not port or port == "0":
        port = "8000"

    host = os.getenv("BEANSCOPE_HOST", "localhost")
    if host == "0.0.0.0":
        host = "localhost"
    return os.getenv("BEANSCOPE_SERVER_URL", f"http://{host}:{port}")


def _error_detail(text: str) -> str:
    """Pull the message out of an ``<Error code="..">message</Error>`` document."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError:
        return text.strip()
    code = root.get("code")
    message = (root.text or "").strip()
    return f"{code}: {message}" if code else message


def _http_get(path: str, params: dict | None = None) -> dict:
    """Make a GET request to the running server and decode the JSON body."""
    import httpx

    url = f"{get_server_url()}{path}"
    try:
        resp = httpx.get(url, params=params, timeout=10.0)
        resp.raise_for_status()
        return resp.json()
    except httpx.ConnectError:
        typer.echo("❌ Cannot connect to BeanScope server. Is it running?")
        raise typer.Exit(code=1)
    except httpx.HTTPStatusError as e:
        typer.echo(f"❌ Server error: {e.response.status_code}")
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)


def _http_get_xml(path: str, params: dict | None = None) -> str:
    """Make a GET request to the running server and return the XML body."""
    import httpx

    url = f"{get_server_url()}{path}"
    try:
        resp = httpx.get(url, params=params, timeout=30.0)
        resp.raise_for_status()
        return resp.text
    except httpx.ConnectError:
        typer.echo("❌ Cannot connect to BeanScope server. Is it running?")
        raise typer.Exit(code=1)
    except httpx.HTTPStatusError as e:
        typer.echo(f"❌ Server error ({e.response.status_code}): {_error_detail(e.response.text)}")
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)


def _http_post_xml(path: str, body: str, params: dict | None = None) -> str:
    """POST an XML document to the running server and return the XML reply."""
    import httpx

    url = f"{get_server_url()}{path}"
    try:
        resp = httpx.post(
            url,
            content=body.encode("utf-8"),
            params=params,
            headers={"Content-Type": "application/xml; charset=utf-8"},
            timeout=60.0,
        )
        resp.raise_for_status()
        return resp.text
    except httpx.ConnectError:
        typer.echo("❌ Cannot connect to BeanScope server. Is it running?")
        raise typer.Exit(code=1)
    except httpx.HTTPStatusError as e:
        typer.echo(f"❌ Server error: {e.response.status_code}")
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"❌ Error: {e}")
        raise typer.Exit(code=1)

"""
Top-level CLI commands: start, health.
"""

import os

import typer
from dotenv import load_dotenv

from beanscope.cli._http import _http_get


def configure_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    from beanscope.logger import setup_logging

    log_level = "DEBUG" if verbose else "WARNING"
    setup_logging(level=log_level)


def load_environment():
    """Load ``.env`` from the project directory without overriding the shell."""
    from beanscope.config import PROJECT_DIR
    from beanscope.logger import get_logger

    env_file = PROJECT_DIR / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=False)
        get_logger(__name__).debug(f"Loaded environment from {env_file}")


def register_commands(app: typer.Typer):
    """Register top-level commands onto the app."""

    @app.command()
    def start(
        host: str = typer.Option(None, help="Host to bind to"),
        port: int = typer.Option(None, help="Port to bind to"),
        debug: bool = typer.Option(False, "--debug", help="Run in debug mode"),
    ):
        """Start the BeanScope server."""
        import uvicorn

        from beanscope.config import CONFIG

        try:
            CONFIG.reload()
        except ValueError as e:
            typer.echo(f"❌ {e}")
            raise typer.Exit(code=1)

        host = host or CONFIG.host
        port = port or CONFIG.port
        if debug:
            os.environ["LOG_LEVEL"] = "DEBUG"

        typer.echo(f"🚀 Starting BeanScope server on {host}:{port}...")
        try:
            uvicorn.run(
                "beanscope.server:app",
                host=host,
                port=port,
                log_level="debug" if debug else "info",
            )
        except KeyboardInterrupt:
            typer.echo("\n🛑 Server stopped.")

    @app.command()
    def health():
        """Show the running server's health summary."""
        data = _http_get("/health")
        typer.echo(f"💚 {data.get('status', 'unknown')} (version {data.get('version')})")
        typer.echo(f"   Uptime: {data.get('uptime_seconds', 0)}s")
        typer.echo(f"   Stores: {data.get('stores', 0)}")
        typer.echo(f"   Resources: {data.get('resources', 0)}")

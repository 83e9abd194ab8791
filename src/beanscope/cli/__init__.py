"""
BeanScope CLI.

This package splits CLI commands into focused modules:
- main:      start, health
- resources: query, get, invoke, stores
- config:    show, get, exclusions
"""

import typer

from beanscope.cli._http import _http_get, _http_get_xml, _http_post_xml  # noqa: F401 re-export for test patching
from beanscope.cli.config import config_app
from beanscope.cli.main import configure_logging, load_environment, register_commands
from beanscope.cli.resources import resources_app

app = typer.Typer(help="BeanScope CLI - inspect and operate managed resources")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """
    BeanScope CLI - inspect and operate managed resources.
    """
    configure_logging(verbose)
    load_environment()


register_commands(app)

app.add_typer(resources_app, name="resources")
app.add_typer(config_app, name="config")

if __name__ == "__main__":
    app()

"""
CLI subcommands for viewing configuration.

Usage:
    beanscope config show
    beanscope config get <key>
    beanscope config exclusions [--file PATH]
"""

import json
from pathlib import Path
from typing import Optional

import typer

config_app = typer.Typer(help="View BeanScope configuration")


def _load():
    from beanscope.config import load_config

    try:
        return load_config()
    except ValueError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)


@config_app.command("show")
def config_show():
    """Dump the effective configuration."""
    typer.echo(json.dumps(_load().model_dump(), indent=2))


@config_app.command("get")
def config_get(
    key: str = typer.Argument(help="Configuration key to read"),
):
    """Read a specific configuration value."""
    data = _load().model_dump()
    if key not in data:
        typer.echo(f"❌ Key '{key}' not found in config")
        raise typer.Exit(code=1)
    typer.echo(str(data[key]))


@config_app.command("exclusions")
def config_exclusions(
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="Exclusions file (defaults to the configured one)"
    ),
):
    """Validate an exclusions file and list its rules."""
    from beanscope.core.filters import ExclusionRules

    path = file or _load().exclusions_path()
    if path is None or not path.exists():
        typer.echo(f"No exclusions file at {path}")
        return

    try:
        rules = ExclusionRules.from_yaml(path.read_text(encoding="utf-8"))
    except ValueError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)

    typer.echo(f"🚫 {len(rules)} exclusion rules in {path}:\n")
    for rule in rules.rules:
        typer.echo(f"  • store={rule.store} resource={rule.resource}")
        typer.echo(f"     attributes: {', '.join(rule.attributes)}")

"""CLI: convo-stream config show|set"""

import json

import click
from rich.console import Console
from rich.table import Table

from convo_stream.config import JsonConfigStore, SETTINGS_KEY, load_settings, update_setting
from convo_stream.errors import ConfigError

console = Console()


@click.group()
def config():
    """Settings management."""


@config.command("show")
@click.option("--json-output", "--json", is_flag=True)
def config_show(json_output: bool):
    """Show current settings."""
    settings = load_settings()
    if json_output:
        click.echo(json.dumps(settings.model_dump(), indent=2))
        return
    table = Table(title=f"Settings ({JsonConfigStore(SETTINGS_KEY).path})")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        table.add_row(key, str(value))
    console.print(table)


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str):
    """Set a setting."""
    try:
        settings = update_setting(key, value)
    except ConfigError as e:
        raise click.ClickException(str(e))
    console.print(f"[green]{key} = {getattr(settings, key)}[/green]")

"""
convo-stream CLI — `convo-stream` command.

Commands:
  convo-stream replay <file>        Feed a recorded event stream through a session
  convo-stream config show|set      View and edit settings
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install convo-stream[cli]")

from convo_stream import __version__

console = Console()


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option(__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """convo-stream CLI — replay and inspect streamed AI conversations."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


# Register subcommands from separate modules
from convo_stream.cli.config import config
from convo_stream.cli.replay import replay_cmd

main.add_command(config)
main.add_command(replay_cmd)


if __name__ == "__main__":
    main()

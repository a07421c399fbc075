"""CLI: convo-stream replay"""

import json
from pathlib import Path
from typing import Any, AsyncGenerator, Optional

import click
from rich.console import Console
from rich.markup import escape

from convo_stream.config import load_settings
from convo_stream.errors import TransportFailure
from convo_stream.models.events import ERROR_RECORD
from convo_stream.models.message import Message, MessageKind
from convo_stream.session import PROTOCOLS, ChatSession

console = Console()

KIND_STYLES = {
    MessageKind.USER: ("You", "cyan"),
    MessageKind.ASSISTANT: ("Assistant", "green"),
    MessageKind.ERROR: ("Error", "red"),
    MessageKind.SYSTEM: ("System", "yellow"),
}


def _run(coro):
    from convo_stream.cli.main import _run
    return _run(coro)


def read_records(path: Path) -> list[dict[str, Any]]:
    """Read a JSON Lines event recording. Blank lines are skipped."""
    records = []
    for lineno, line in enumerate(path.read_text().splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            raise click.ClickException(f"{path}:{lineno}: invalid JSON ({e.msg})")
        if not isinstance(record, dict) or "type" not in record:
            raise click.ClickException(f"{path}:{lineno}: expected an object with a 'type' field")
        records.append(record)
    return records


async def stream_records(records: list[dict[str, Any]]) -> AsyncGenerator[tuple[str, Any], None]:
    """Yield (type, payload) pairs; an error record ends the stream as a transport failure."""
    for record in records:
        if record["type"] == ERROR_RECORD:
            raise TransportFailure(str(record.get("message", "")))
        yield record["type"], record.get("payload")


def _tool_lines(message: Message) -> list[str]:
    lines = []
    for block in message.content_blocks():
        if not isinstance(block, dict):
            continue
        if block.get("type") == "tool_use":
            name = escape(str(block.get("name", "?")))
            lines.append(f"  [dim]tool {name} ({escape(str(block.get('id')))})[/dim]")
        elif block.get("type") == "tool_result":
            marker = "failed" if block.get("is_error") else "done"
            lines.append(f"  [dim]result for {escape(str(block.get('tool_use_id')))}: {marker}[/dim]")
    return lines


def render_transcript(session: ChatSession, show_tool_blocks: bool) -> None:
    for message in session.messages:
        label, style = KIND_STYLES[message.kind]
        console.print(f"[{style}]{label}:[/{style}] {escape(message.text)}", highlight=False)
        if show_tool_blocks:
            for line in _tool_lines(message):
                console.print(line)
    state = session.state
    session_label = escape(state.session_id or "-")
    console.print(f"[dim]\\[state: {state.status.value}, session: {session_label}][/dim]")


@click.command("replay")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-p", "--protocol", type=click.Choice(PROTOCOLS), default=None,
              help="Event protocol (defaults to the configured one)")
@click.option("--prompt", default=None, help="User prompt to place before the response")
@click.option("--json-output", "--json", is_flag=True)
def replay_cmd(path: Path, protocol: Optional[str], prompt: Optional[str], json_output: bool):
    """Feed a recorded event stream through a session and print the transcript."""
    settings = load_settings()
    session = ChatSession(protocol=protocol or settings.protocol)
    records = read_records(path)
    _run(session.run(stream_records(records), prompt))

    if json_output:
        state = session.state
        click.echo(json.dumps({
            "session_id": state.session_id,
            "status": state.status.value,
            "error": state.error,
            "messages": [m.model_dump(mode="json") for m in session.messages],
        }, indent=2))
        return
    render_transcript(session, settings.show_tool_blocks)

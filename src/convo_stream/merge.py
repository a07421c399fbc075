"""
Message merge engine. Folds streamed assistant envelopes into one.

A streamed assistant turn arrives as a series of envelopes, each carrying
some or all of the content blocks seen so far. Blocks are matched across
envelopes by a stable key so a tool step rendered by an earlier delta is
updated in place rather than lost:

- a block with an ``id`` is keyed by that id;
- a block with a ``tool_use_id`` (a tool result) is keyed ``result:<tool_use_id>``;
- any other block has no key and is always appended.

Nothing here mutates its arguments. Every call returns a fresh tree, so a
reader holding the previous envelope keeps a consistent snapshot.
"""

import copy
from typing import Any, Mapping, Optional

from convo_stream.errors import MalformedEnvelope

MESSAGE_FIELD = "message"
CONTENT_FIELD = "content"
RESULT_KEY_PREFIX = "result:"


def content_block_key(block: Any) -> Optional[str]:
    """Return the stable key of a content block, or None if it has none."""
    if not isinstance(block, Mapping):
        return None
    if block.get("id") is not None:
        return str(block["id"])
    if block.get("tool_use_id") is not None:
        return f"{RESULT_KEY_PREFIX}{block['tool_use_id']}"
    return None


def _content_index(content: list[Any]) -> dict[str, int]:
    index: dict[str, int] = {}
    for position, block in enumerate(content):
        key = content_block_key(block)
        # First occurrence wins if a duplicate key slipped in.
        if key is not None and key not in index:
            index[key] = position
    return index


def merge_content(existing: Optional[list[Any]], incoming: Optional[list[Any]]) -> list[Any]:
    """Merge two content sequences by stable key. Returns a new list."""
    merged = copy.deepcopy(existing) if isinstance(existing, list) else []
    if not isinstance(incoming, list):
        return merged

    index = _content_index(merged)
    for block in incoming:
        block_copy = copy.deepcopy(block)
        key = content_block_key(block)
        if key is None:
            merged.append(block_copy)
        elif key in index:
            merged[index[key]] = block_copy
        else:
            merged.append(block_copy)
            index[key] = len(merged) - 1
    return merged


def _check_envelope(value: Any, name: str) -> None:
    if value is not None and not isinstance(value, Mapping):
        raise MalformedEnvelope(
            f"{name} envelope must be an object, got {type(value).__name__}",
            details={"argument": name},
        )


def merge_envelopes(
    existing: Optional[Mapping[str, Any]],
    incoming: Optional[Mapping[str, Any]],
) -> Optional[dict[str, Any]]:
    """Fold ``incoming`` into ``existing`` and return the merged envelope.

    Top-level fields of ``incoming`` overwrite those of ``existing`` except
    ``message``, whose metadata fields are overwritten one by one (so the
    latest ``stop_reason`` and ``usage`` win) and whose ``content`` is merged
    with :func:`merge_content`. Unknown fields pass through untouched.
    """
    _check_envelope(existing, "existing")
    _check_envelope(incoming, "incoming")

    if incoming is None:
        return copy.deepcopy(dict(existing)) if existing is not None else None
    if existing is None:
        return copy.deepcopy(dict(incoming))

    merged = copy.deepcopy(dict(existing))
    for field, value in incoming.items():
        if field == MESSAGE_FIELD:
            continue
        merged[field] = copy.deepcopy(value)

    incoming_body = incoming.get(MESSAGE_FIELD)
    if not isinstance(incoming_body, Mapping):
        return merged

    body = merged.get(MESSAGE_FIELD)
    if not isinstance(body, dict):
        body = {}

    for field, value in incoming_body.items():
        if field == CONTENT_FIELD:
            continue
        body[field] = copy.deepcopy(value)

    body[CONTENT_FIELD] = merge_content(body.get(CONTENT_FIELD), incoming_body.get(CONTENT_FIELD))
    merged[MESSAGE_FIELD] = body
    return merged

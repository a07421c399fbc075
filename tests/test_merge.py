"""Merge engine: stable keys, ordering, copy isolation."""

import copy

import pytest

from convo_stream.errors import MalformedEnvelope
from convo_stream.merge import content_block_key, merge_content, merge_envelopes


def envelope(*blocks, **message_fields):
    return {"type": "assistant", "message": {**message_fields, "content": list(blocks)}}


def contents(env):
    return env["message"]["content"]


class TestContentBlockKey:
    def test_id_is_key(self):
        assert content_block_key({"id": "toolu_1", "tool_use_id": "x"}) == "toolu_1"

    def test_tool_use_id_is_prefixed(self):
        assert content_block_key({"type": "tool_result", "tool_use_id": "t1"}) == "result:t1"

    def test_null_id_falls_through(self):
        assert content_block_key({"id": None, "tool_use_id": "t1"}) == "result:t1"

    def test_no_key(self):
        assert content_block_key({"type": "text", "text": "hi"}) is None
        assert content_block_key("not a block") is None


class TestNullAlgebra:
    def test_none_existing_copies_incoming(self):
        incoming = envelope({"id": "a"})
        merged = merge_envelopes(None, incoming)
        assert merged == incoming
        assert merged is not incoming

    def test_none_incoming_copies_existing(self):
        existing = envelope({"id": "a"})
        merged = merge_envelopes(existing, None)
        assert merged == existing
        assert merged is not existing

    def test_both_none(self):
        assert merge_envelopes(None, None) is None


class TestContentMerge:
    def test_update_in_place_and_append(self):
        existing = envelope({"id": "a", "text": "foo"})
        incoming = envelope({"id": "a", "text": "foobar"}, {"id": "b", "tool_use_id": "t1"})
        merged = merge_envelopes(existing, incoming)
        assert contents(merged) == [{"id": "a", "text": "foobar"}, {"id": "b", "tool_use_id": "t1"}]

    def test_tool_result_replaces_matching_result(self):
        existing = envelope(
            {"type": "tool_use", "id": "toolu_1", "name": "Read"},
            {"type": "tool_result", "tool_use_id": "toolu_1", "content": "partial"},
        )
        incoming = envelope({"type": "tool_result", "tool_use_id": "toolu_1", "content": "full"})
        merged = merge_envelopes(existing, incoming)
        assert len(contents(merged)) == 2
        assert contents(merged)[1]["content"] == "full"

    def test_idempotent_on_stable_keys(self):
        existing = envelope({"id": "a", "text": "x"})
        incoming = envelope({"id": "a", "text": "y"}, {"id": "b"})
        once = merge_envelopes(existing, incoming)
        twice = merge_envelopes(once, incoming)
        assert contents(twice) == contents(once)

    def test_first_appearance_order_is_kept(self):
        deltas = [
            envelope({"id": "k1"}),
            envelope({"id": "k2"}, {"id": "k1", "v": 2}),
            envelope({"id": "k3"}),
            envelope({"tool_use_id": "k1"}, {"id": "k2", "v": 3}),
        ]
        merged = None
        for delta in deltas:
            merged = merge_envelopes(merged, delta)
        keys = [content_block_key(b) for b in contents(merged)]
        assert keys == ["k1", "k2", "k3", "result:k1"]

    def test_unkeyed_blocks_always_append(self):
        block = {"type": "text", "text": "hello"}
        merged = merge_envelopes(envelope(block), envelope(block))
        assert contents(merged) == [block, block]

    def test_duplicate_existing_key_first_occurrence_wins(self):
        existing = [{"id": "a", "n": 1}, {"id": "a", "n": 2}]
        merged = merge_content(existing, [{"id": "a", "n": 3}])
        assert merged == [{"id": "a", "n": 3}, {"id": "a", "n": 2}]


class TestMetadata:
    def test_top_level_fields_overwrite(self):
        existing = {"type": "assistant", "session_id": "s1", "extra": 1, "message": {"content": []}}
        incoming = {"type": "assistant", "session_id": "s2"}
        merged = merge_envelopes(existing, incoming)
        assert merged["session_id"] == "s2"
        assert merged["extra"] == 1
        assert merged["message"] == {"content": []}

    def test_body_metadata_tracks_latest_delta(self):
        existing = envelope({"id": "a"}, stop_reason=None, usage={"output_tokens": 1}, model="m")
        incoming = envelope(stop_reason="end_turn", usage={"output_tokens": 9})
        merged = merge_envelopes(existing, incoming)
        body = merged["message"]
        assert body["stop_reason"] == "end_turn"
        assert body["usage"] == {"output_tokens": 9}
        assert body["model"] == "m"
        assert body["content"] == [{"id": "a"}]


class TestMalformedInput:
    def test_missing_content_treated_as_empty(self):
        merged = merge_envelopes({"message": {"id": "m"}}, {"message": {"stop_reason": "end"}})
        assert merged["message"] == {"id": "m", "stop_reason": "end", "content": []}

    def test_non_list_content_treated_as_empty(self):
        merged = merge_envelopes(envelope({"id": "a"}), {"message": {"content": "oops"}})
        assert contents(merged) == [{"id": "a"}]

    def test_existing_without_message_body(self):
        merged = merge_envelopes({"type": "assistant"}, envelope({"id": "a"}))
        assert contents(merged) == [{"id": "a"}]

    def test_non_dict_message_is_ignored(self):
        merged = merge_envelopes(envelope({"id": "a"}), {"message": "junk", "seq": 2})
        assert contents(merged) == [{"id": "a"}]
        assert merged["seq"] == 2

    def test_non_mapping_argument_raises(self):
        with pytest.raises(MalformedEnvelope):
            merge_envelopes(["not", "an", "envelope"], None)
        with pytest.raises(MalformedEnvelope):
            merge_envelopes(None, "text")


class TestCopyIsolation:
    def test_mutating_result_leaves_inputs_alone(self):
        existing = envelope({"id": "a", "input": {"path": "x"}}, usage={"n": 1})
        incoming = envelope({"id": "b", "input": {"path": "y"}}, usage={"n": 2})
        existing_before = copy.deepcopy(existing)
        incoming_before = copy.deepcopy(incoming)

        merged = merge_envelopes(existing, incoming)
        merged["message"]["content"][0]["input"]["path"] = "changed"
        merged["message"]["content"][1]["input"]["path"] = "changed"
        merged["message"]["usage"]["n"] = 99
        merged["message"]["content"].append({"id": "c"})

        assert existing == existing_before
        assert incoming == incoming_before

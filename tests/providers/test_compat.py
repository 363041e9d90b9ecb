"""Tests for the best-effort compat source."""

from __future__ import annotations

import json

from llm_rosetta.core.genai.models import (
    BlobPart,
    FilePart,
    GenericPart,
    Message,
    ReasoningPart,
    Role,
    TextPart,
    ToolCallPart,
    ToolCallResponsePart,
    UriPart,
)
from llm_rosetta.core.metadata import get_known_fields
from llm_rosetta.providers.compat import CompatAdapter
from llm_rosetta.providers.provider import Direction


class TestMessages:
    def setup_method(self) -> None:
        self.adapter = CompatAdapter()

    def test_not_a_target(self) -> None:
        assert not self.adapter.is_target
        assert self.adapter.supports_system

    def test_accepts_any_list_of_objects(self) -> None:
        assert self.adapter.matches([{"anything": True}])
        assert not self.adapter.matches(["text"])

    def test_plain_text_field(self) -> None:
        conversation = self.adapter.to_canonical([{"role": "user", "text": "Hi"}])
        assert conversation.messages == [Message.user("Hi")]

    def test_role_aliases(self) -> None:
        conversation = self.adapter.to_canonical([{"role": "MODEL", "parts": [{"text": "Hi"}]}])
        assert conversation.messages[0].role == Role.ASSISTANT

    def test_missing_role_follows_direction(self) -> None:
        raw = [{"message": "Done."}]
        assert self.adapter.to_canonical(raw).messages[0].role == Role.USER
        assert self.adapter.to_canonical(raw, direction=Direction.OUTPUT).messages[0].role == Role.ASSISTANT

    def test_snake_case_tool_message(self) -> None:
        conversation = self.adapter.to_canonical([{"role": "tool", "tool_call_id": "c1", "content": "42"}])
        (message,) = conversation.messages
        assert message.role == Role.TOOL
        assert message.parts == [ToolCallResponsePart(id="c1", response="42")]

    def test_function_role_keeps_tool_name(self) -> None:
        conversation = self.adapter.to_canonical([{"role": "function", "name": "lookup", "content": "42"}])
        (part,) = conversation.messages[0].parts
        assert part.response == "42"
        assert get_known_fields(part.provider_metadata) == {"toolName": "lookup"}

    def test_openai_tool_calls(self) -> None:
        conversation = self.adapter.to_canonical(
            [
                {
                    "role": "assistant",
                    "tool_calls": [
                        {"id": "c1", "type": "function", "function": {"name": "f", "arguments": '{"a": 1}'}}
                    ],
                }
            ]
        )
        assert conversation.messages[0].parts == [ToolCallPart(id="c1", name="f", arguments={"a": 1})]

    def test_reasoning_and_refusal_fields(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"role": "assistant", "reasoning_content": "hmm", "refusal": "No.", "content": "Sorry."}]
        )
        reasoning, refusal, text = conversation.messages[0].parts
        assert reasoning == ReasoningPart(content="hmm")
        assert get_known_fields(refusal.provider_metadata) == {"isRefusal": True}
        assert text == TextPart(content="Sorry.")

    def test_unrecognized_message_kept_as_json(self) -> None:
        conversation = self.adapter.to_canonical([{"foo": 1}])
        assert conversation.messages[0].parts == [TextPart(content='{"foo": 1}')]

    def test_message_bag_kept(self) -> None:
        raw = [{"role": "user", "content": "Hi", "_providerMetadata": {"openai_completions": {"x": 1}}}]
        (message,) = self.adapter.to_canonical(raw).messages
        assert message == Message(
            role=Role.USER, parts=[TextPart(content="Hi")], provider_metadata={"openai_completions": {"x": 1}}
        )

    def test_bag_alone_is_not_unrecognized_content(self) -> None:
        (message,) = self.adapter.to_canonical([{"role": "user", "_provider_metadata": {"a": {"b": 1}}}]).messages
        assert message.parts == []
        assert message.provider_metadata == {"a": {"b": 1}}

    def test_tool_message_bag_kept(self) -> None:
        raw = [{"role": "tool", "tool_call_id": "c1", "content": "ok", "_provider_metadata": {"x": {"y": 1}}}]
        (message,) = self.adapter.to_canonical(raw).messages
        assert message.role == Role.TOOL
        assert message.provider_metadata == {"x": {"y": 1}}

    def test_stashed_parts_restored(self) -> None:
        stash = {"droppedParts": [{"index": 0, "part": {"type": "reasoning", "content": "hmm"}}]}
        raw = [{"role": "assistant", "content": "Yes.", "_provider_metadata": {"_known_fields": stash}}]
        (message,) = self.adapter.to_canonical(raw).messages
        assert message.parts == [ReasoningPart(content="hmm"), TextPart(content="Yes.")]
        assert message.provider_metadata is None


class TestParts:
    def setup_method(self) -> None:
        self.adapter = CompatAdapter()

    def _parts(self, content: list) -> list:
        return self.adapter.to_canonical([{"role": "user", "content": content}]).messages[0].parts

    def test_typed_parts(self) -> None:
        parts = self._parts(
            [
                {"type": "text", "text": "Look"},
                {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,AAAA"}},
                {"type": "image", "source": {"type": "url", "url": "https://example.com/cat.png"}},
                {"type": "tool_use", "id": "t1", "name": "f", "input": {}},
                {"type": "tool_result", "tool_use_id": "t1", "content": "ok"},
            ]
        )
        assert parts == [
            TextPart(content="Look"),
            BlobPart(modality="image", mime_type="image/jpeg", content="AAAA"),
            UriPart(modality="image", uri="https://example.com/cat.png"),
            ToolCallPart(id="t1", name="f", arguments={}),
            ToolCallResponsePart(id="t1", response="ok"),
        ]

    def test_audio_format_mapped(self) -> None:
        (part,) = self._parts([{"type": "input_audio", "input_audio": {"data": "AAAA", "format": "wav"}}])
        assert part == BlobPart(modality="audio", mime_type="audio/wav", content="AAAA")

    def test_redacted_reasoning(self) -> None:
        (part,) = self._parts([{"type": "redacted_thinking", "data": "xyz"}])
        assert isinstance(part, ReasoningPart)
        assert get_known_fields(part.provider_metadata) == {"originalType": "redacted-reasoning"}

    def test_gemini_style_parts(self) -> None:
        conversation = self.adapter.to_canonical(
            [
                {
                    "role": "model",
                    "parts": [
                        {"text": "hmm", "thought": True},
                        {"function_call": {"name": "f", "args": {"a": 1}}},
                        {"inline_data": {"mime_type": "image/png", "data": "AAAA"}},
                    ],
                }
            ]
        )
        reasoning, call, blob = conversation.messages[0].parts
        assert reasoning == ReasoningPart(content="hmm")
        assert call == ToolCallPart(name="f", arguments={"a": 1})
        assert blob.content == "AAAA"

    def test_unknown_typed_part_with_text(self) -> None:
        (part,) = self._parts([{"type": "citation", "text": "[1]"}])
        assert isinstance(part, GenericPart)
        assert part.type == "citation"
        assert part.model_extra == {"content": "[1]"}

    def test_file_and_text_sources(self) -> None:
        parts = self._parts(
            [
                {"type": "document", "source": {"type": "file", "file_id": "file-1"}},
                {"type": "document", "source": {"type": "text", "media_type": "text/plain", "data": "notes"}},
            ]
        )
        assert parts == [
            FilePart(modality="document", file_id="file-1"),
            BlobPart(modality="document", mime_type="text/plain", content="notes"),
        ]

    def test_unknown_source_kept_as_json(self) -> None:
        (part,) = self._parts([{"type": "image", "source": {"type": "mystery", "ref": "x"}}])
        assert part == TextPart(content='{"type": "mystery", "ref": "x"}')

    def test_base64_source_without_data_kept_as_json(self) -> None:
        (part,) = self._parts([{"type": "image", "source": {"type": "base64", "media_type": "image/png"}}])
        assert isinstance(part, TextPart)
        assert json.loads(part.content) == {"type": "base64", "media_type": "image/png"}

    def test_part_bag_kept(self) -> None:
        cached = {"anthropic": {"cache_control": {"type": "ephemeral"}}}
        (part,) = self._parts([{"type": "text", "text": "Hi", "_provider_metadata": cached}])
        assert part == TextPart(content="Hi", provider_metadata=cached)

    def test_part_bag_merged_with_known_fields(self) -> None:
        bag = {"anthropic": {"x": 1}}
        (part,) = self._parts([{"type": "redacted_thinking", "data": "xyz", "_providerMetadata": bag}])
        assert part.provider_metadata == {
            "anthropic": {"x": 1},
            "_known_fields": {"originalType": "redacted-reasoning"},
        }


class TestSystem:
    def setup_method(self) -> None:
        self.adapter = CompatAdapter()

    def test_string(self) -> None:
        conversation = self.adapter.to_canonical([], system="Be brief.")
        assert conversation.system == [TextPart(content="Be brief.")]

    def test_object_with_text(self) -> None:
        conversation = self.adapter.to_canonical([], system={"content": "Be brief."})
        assert conversation.system == [TextPart(content="Be brief.")]

    def test_object_without_text_kept_as_json(self) -> None:
        conversation = self.adapter.to_canonical([], system={"level": 3})
        assert conversation.system == [TextPart(content='{"level": 3}')]

    def test_list_of_parts(self) -> None:
        conversation = self.adapter.to_canonical([], system=[{"type": "text", "text": "a"}, {"text": "b"}])
        assert conversation.system == [TextPart(content="a"), TextPart(content="b")]

"""Tests for the PromptL adapter."""

from __future__ import annotations

from typing import Any

import pytest

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
from llm_rosetta.core.metadata import MetadataMode, get_known_fields
from llm_rosetta.errors import SchemaMismatchError
from llm_rosetta.providers.promptl import PromptlAdapter

TOOL_MESSAGE: dict[str, Any] = {
    "role": "tool",
    "toolName": "lookup",
    "toolId": "c1",
    "content": [
        {"type": "tool-result", "toolCallId": "c1", "toolName": "lookup", "result": {"v": 1}, "isError": False}
    ],
}


class TestToCanonical:
    def setup_method(self) -> None:
        self.adapter = PromptlAdapter()

    def test_user_name_kept(self) -> None:
        conversation = self.adapter.to_canonical([{"role": "user", "name": "ana", "content": "Hi"}])
        (message,) = conversation.messages
        assert message.name == "ana"
        assert message.parts == [TextPart(content="Hi")]

    def test_tool_result_message(self) -> None:
        conversation = self.adapter.to_canonical([TOOL_MESSAGE])
        (message,) = conversation.messages
        assert message.role == Role.TOOL
        (part,) = message.parts
        assert part.response == {"v": 1}
        assert get_known_fields(part.provider_metadata) == {"toolName": "lookup"}

    def test_legacy_tool_message(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"role": "tool", "toolName": "lookup", "toolId": "c1", "content": [{"type": "text", "text": "42"}]}]
        )
        (part,) = conversation.messages[0].parts
        assert isinstance(part, ToolCallResponsePart)
        assert (part.id, part.response) == ("c1", "42")
        assert get_known_fields(part.provider_metadata) == {"toolName": "lookup"}

    def test_error_result_flagged(self) -> None:
        message = {
            "role": "tool",
            "content": [
                {"type": "tool-result", "toolCallId": "c1", "toolName": "f", "result": "boom", "isError": True}
            ],
        }
        part = self.adapter.to_canonical([message]).messages[0].parts[0]
        assert get_known_fields(part.provider_metadata)["isError"] is True

    def test_tool_arguments_fallback(self) -> None:
        conversation = self.adapter.to_canonical(
            [
                {
                    "role": "assistant",
                    "content": [{"type": "tool-call", "toolCallId": "c1", "toolName": "f", "toolArguments": {"a": 1}}],
                }
            ]
        )
        assert conversation.messages[0].parts == [ToolCallPart(id="c1", name="f", arguments={"a": 1})]

    def test_legacy_tool_calls_merged(self) -> None:
        conversation = self.adapter.to_canonical(
            [
                {
                    "role": "assistant",
                    "content": [{"type": "tool-call", "toolCallId": "c1", "toolName": "f", "args": {}}],
                    "toolCalls": [
                        {"id": "c1", "name": "f", "arguments": {}},
                        {"id": "c2", "name": "g", "arguments": {"b": 2}},
                    ],
                }
            ]
        )
        assert [part.id for part in conversation.messages[0].parts] == ["c1", "c2"]

    def test_redacted_reasoning(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"role": "assistant", "content": [{"type": "redacted-reasoning", "data": "xyz"}]}]
        )
        (part,) = conversation.messages[0].parts
        assert isinstance(part, ReasoningPart)
        assert part.content == "xyz"
        assert get_known_fields(part.provider_metadata) == {"originalType": "redacted-reasoning"}

    def test_image_url(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"role": "user", "content": [{"type": "image", "image": "https://example.com/cat.png"}]}]
        )
        assert conversation.messages[0].parts == [UriPart(modality="image", uri="https://example.com/cat.png")]

    def test_unknown_content_type_rejected(self) -> None:
        with pytest.raises(SchemaMismatchError):
            self.adapter.to_canonical([{"role": "user", "content": [{"type": "audio", "audio": "AAAA"}]}])


class TestToProviderFormat:
    def setup_method(self) -> None:
        self.adapter = PromptlAdapter()

    def test_content_always_a_list(self) -> None:
        output = self.adapter.to_provider_format([Message.system("Be brief."), Message.user("Hi")])
        assert output.messages == [
            {"role": "system", "content": [{"type": "text", "text": "Be brief."}]},
            {"role": "user", "content": [{"type": "text", "text": "Hi"}]},
        ]
        assert output.system is None

    def test_tool_call_emits_both_argument_keys(self) -> None:
        message = Message.assistant(tool_calls=[ToolCallPart(id="c1", name="f", arguments={"a": 1})])
        (emitted,) = self.adapter.to_provider_format([message]).messages
        assert emitted["content"] == [
            {"type": "tool-call", "toolCallId": "c1", "toolName": "f", "args": {"a": 1}, "toolArguments": {"a": 1}}
        ]

    def test_non_object_arguments_replaced(self) -> None:
        message = Message.assistant(tool_calls=[ToolCallPart(id="c1", name="f", arguments="{bad")])
        (emitted,) = self.adapter.to_provider_format([message]).messages
        assert emitted["content"][0]["args"] == {}

    def test_one_tool_message_per_response(self) -> None:
        messages = [
            Message.assistant(
                tool_calls=[ToolCallPart(id="a", name="f", arguments={}), ToolCallPart(id="b", name="g", arguments={})]
            ),
            Message(
                role=Role.TOOL,
                parts=[ToolCallResponsePart(id="a", response="1"), ToolCallResponsePart(id="b", response="2")],
            ),
        ]
        output = self.adapter.to_provider_format(messages)
        tool_messages = output.messages[1:]
        assert [(m["toolName"], m["toolId"]) for m in tool_messages] == [("f", "a"), ("g", "b")]
        assert tool_messages[0]["content"] == [
            {"type": "tool-result", "toolCallId": "a", "toolName": "f", "result": "1", "isError": False}
        ]

    def test_responses_split_out_of_assistant(self) -> None:
        message = Message(
            role=Role.ASSISTANT,
            parts=[TextPart(content="Done."), ToolCallResponsePart(id="c1", response="ok")],
        )
        output = self.adapter.to_provider_format([message])
        assert [m["role"] for m in output.messages] == ["assistant", "tool"]
        assert output.messages[1]["toolName"] == "unknown"

    def test_redacted_reasoning_restored(self) -> None:
        part = ReasoningPart(content="xyz", provider_metadata={"_known_fields": {"originalType": "redacted-reasoning"}})
        (emitted,) = self.adapter.to_provider_format([Message(role=Role.ASSISTANT, parts=[part])]).messages
        assert emitted["content"] == [{"type": "redacted-reasoning", "data": "xyz"}]

    def test_non_image_media_as_file(self) -> None:
        message = Message(role=Role.USER, parts=[UriPart(modality="document", uri="https://example.com/a.pdf")])
        (emitted,) = self.adapter.to_provider_format([message]).messages
        assert emitted["content"] == [
            {"type": "file", "file": "https://example.com/a.pdf", "mimeType": "application/document"}
        ]


class TestRoundTrip:
    def test_strip_restores_tool_message(self) -> None:
        adapter = PromptlAdapter()
        conversation = adapter.to_canonical([TOOL_MESSAGE])
        assert adapter.to_provider_format(conversation.messages).messages == [TOOL_MESSAGE]

    def test_preserve_round_trip(self) -> None:
        adapter = PromptlAdapter()
        raw = [
            {"role": "user", "name": "ana", "content": [{"type": "text", "text": "Hi", "sourceRef": {"line": 3}}]},
            {
                "role": "assistant",
                "content": [
                    {"type": "reasoning", "text": "hmm"},
                    {"type": "redacted-reasoning", "data": "xyz"},
                    {"type": "tool-call", "toolCallId": "c1", "toolName": "lookup", "args": {"q": "x"}},
                ],
            },
            TOOL_MESSAGE,
        ]
        conversation = adapter.to_canonical(raw)
        output = adapter.to_provider_format(conversation.messages, MetadataMode.PRESERVE)
        assert adapter.to_canonical(output.messages).messages == conversation.messages

    def test_preserve_recovers_media_and_generic_parts(self) -> None:
        adapter = PromptlAdapter()
        messages = [
            Message(
                role=Role.USER,
                parts=[
                    TextPart(content="Look"),
                    BlobPart(modality="image", mime_type="image/png", content="AAAA"),
                    FilePart(modality="document", mime_type="application/pdf", file_id="file-1"),
                ],
            ),
            Message(
                role=Role.ASSISTANT,
                parts=[
                    TextPart(content="Done."),
                    GenericPart(type="citation", content="[1]", url="https://example.com"),
                    GenericPart(type="web_search_call", id="ws_1"),
                ],
            ),
        ]
        output = adapter.to_provider_format(messages, MetadataMode.PRESERVE)
        assert [item["type"] for item in output.messages[1]["content"]] == ["text", "text"]
        assert adapter.to_canonical(output.messages).messages == messages

    def test_strip_emits_generic_text_plainly(self) -> None:
        message = Message(role=Role.ASSISTANT, parts=[GenericPart(type="citation", content="[1]", url="https://x.io")])
        output = PromptlAdapter().to_provider_format([message])
        assert output.messages == [{"role": "assistant", "content": [{"type": "text", "text": "[1]"}]}]

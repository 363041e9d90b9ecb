"""Tests for the OpenAI Chat Completions adapter."""

from __future__ import annotations

import pytest

from llm_rosetta.core.genai.models import (
    BlobPart,
    FilePart,
    Message,
    ReasoningPart,
    Role,
    TextPart,
    ToolCallPart,
    ToolCallResponsePart,
    UriPart,
)
from llm_rosetta.core.metadata import MetadataMode, get_known_fields
from llm_rosetta.errors import SchemaMismatchError, SystemNotSupportedError
from llm_rosetta.providers.openai_completions import OpenAICompletionsAdapter


class TestToCanonical:
    def setup_method(self) -> None:
        self.adapter = OpenAICompletionsAdapter()

    def test_system_extracted(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"role": "system", "content": "Be brief."}, {"role": "user", "content": "Hi"}]
        )
        assert conversation.messages == [Message.user("Hi")]
        assert conversation.system is not None
        assert conversation.system[0].content == "Be brief."

    def test_tool_call_arguments_parsed(self) -> None:
        conversation = self.adapter.to_canonical(
            [
                {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {"id": "c1", "type": "function", "function": {"name": "f", "arguments": '{"a": 1}'}}
                    ],
                }
            ]
        )
        (part,) = conversation.messages[0].parts
        assert part == ToolCallPart(id="c1", name="f", arguments={"a": 1})

    def test_unparsable_arguments_kept_verbatim(self) -> None:
        conversation = self.adapter.to_canonical(
            [
                {
                    "role": "assistant",
                    "tool_calls": [{"id": "c1", "type": "function", "function": {"name": "f", "arguments": "{bad"}}],
                }
            ]
        )
        assert conversation.messages[0].parts[0].arguments == "{bad"

    def test_tool_message(self) -> None:
        conversation = self.adapter.to_canonical([{"role": "tool", "tool_call_id": "c1", "content": "42"}])
        (message,) = conversation.messages
        assert message.role == Role.TOOL
        assert message.parts == [ToolCallResponsePart(id="c1", response="42")]

    def test_legacy_function_message(self) -> None:
        conversation = self.adapter.to_canonical([{"role": "function", "name": "f", "content": "42"}])
        (part,) = conversation.messages[0].parts
        assert part.id is None
        assert get_known_fields(part.provider_metadata) == {"toolName": "f"}

    def test_refusal_flagged(self) -> None:
        conversation = self.adapter.to_canonical([{"role": "assistant", "refusal": "I can't help."}])
        (part,) = conversation.messages[0].parts
        assert part.content == "I can't help."
        assert get_known_fields(part.provider_metadata) == {"isRefusal": True}

    def test_image_data_url_becomes_blob(self) -> None:
        conversation = self.adapter.to_canonical(
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA", "detail": "low"}},
                        {"type": "image_url", "image_url": {"url": "https://example.com/cat.png"}},
                    ],
                }
            ]
        )
        blob, uri = conversation.messages[0].parts
        assert isinstance(blob, BlobPart)
        assert (blob.mime_type, blob.content) == ("image/png", "AAAA")
        assert blob.provider_metadata == {"openai_completions": {"detail": "low"}}
        assert isinstance(uri, UriPart)
        assert uri.uri == "https://example.com/cat.png"

    def test_file_id(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"role": "user", "content": [{"type": "file", "file": {"file_id": "file-1"}}]}]
        )
        assert conversation.messages[0].parts == [FilePart(modality="document", file_id="file-1")]

    def test_extra_fields_kept(self) -> None:
        conversation = self.adapter.to_canonical([{"role": "user", "content": "Hi", "x_trace": "t1"}])
        assert conversation.messages[0].provider_metadata == {"openai_completions": {"x_trace": "t1"}}

    def test_schema_mismatch(self) -> None:
        with pytest.raises(SchemaMismatchError):
            self.adapter.to_canonical([{"role": "tool", "content": "42"}])

    def test_no_system_channel(self) -> None:
        assert not self.adapter.supports_system
        with pytest.raises(SystemNotSupportedError):
            self.adapter.to_canonical([], system="Be brief.")


class TestToProviderFormat:
    def setup_method(self) -> None:
        self.adapter = OpenAICompletionsAdapter()

    def test_single_text_collapses_to_string(self) -> None:
        output = self.adapter.to_provider_format([Message.user("Hi")])
        assert output.messages == [{"role": "user", "content": "Hi"}]
        assert output.system is None

    def test_multi_part_user_content(self) -> None:
        message = Message(
            role=Role.USER,
            parts=[TextPart(content="Look"), BlobPart(modality="image", mime_type="image/png", content="AAAA")],
        )
        output = self.adapter.to_provider_format([message])
        assert output.messages[0]["content"] == [
            {"type": "text", "text": "Look"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
        ]

    def test_tool_responses_split_into_tool_messages(self) -> None:
        message = Message(
            role=Role.TOOL,
            parts=[ToolCallResponsePart(id="a", response={"v": 1}), ToolCallResponsePart(id="b", response="ok")],
        )
        output = self.adapter.to_provider_format([message])
        assert output.messages == [
            {"role": "tool", "tool_call_id": "a", "content": '{"v": 1}'},
            {"role": "tool", "tool_call_id": "b", "content": "ok"},
        ]

    def test_reasoning_dropped(self) -> None:
        message = Message(role=Role.ASSISTANT, parts=[ReasoningPart(content="hmm"), TextPart(content="Yes.")])
        output = self.adapter.to_provider_format([message])
        assert output.messages == [{"role": "assistant", "content": "Yes."}]

    def test_refusal_emitted(self) -> None:
        part = TextPart(content="No.", provider_metadata={"_known_fields": {"isRefusal": True}})
        output = self.adapter.to_provider_format([Message(role=Role.ASSISTANT, parts=[part])])
        assert output.messages == [{"role": "assistant", "content": None, "refusal": "No."}]

    def test_unknown_role_mapped_to_user(self) -> None:
        output = self.adapter.to_provider_format([Message(role="critic", parts=[TextPart(content="meh")])])
        assert output.messages == [{"role": "user", "content": "meh"}]

    def test_passthrough_spreads_message_extras(self) -> None:
        message = Message(
            role=Role.USER, parts=[TextPart(content="Hi")], provider_metadata={"openai_completions": {"x": 1}}
        )
        output = self.adapter.to_provider_format([message], MetadataMode.PASSTHROUGH)
        assert output.messages == [{"role": "user", "content": "Hi", "x": 1}]

    def test_strip_drops_image_detail(self) -> None:
        image = BlobPart(
            modality="image",
            mime_type="image/png",
            content="AAAA",
            provider_metadata={"openai_completions": {"detail": "high"}},
        )
        output = self.adapter.to_provider_format([Message(role=Role.USER, parts=[TextPart(content="Look"), image])])
        assert output.messages[0]["content"][1] == {
            "type": "image_url",
            "image_url": {"url": "data:image/png;base64,AAAA"},
        }

    def test_strip_drops_filename(self) -> None:
        document = FilePart(
            modality="document", file_id="file-1", provider_metadata={"openai_completions": {"filename": "a.pdf"}}
        )
        output = self.adapter.to_provider_format([Message(role=Role.USER, parts=[TextPart(content="Read"), document])])
        assert output.messages[0]["content"][1] == {"type": "file", "file": {"file_id": "file-1"}}

    def test_passthrough_keeps_image_detail(self) -> None:
        image = UriPart(
            modality="image",
            uri="https://example.com/a.png",
            provider_metadata={"openai_completions": {"detail": "low"}},
        )
        message = Message(role=Role.USER, parts=[TextPart(content="Look"), image])
        output = self.adapter.to_provider_format([message], MetadataMode.PASSTHROUGH)
        assert output.messages[0]["content"][1] == {
            "type": "image_url",
            "image_url": {"url": "https://example.com/a.png", "detail": "low"},
        }


class TestRoundTrip:
    def test_preserve_round_trip(self) -> None:
        adapter = OpenAICompletionsAdapter()
        messages = [
            Message(
                role=Role.USER,
                parts=[
                    TextPart(content="Hi", provider_metadata={"anthropic": {"cache_control": {"type": "ephemeral"}}})
                ],
            ),
            Message(
                role=Role.ASSISTANT,
                parts=[TextPart(content="Calling."), ToolCallPart(id="c1", name="f", arguments={"a": 1})],
            ),
            Message(role=Role.TOOL, parts=[ToolCallResponsePart(id="c1", response="done")]),
        ]
        output = adapter.to_provider_format(messages, MetadataMode.PRESERVE)
        back = adapter.to_canonical(output.messages)
        assert back.messages == messages

    def test_preserve_keeps_dropped_reasoning(self) -> None:
        adapter = OpenAICompletionsAdapter()
        messages = [
            Message(
                role=Role.ASSISTANT,
                parts=[ReasoningPart(content="hmm"), TextPart(content="Yes."), ToolCallPart(id="c1", name="f")],
            ),
            Message(role=Role.TOOL, parts=[ToolCallResponsePart(id="c1", response={"v": 1})]),
        ]
        output = adapter.to_provider_format(messages, MetadataMode.PRESERVE)
        assert output.messages[1]["content"] == '{"v": 1}'

        back = adapter.to_canonical(output.messages)
        assert [part.type for part in back.messages[0].parts] == ["reasoning", "text", "tool_call"]
        assert back.messages[0].parts[0] == ReasoningPart(content="hmm")
        assert back.messages[1].parts[0].response == {"v": 1}

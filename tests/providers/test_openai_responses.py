"""Tests for the OpenAI Responses source adapter."""

from __future__ import annotations

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
from llm_rosetta.core.metadata import get_known_fields
from llm_rosetta.errors import SchemaMismatchError
from llm_rosetta.providers.openai_responses import OpenAIResponsesAdapter


class TestItems:
    def setup_method(self) -> None:
        self.adapter = OpenAIResponsesAdapter()

    def test_source_only(self) -> None:
        assert not self.adapter.is_target
        assert not self.adapter.supports_system

    def test_easy_input_message(self) -> None:
        conversation = self.adapter.to_canonical([{"role": "user", "content": "Hi"}])
        assert conversation.messages == [Message.user("Hi")]

    def test_developer_message_stays_inline(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"type": "message", "role": "developer", "content": [{"type": "input_text", "text": "Be brief."}]}]
        )
        assert conversation.system is None
        assert conversation.messages[0].role == "developer"

    def test_system_message_extracted(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"role": "system", "content": "Be brief."}, {"role": "user", "content": "Hi"}]
        )
        assert conversation.messages == [Message.user("Hi")]
        assert [part.content for part in conversation.system] == ["Be brief."]

    def test_function_call_round(self) -> None:
        conversation = self.adapter.to_canonical(
            [
                {"type": "function_call", "call_id": "c1", "name": "lookup", "arguments": '{"q": "x"}', "id": "fc_1"},
                {"type": "function_call_output", "call_id": "c1", "output": "sunny"},
            ]
        )
        call, output = conversation.messages
        assert call.role == Role.ASSISTANT
        assert call.parts == [
            ToolCallPart(
                id="c1", name="lookup", arguments={"q": "x"}, provider_metadata={"openai_responses": {"id": "fc_1"}}
            )
        ]
        assert output.role == Role.TOOL
        assert output.parts == [ToolCallResponsePart(id="c1", response="sunny")]

    def test_json_output_decoded(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"type": "function_call_output", "call_id": "c1", "output": '{"temp": 20}'}]
        )
        assert conversation.messages[0].parts[0].response == {"temp": 20}

    def test_reasoning_summaries(self) -> None:
        conversation = self.adapter.to_canonical(
            [
                {
                    "type": "reasoning",
                    "id": "rs_1",
                    "summary": [{"type": "summary_text", "text": "a"}, {"type": "summary_text", "text": "b"}],
                }
            ]
        )
        first, second = conversation.messages[0].parts
        assert first == ReasoningPart(content="a", provider_metadata={"openai_responses": {"id": "rs_1"}})
        assert second == ReasoningPart(content="b")

    def test_encrypted_reasoning_keeps_metadata_on_message(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"type": "reasoning", "summary": [], "encrypted_content": "opaque"}]
        )
        (message,) = conversation.messages
        assert message.parts == []
        assert message.provider_metadata == {"openai_responses": {"encrypted_content": "opaque"}}

    def test_hosted_tool_items_generic(self) -> None:
        search = {"type": "web_search_call", "id": "ws_1", "status": "completed"}
        output = {"type": "computer_call_output", "call_id": "cc_1", "output": {"type": "input_image"}}
        conversation = self.adapter.to_canonical([search, output])
        search_message, output_message = conversation.messages

        assert search_message.role == Role.ASSISTANT
        (part,) = search_message.parts
        assert isinstance(part, GenericPart)
        assert part.type == "web_search_call"
        assert part.provider_metadata == {"openai_responses": search}
        assert output_message.role == Role.TOOL


class TestContentParts:
    def setup_method(self) -> None:
        self.adapter = OpenAIResponsesAdapter()

    def _parts(self, content: list) -> list:
        return self.adapter.to_canonical([{"role": "user", "content": content}]).messages[0].parts

    def test_images(self) -> None:
        parts = self._parts(
            [
                {"type": "input_image", "image_url": "data:image/png;base64,AAAA", "detail": "high"},
                {"type": "input_image", "image_url": "https://example.com/cat.png"},
                {"type": "input_image", "file_id": "file-1"},
            ]
        )
        assert parts == [
            BlobPart(
                modality="image",
                mime_type="image/png",
                content="AAAA",
                provider_metadata={"openai_responses": {"detail": "high"}},
            ),
            UriPart(modality="image", uri="https://example.com/cat.png"),
            FilePart(modality="image", file_id="file-1"),
        ]

    def test_files_and_audio(self) -> None:
        parts = self._parts(
            [
                {"type": "input_file", "file_id": "file-2", "filename": "a.pdf"},
                {"type": "input_audio", "data": "AAAA", "format": "mp3"},
            ]
        )
        document, audio = parts
        assert document == FilePart(
            modality="document", file_id="file-2", provider_metadata={"openai_responses": {"filename": "a.pdf"}}
        )
        assert audio == BlobPart(modality="audio", mime_type="audio/mp3", content="AAAA")

    def test_refusal_flagged(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"role": "assistant", "content": [{"type": "refusal", "refusal": "No."}]}]
        )
        (part,) = conversation.messages[0].parts
        assert part.content == "No."
        assert get_known_fields(part.provider_metadata) == {"isRefusal": True}

    def test_output_text_keeps_annotations(self) -> None:
        conversation = self.adapter.to_canonical(
            [{"role": "assistant", "content": [{"type": "output_text", "text": "Hi", "annotations": []}]}]
        )
        assert conversation.messages[0].parts == [
            TextPart(content="Hi", provider_metadata={"openai_responses": {"annotations": []}})
        ]

    def test_untyped_item_without_role_rejected(self) -> None:
        with pytest.raises(SchemaMismatchError):
            self.adapter.to_canonical([{"content": "Hi"}])

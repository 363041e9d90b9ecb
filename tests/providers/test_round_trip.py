"""Canonical -> provider -> canonical round trips across every target format."""

from __future__ import annotations

from typing import Any

import pytest

from llm_rosetta.core.genai.models import (
    BlobPart,
    FilePart,
    GenericPart,
    Message,
    Modality,
    ReasoningPart,
    Role,
    TextPart,
    ToolCallPart,
    ToolCallResponsePart,
    UriPart,
    dump,
)
from llm_rosetta.core.keys import PROVIDER_METADATA
from llm_rosetta.core.metadata import CANONICAL_NOTES, MetadataMode
from llm_rosetta.core.system import reinsert_system
from llm_rosetta.providers import DEFAULT_REGISTRY

CONVERSATION = [
    Message.system("Be brief."),
    Message(
        role=Role.USER,
        parts=[
            TextPart(content="Look"),
            BlobPart(modality=Modality.IMAGE, mime_type="image/png", content="AAAA"),
            UriPart(modality=Modality.IMAGE, uri="https://example.com/cat.png"),
            FilePart(modality=Modality.DOCUMENT, file_id="file-1"),
        ],
    ),
    Message(
        role=Role.ASSISTANT,
        parts=[
            ReasoningPart(content="think"),
            TextPart(content="Checking."),
            ToolCallPart(id="c1", name="lookup", arguments={"q": "x"}),
        ],
    ),
    Message(role=Role.TOOL, parts=[ToolCallResponsePart(id="c1", response={"r": 2})]),
    Message(
        role=Role.ASSISTANT,
        parts=[
            TextPart(content="Done."),
            GenericPart(type="citation", content="[1]", url="https://example.com"),
            GenericPart(type="web_search_call", id="ws_1"),
        ],
    ),
]

TARGETS = [adapter.tag for adapter in DEFAULT_REGISTRY.targets()]


def _shape(messages: list[Message]) -> list[tuple[str, list[dict[str, Any]]]]:
    """Roles and parts of *messages*, without metadata bags."""
    return [
        (message.role, [{k: v for k, v in dump(part).items() if k != PROVIDER_METADATA} for part in message.parts])
        for message in messages
    ]


def _all_keys(value: Any) -> set[str]:
    if isinstance(value, dict):
        keys = set(value)
        for item in value.values():
            keys |= _all_keys(item)
        return keys
    if isinstance(value, list):
        return set().union(*(_all_keys(item) for item in value)) if value else set()
    return set()


class TestPreserveRoundTrip:
    @pytest.mark.parametrize("target", TARGETS)
    def test_every_part_variant_survives(self, target: str) -> None:
        adapter = DEFAULT_REGISTRY.require(target)

        output = adapter.to_provider_format(CONVERSATION, MetadataMode.PRESERVE)
        conversation = adapter.to_canonical(output.messages, system=output.system)
        rebuilt = reinsert_system(conversation.messages, conversation.system)

        assert _shape(rebuilt) == _shape(CONVERSATION)

    @pytest.mark.parametrize("target", TARGETS)
    def test_no_notes_left_on_parts(self, target: str) -> None:
        adapter = DEFAULT_REGISTRY.require(target)

        output = adapter.to_provider_format(CONVERSATION, MetadataMode.PRESERVE)
        conversation = adapter.to_canonical(output.messages, system=output.system)

        for message in conversation.messages:
            assert CANONICAL_NOTES not in _all_keys(dump(message))


class TestStripEmission:
    @pytest.mark.parametrize("target", TARGETS)
    def test_no_bookkeeping_fields(self, target: str) -> None:
        output = DEFAULT_REGISTRY.require(target).to_provider_format(CONVERSATION, MetadataMode.STRIP)

        keys = _all_keys(output.messages) | _all_keys(output.system)
        assert PROVIDER_METADATA not in keys
        assert CANONICAL_NOTES not in keys

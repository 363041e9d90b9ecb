"""Anthropic Messages API adapter.

Key differences from the canonical form:
- System instructions are a separate top-level value (string or text blocks).
- Only ``user`` and ``assistant`` roles exist; tool results are ``tool_result``
  blocks inside user messages.
- ``stop_reason`` uses Anthropic's own vocabulary.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from llm_rosetta.core.genai.models import (
    BlobPart,
    FilePart,
    FinishReason,
    GenericPart,
    Message,
    Modality,
    ReasoningPart,
    Role,
    TextPart,
    ToolCallPart,
    ToolCallResponsePart,
    UriPart,
)
from llm_rosetta.core.keys import IS_ERROR, ORIGINAL_TYPE
from llm_rosetta.core.metadata import (
    MetadataMode,
    apply_metadata,
    collapse_parts_metadata,
    emission_entry,
    extract_extra_fields,
    get_known_fields,
    note_canonical,
    read_metadata,
    stash_dropped_parts,
    store_metadata,
    take_canonical,
)
from llm_rosetta.core.system import extract_system
from llm_rosetta.core.utils import media_fields, parse_json_if_string, rebuild_media
from llm_rosetta.providers.anthropic.models import MESSAGES, SYSTEM
from llm_rosetta.providers.provider import Direction, Provider, ProviderAdapter, ProviderOutput, prepare_messages

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

_PROVIDER = Provider.ANTHROPIC

REDACTED_REASONING = "redacted-reasoning"

STOP_REASONS: dict[str, str] = {
    "end_turn": FinishReason.STOP,
    "max_tokens": FinishReason.LENGTH,
    "stop_sequence": FinishReason.STOP,
    "tool_use": FinishReason.TOOL_CALL,
    "refusal": FinishReason.CONTENT_FILTER,
}
_FINISH_REASONS: dict[str, str] = {
    FinishReason.STOP: "end_turn",
    FinishReason.LENGTH: "max_tokens",
    FinishReason.TOOL_CALL: "tool_use",
    FinishReason.CONTENT_FILTER: "refusal",
}

_MESSAGE_KEYS = ("role", "content")
_BLOCK_KEYS: dict[str, tuple[str, ...]] = {
    "text": ("type", "text"),
    "image": ("type", "source"),
    "document": ("type", "source"),
    "thinking": ("type", "thinking"),
    "redacted_thinking": ("type", "data"),
    "tool_use": ("id", "name", "input"),
    "server_tool_use": ("id", "name", "input"),
    "tool_result": ("type", "tool_use_id", "content", "is_error"),
}
_SOURCE_KEYS = ("type", "media_type", "data", "url", "file_id")

# Fields placed structurally on emission rather than spread.
_CONSUMED = ("type", "signature", "stop_reason")

# Generic parts that are Anthropic blocks of their own.
_GENERIC_BLOCKS = ("web_search_tool_result", "search_result", "document")


class AnthropicAdapter(ProviderAdapter):
    provider = _PROVIDER
    name = "Anthropic"
    messages_schema = MESSAGES
    system_schema = SYSTEM

    # -- provider -> canonical ---------------------------------------------

    def convert_messages(self, messages: list[Any], direction: Direction) -> list[Message]:
        return [_message_to_canonical(message) for message in messages]

    def convert_system(self, system: Any) -> list[Any]:
        if isinstance(system, str):
            return [TextPart(content=system)]
        return [_block_to_canonical(block) for block in system]

    # -- canonical -> provider ---------------------------------------------

    def to_provider_format(
        self,
        messages: Sequence[Message],
        mode: MetadataMode = MetadataMode.STRIP,
    ) -> ProviderOutput:
        mode = MetadataMode(mode)
        conversation = extract_system(prepare_messages(messages))

        system: list[dict[str, Any]] = []
        for part in conversation.system or []:
            if isinstance(part, TextPart):
                system.append(_emit({"type": "text", "text": part.content}, part.provider_metadata, mode))
            else:
                logger.debug("Dropping %s part from system: Anthropic accepts text only", part.type)

        converted = [_message_from_canonical(message, mode) for message in conversation.messages]
        return ProviderOutput(messages=converted, system=system or None)


# ---------------------------------------------------------------------------
# Ingestion helpers
# ---------------------------------------------------------------------------


def _message_to_canonical(raw: dict[str, Any]) -> Message:
    extra = extract_extra_fields(raw, _MESSAGE_KEYS)
    bag = store_metadata(_PROVIDER, extra, existing=read_metadata(raw))
    content = raw["content"]

    if isinstance(content, str):
        parts: list[Any] = [TextPart(content=content)]
    else:
        parts = [_block_to_canonical(block) for block in content]

    role = raw["role"]
    if role == "user" and parts and all(isinstance(p, ToolCallResponsePart) for p in parts):
        role = Role.TOOL

    stop_reason = raw.get("stop_reason")
    finish_reason = STOP_REASONS.get(stop_reason, stop_reason) if stop_reason else None
    return Message(role=role, parts=parts, finish_reason=finish_reason, provider_metadata=bag)


def _block_to_canonical(block: dict[str, Any]) -> Any:
    kind = block["type"]
    notes, existing = take_canonical(read_metadata(block), _PROVIDER)
    known_keys = _BLOCK_KEYS.get(kind)
    if known_keys is None:
        return GenericPart(**block)

    extra = extract_extra_fields(block, known_keys)

    if kind == "text":
        return TextPart(content=block["text"], provider_metadata=store_metadata(_PROVIDER, extra, existing=existing))

    if kind == "thinking":
        return ReasoningPart(
            content=block["thinking"], provider_metadata=store_metadata(_PROVIDER, extra, existing=existing)
        )

    if kind == "redacted_thinking":
        return ReasoningPart(
            content=block["data"],
            provider_metadata=store_metadata(
                _PROVIDER, extra, existing=existing, known={ORIGINAL_TYPE: REDACTED_REASONING}
            ),
        )

    if kind in ("tool_use", "server_tool_use"):
        return ToolCallPart(
            id=block["id"],
            name=block["name"],
            arguments=block.get("input"),
            provider_metadata=store_metadata(_PROVIDER, extra, existing=existing),
        )

    if kind == "tool_result":
        return ToolCallResponsePart(
            id=block["tool_use_id"],
            response=_decode(block.get("content"), notes),
            provider_metadata=store_metadata(
                _PROVIDER, extra, existing=existing, known={IS_ERROR: block.get("is_error")}
            ),
        )

    return rebuild_media(_media_to_canonical(block, extra, existing), notes)


def _decode(content: Any, notes: dict[str, Any]) -> Any:
    if notes.get("response") == "json":
        return parse_json_if_string(content)
    return content


def _media_to_canonical(block: dict[str, Any], extra: dict[str, Any], existing: dict[str, Any] | None) -> Any:
    source = block["source"]
    source_type = source["type"]
    if source_type == "content":
        return GenericPart(**block)

    extra = {**extra, **extract_extra_fields(source, _SOURCE_KEYS)}
    is_image = block["type"] == "image"
    modality = Modality.IMAGE if is_image else Modality.DOCUMENT

    bag = store_metadata(_PROVIDER, extra, existing=existing)

    if source_type in ("base64", "text"):
        return BlobPart(
            modality=modality, mime_type=source["media_type"], content=source["data"], provider_metadata=bag
        )
    if source_type == "url":
        return UriPart(modality=modality, uri=source["url"], provider_metadata=bag)
    return FilePart(modality=modality, file_id=source["file_id"], provider_metadata=bag)


# ---------------------------------------------------------------------------
# Emission helpers
# ---------------------------------------------------------------------------


def _emit(target: dict[str, Any], bag: dict[str, Any] | None, mode: MetadataMode) -> dict[str, Any]:
    return apply_metadata(target, bag, mode, _PROVIDER, consumed=_CONSUMED)


def _message_from_canonical(message: Message, mode: MetadataMode) -> dict[str, Any]:
    role = message.role if message.role in (Role.USER, Role.ASSISTANT) else Role.USER
    out: dict[str, Any] = {"role": role}
    bag = message.provider_metadata

    if len(message.parts) == 1 and isinstance(message.parts[0], TextPart):
        out["content"] = message.parts[0].content
        bag = collapse_parts_metadata(bag, message.parts[0].provider_metadata)
    else:
        blocks: list[dict[str, Any]] = []
        dropped: list[tuple[int, Any]] = []
        for index, part in enumerate(message.parts):
            block = _block_from_canonical(part, mode)
            if block is None:
                dropped.append((index, part))
            else:
                blocks.append(block)
        out["content"] = blocks
        bag = stash_dropped_parts(bag, dropped)

    own = emission_entry(message.provider_metadata, _PROVIDER, mode)
    stop_reason = own.get("stop_reason") or _FINISH_REASONS.get(message.finish_reason or "", message.finish_reason)
    if stop_reason:
        out["stop_reason"] = stop_reason
    return _emit(out, bag, mode)


def _block_from_canonical(part: Any, mode: MetadataMode) -> dict[str, Any] | None:
    bag = part.provider_metadata
    own = emission_entry(bag, _PROVIDER, mode)
    known = get_known_fields(bag)

    if isinstance(part, TextPart):
        return _emit({"type": "text", "text": part.content}, bag, mode)

    if isinstance(part, ReasoningPart):
        if known.get(ORIGINAL_TYPE) == REDACTED_REASONING:
            return _emit({"type": "redacted_thinking", "data": part.content}, bag, mode)
        block = {"type": "thinking", "thinking": part.content, "signature": own.get("signature", "")}
        return _emit(block, bag, mode)

    if isinstance(part, ToolCallPart):
        kind = "server_tool_use" if own.get("type") == "server_tool_use" else "tool_use"
        block = {
            "type": kind,
            "id": part.id or "",
            "name": part.name,
            "input": part.arguments if part.arguments is not None else {},
        }
        return _emit(block, bag, mode)

    if isinstance(part, ToolCallResponsePart):
        block = {"type": "tool_result", "tool_use_id": part.id or ""}
        response = part.response
        if response is not None and not isinstance(response, (str, list)):
            response = json.dumps(response)
            bag = note_canonical(bag, _PROVIDER, mode, response="json")
        if response is not None:
            block["content"] = response
        if known.get(IS_ERROR) is not None:
            block["is_error"] = known[IS_ERROR]
        return _emit(block, bag, mode)

    if isinstance(part, (BlobPart, UriPart, FilePart)):
        return _media_from_canonical(part, mode)

    if isinstance(part, GenericPart) and part.type in _GENERIC_BLOCKS:
        return _emit(dict(part.model_extra or {}, type=part.type), bag, mode)

    logger.debug("Dropping %s part: no Anthropic equivalent", part.type)
    return None


def _media_from_canonical(part: Any, mode: MetadataMode) -> dict[str, Any] | None:
    if part.modality not in (Modality.IMAGE, Modality.DOCUMENT):
        logger.debug("Dropping %s %s part: Anthropic accepts images and documents only", part.modality, part.type)
        return None

    kind = "image" if part.modality == Modality.IMAGE else "document"
    if isinstance(part, UriPart):
        source: dict[str, Any] = {"type": "url", "url": part.uri}
    elif isinstance(part, FilePart):
        source = {"type": "file", "file_id": part.file_id}
    elif kind == "document" and part.mime_type == "text/plain":
        source = {"type": "text", "media_type": "text/plain", "data": part.content}
    else:
        default = "image/png" if kind == "image" else "application/pdf"
        source = {"type": "base64", "media_type": part.mime_type or default, "data": part.content}
    bag = note_canonical(part.provider_metadata, _PROVIDER, mode, **media_fields(part))
    return _emit({"type": kind, "source": source}, bag, mode)

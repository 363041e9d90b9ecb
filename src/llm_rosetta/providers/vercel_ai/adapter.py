"""Vercel AI SDK ``ModelMessage`` adapter.

Key differences from the canonical form:
- Part types are kebab-case (``tool-call``, ``tool-result``) and keys camelCase.
- Tool results carry the tool name and a typed ``output`` envelope.
- System messages carry a plain string.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

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
)
from llm_rosetta.core.keys import IS_ERROR, ORIGINAL_TYPE, TOOL_NAME
from llm_rosetta.core.metadata import (
    MetadataMode,
    apply_metadata,
    collapse_parts_metadata,
    extract_extra_fields,
    get_known_fields,
    note_canonical,
    read_metadata,
    stash_dropped_parts,
    store_metadata,
    take_canonical,
)
from llm_rosetta.core.utils import (
    generic_fields,
    infer_modality,
    media_fields,
    rebuild_generic,
    rebuild_media,
    split_data_url,
)
from llm_rosetta.providers.provider import (
    Direction,
    Provider,
    ProviderAdapter,
    ProviderOutput,
    prepare_messages,
    tool_names,
)
from llm_rosetta.providers.vercel_ai.models import MESSAGES

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

_PROVIDER = Provider.VERCEL_AI

_MESSAGE_KEYS = ("role", "content")
_PART_KEYS: dict[str, tuple[str, ...]] = {
    "text": ("type", "text"),
    "image": ("type", "image", "mediaType"),
    "file": ("type", "data", "mediaType"),
    "reasoning": ("type", "text"),
    "tool-call": ("type", "toolCallId", "toolName", "input"),
    "tool-result": ("type", "toolCallId", "toolName", "output"),
}
APPROVAL_TYPES = ("tool-approval-request", "tool-approval-response")

# Output envelopes kept verbatim as the canonical response.
_RAW_OUTPUTS = ("execution-denied", "content")
_USER_PARTS = ("text", "image", "file")
_ASSISTANT_PARTS = ("text", "file", "reasoning", "tool-call", "tool-result", "tool-approval-request")
_TOOL_PARTS = ("tool-result", "tool-approval-response")


class VercelAIAdapter(ProviderAdapter):
    provider = _PROVIDER
    name = "Vercel AI"
    messages_schema = MESSAGES

    # -- provider -> canonical ---------------------------------------------

    def convert_messages(self, messages: list[Any], direction: Direction) -> list[Message]:
        return [_message_to_canonical(message) for message in messages]

    # -- canonical -> provider ---------------------------------------------

    def to_provider_format(
        self,
        messages: Sequence[Message],
        mode: MetadataMode = MetadataMode.STRIP,
    ) -> ProviderOutput:
        mode = MetadataMode(mode)
        prepared = prepare_messages(messages)
        names = tool_names(prepared)
        converted: list[dict[str, Any]] = []
        for message in prepared:
            emitted = _message_from_canonical(message, names, mode)
            if emitted is not None:
                converted.append(emitted)
        return ProviderOutput(messages=converted)


# ---------------------------------------------------------------------------
# Ingestion helpers
# ---------------------------------------------------------------------------


def _message_to_canonical(raw: dict[str, Any]) -> Message:
    notes, existing = take_canonical(read_metadata(raw), _PROVIDER)
    bag = store_metadata(_PROVIDER, extract_extra_fields(raw, _MESSAGE_KEYS), existing=existing)
    content = raw["content"]
    if isinstance(content, str):
        parts: list[Any] = _split_text(content, notes)
    else:
        parts = [_part_to_canonical(part) for part in content]
    return Message(role=raw["role"], parts=parts, provider_metadata=bag)


def _split_text(content: str, notes: dict[str, Any]) -> list[Any]:
    """Undo the join of a multi-part system message."""
    lengths = notes.get("lengths")
    if (
        not isinstance(lengths, list)
        or not all(isinstance(length, int) and length >= 0 for length in lengths)
        or sum(lengths) + len(lengths) - 1 != len(content)
    ):
        return [TextPart(content=content)]

    bags = notes.get("metadata")
    if not isinstance(bags, list) or len(bags) != len(lengths):
        bags = [None] * len(lengths)

    parts = []
    start = 0
    for length, part_bag in zip(lengths, bags):
        parts.append(TextPart(content=content[start : start + length], provider_metadata=part_bag or None))
        start += length + 1
    return parts


def _part_to_canonical(raw: dict[str, Any]) -> Any:
    kind = raw["type"]
    notes, existing = take_canonical(read_metadata(raw), _PROVIDER)
    if kind in APPROVAL_TYPES:
        return GenericPart(**raw)

    extra = extract_extra_fields(raw, _PART_KEYS[kind])

    def bag(**known: Any) -> Any:
        return store_metadata(_PROVIDER, extra, existing=existing, known=known)

    if kind == "text":
        return rebuild_generic(TextPart(content=raw["text"], provider_metadata=bag()), notes)

    if kind == "reasoning":
        return ReasoningPart(content=raw["text"], provider_metadata=bag())

    if kind == "image":
        return rebuild_media(_media(raw["image"], raw.get("mediaType"), Modality.IMAGE, bag()), notes)

    if kind == "file":
        return rebuild_media(_media(raw["data"], raw["mediaType"], infer_modality(raw["mediaType"]), bag()), notes)

    if kind == "tool-call":
        return ToolCallPart(
            id=raw["toolCallId"],
            name=raw["toolName"],
            arguments=raw.get("input"),
            provider_metadata=bag(),
        )

    output = raw["output"]
    output_type = output["type"]
    if output_type in _RAW_OUTPUTS:
        response = output
        known = {TOOL_NAME: raw["toolName"], ORIGINAL_TYPE: output_type}
    else:
        response = output.get("value")
        known = {TOOL_NAME: raw["toolName"], IS_ERROR: True if output_type.startswith("error-") else None}
    return ToolCallResponsePart(id=raw["toolCallId"], response=response, provider_metadata=bag(**known))


def _media(value: str, mime_type: str | None, modality: str, bag: dict[str, Any] | None) -> Any:
    if value.startswith("data:"):
        data = split_data_url(value)
        if data is not None:
            return BlobPart(modality=modality, mime_type=data[0] or mime_type, content=data[1], provider_metadata=bag)
    if value.startswith(("http://", "https://")):
        return UriPart(modality=modality, mime_type=mime_type, uri=value, provider_metadata=bag)
    return BlobPart(modality=modality, mime_type=mime_type, content=value, provider_metadata=bag)


# ---------------------------------------------------------------------------
# Emission helpers
# ---------------------------------------------------------------------------


def _emit(target: dict[str, Any], bag: dict[str, Any] | None, mode: MetadataMode) -> dict[str, Any]:
    return apply_metadata(target, bag, mode, _PROVIDER)


def _system_message(message: Message, mode: MetadataMode) -> dict[str, Any]:
    texts = [part for part in message.parts if isinstance(part, TextPart)]
    dropped = [(index, part) for index, part in enumerate(message.parts) if not isinstance(part, TextPart)]
    bag = stash_dropped_parts(message.provider_metadata, dropped)
    if len(texts) == 1:
        bag = collapse_parts_metadata(bag, texts[0].provider_metadata)
    elif len(texts) > 1:
        lengths = [len(part.content) for part in texts]
        bag = note_canonical(bag, _PROVIDER, mode, lengths=lengths, metadata=[part.provider_metadata for part in texts])
    content = "\n".join(part.content for part in texts)
    return _emit({"role": "system", "content": content}, bag, mode)


def _message_from_canonical(message: Message, names: dict[str, str], mode: MetadataMode) -> dict[str, Any] | None:
    if message.role == Role.SYSTEM:
        return _system_message(message, mode)

    role = message.role if message.role in (Role.USER, Role.ASSISTANT, Role.TOOL) else Role.USER
    allowed = {Role.USER: _USER_PARTS, Role.ASSISTANT: _ASSISTANT_PARTS, Role.TOOL: _TOOL_PARTS}[role]

    parts: list[tuple[dict[str, Any], Any]] = []
    dropped: list[tuple[int, Any]] = []
    for index, part in enumerate(message.parts):
        emitted = _part_from_canonical(part, names, mode)
        if emitted is not None and emitted["type"] not in allowed:
            logger.debug("Dropping %s part from %s message: not allowed by Vercel AI", emitted["type"], role)
            emitted = None
        if emitted is None:
            dropped.append((index, part))
        else:
            parts.append((emitted, part))
    bag = stash_dropped_parts(message.provider_metadata, dropped)

    if role == Role.TOOL:
        if not parts:
            return None
        return _emit({"role": role, "content": [emitted for emitted, _ in parts]}, bag, mode)

    if len(parts) == 1 and isinstance(parts[0][1], TextPart):
        bag = collapse_parts_metadata(bag, parts[0][1].provider_metadata)
        return _emit({"role": role, "content": parts[0][1].content}, bag, mode)
    return _emit({"role": role, "content": [emitted for emitted, _ in parts]}, bag, mode)


def _part_from_canonical(part: Any, names: dict[str, str], mode: MetadataMode) -> dict[str, Any] | None:
    bag = part.provider_metadata

    if isinstance(part, TextPart):
        return _emit({"type": "text", "text": part.content}, bag, mode)

    if isinstance(part, ReasoningPart):
        return _emit({"type": "reasoning", "text": part.content}, bag, mode)

    if isinstance(part, (BlobPart, UriPart, FilePart)):
        return _emit(_media_part(part), note_canonical(bag, _PROVIDER, mode, **media_fields(part)), mode)

    if isinstance(part, ToolCallPart):
        block = {"type": "tool-call", "toolCallId": part.id or "", "toolName": part.name, "input": part.arguments}
        return _emit(block, bag, mode)

    if isinstance(part, ToolCallResponsePart):
        known = get_known_fields(bag)
        block = {
            "type": "tool-result",
            "toolCallId": part.id or "",
            "toolName": known.get(TOOL_NAME) or names.get(part.id or "", "unknown"),
            "output": _output(part.response, known),
        }
        return _emit(block, bag, mode)

    if isinstance(part, GenericPart) and part.type in APPROVAL_TYPES:
        return _emit(dict(part.model_extra or {}, type=part.type), bag, mode)

    content = (part.model_extra or {}).get("content") if isinstance(part, GenericPart) else None
    if isinstance(content, str):
        bag = note_canonical(bag, _PROVIDER, mode, generic=generic_fields(part))
        return _emit({"type": "text", "text": content}, bag, mode)

    logger.debug("Dropping %s part: no Vercel AI equivalent", part.type)
    return None

def _media_part(part: Any) -> dict[str, Any]:
    if isinstance(part, BlobPart):
        value = part.content
    elif isinstance(part, UriPart):
        value = part.uri
    else:
        value = part.file_id

    if part.modality == Modality.IMAGE:
        block: dict[str, Any] = {"type": "image", "image": value}
        if part.mime_type:
            block["mediaType"] = part.mime_type
        return block
    return {"type": "file", "data": value, "mediaType": part.mime_type or f"application/{part.modality}"}


def _output(response: Any, known: dict[str, Any]) -> dict[str, Any]:
    if known.get(ORIGINAL_TYPE) in _RAW_OUTPUTS and isinstance(response, dict):
        return response
    prefix = "error-" if known.get(IS_ERROR) else ""
    if isinstance(response, str):
        return {"type": f"{prefix}text", "value": response}
    return {"type": f"{prefix}json", "value": response}

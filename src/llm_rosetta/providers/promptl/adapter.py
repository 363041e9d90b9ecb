"""PromptL adapter.

Key differences from the canonical form:
- Part types are kebab-case; tool-call arguments live under ``args`` (older
  payloads use ``toolArguments``, and older assistant messages a separate
  ``toolCalls`` array).
- Every tool result is its own ``tool`` message that also names the tool and
  the call id at the message level.
- Redacted reasoning is a distinct part type.
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
    dump_parts,
)
from llm_rosetta.core.keys import IS_ERROR, ORIGINAL_TYPE, TOOL_NAME
from llm_rosetta.core.metadata import (
    MetadataMode,
    apply_metadata,
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
    is_url_string,
    media_fields,
    rebuild_generic,
    rebuild_media,
)
from llm_rosetta.providers.promptl.models import MESSAGES
from llm_rosetta.providers.provider import (
    Direction,
    Provider,
    ProviderAdapter,
    ProviderOutput,
    prepare_messages,
    tool_names,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

_PROVIDER = Provider.PROMPTL

REDACTED_REASONING = "redacted-reasoning"

_MESSAGE_KEYS = ("role", "content", "name", "toolName", "toolId", "toolCalls")
_CONTENT_KEYS = (
    "type",
    "text",
    "image",
    "file",
    "mimeType",
    "toolCallId",
    "toolName",
    "args",
    "toolArguments",
    "data",
    "result",
    "isError",
)
_TOOL_CALL_KEYS = ("id", "name", "arguments")
_ROLES = (Role.SYSTEM, "developer", Role.USER, Role.ASSISTANT)


class PromptlAdapter(ProviderAdapter):
    provider = _PROVIDER
    name = "PromptL"
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
            converted.extend(_message_from_canonical(message, names, mode))
        return ProviderOutput(messages=converted)


# ---------------------------------------------------------------------------
# Ingestion helpers
# ---------------------------------------------------------------------------


def _message_to_canonical(raw: dict[str, Any]) -> Message:
    extra = extract_extra_fields(raw, _MESSAGE_KEYS)
    existing = read_metadata(raw)
    role = raw["role"]
    content = raw["content"]

    if role == Role.TOOL and _is_legacy_tool_message(raw):
        converted = [_content_to_canonical(item) for item in content]
        if len(converted) == 1 and isinstance(converted[0], TextPart):
            response: Any = converted[0].content
        else:
            response = dump_parts(converted)
        part = ToolCallResponsePart(
            id=raw["toolId"],
            response=response,
            provider_metadata=store_metadata(_PROVIDER, extra, existing=existing, known={TOOL_NAME: raw["toolName"]}),
        )
        return Message(role=Role.TOOL, parts=[part])

    if isinstance(content, str):
        parts: list[Any] = [TextPart(content=content)]
    else:
        parts = [_content_to_canonical(item) for item in content]

    if role == Role.ASSISTANT and raw.get("toolCalls"):
        seen = {part.id for part in parts if isinstance(part, ToolCallPart)}
        parts.extend(_tool_call_to_canonical(call) for call in raw["toolCalls"] if call["id"] not in seen)

    return Message(
        role=role,
        parts=parts,
        name=raw.get("name") if role == Role.USER else None,
        provider_metadata=store_metadata(_PROVIDER, extra, existing=existing),
    )


def _is_legacy_tool_message(raw: dict[str, Any]) -> bool:
    if not (raw.get("toolName") and raw.get("toolId")):
        return False
    return not any(item["type"] == "tool-result" for item in raw["content"])


def _content_to_canonical(raw: dict[str, Any]) -> Any:
    kind = raw["type"]
    extra = extract_extra_fields(raw, _CONTENT_KEYS)
    notes, existing = take_canonical(read_metadata(raw), _PROVIDER)

    def bag(**known: Any) -> Any:
        return store_metadata(_PROVIDER, extra, existing=existing, known=known)

    if kind == "text":
        return rebuild_generic(TextPart(content=raw.get("text") or "", provider_metadata=bag()), notes)

    if kind == "image":
        return rebuild_media(_media(raw["image"], None, Modality.IMAGE, bag()), notes)

    if kind == "file":
        part = _media(raw["file"], raw["mimeType"], infer_modality(raw["mimeType"]), bag())
        return rebuild_media(part, notes)

    if kind == "reasoning":
        return ReasoningPart(content=raw["text"], provider_metadata=bag())

    if kind == REDACTED_REASONING:
        return ReasoningPart(content=raw["data"], provider_metadata=bag(**{ORIGINAL_TYPE: REDACTED_REASONING}))

    if kind == "tool-call":
        arguments = raw.get("args")
        if arguments is None:
            arguments = raw.get("toolArguments")
        return ToolCallPart(
            id=raw["toolCallId"],
            name=raw["toolName"],
            arguments=arguments if arguments is not None else {},
            provider_metadata=bag(),
        )

    # tool-result
    return ToolCallResponsePart(
        id=raw["toolCallId"],
        response=raw.get("result"),
        provider_metadata=bag(**{TOOL_NAME: raw["toolName"], IS_ERROR: raw.get("isError") or None}),
    )


def _tool_call_to_canonical(raw: dict[str, Any]) -> ToolCallPart:
    return ToolCallPart(
        id=raw["id"],
        name=raw["name"],
        arguments=raw["arguments"],
        provider_metadata=store_metadata(
            _PROVIDER, extract_extra_fields(raw, _TOOL_CALL_KEYS), existing=read_metadata(raw)
        ),
    )


def _media(value: str, mime_type: str | None, modality: str, bag: dict[str, Any] | None) -> Any:
    if is_url_string(value):
        return UriPart(modality=modality, mime_type=mime_type, uri=value, provider_metadata=bag)
    return BlobPart(modality=modality, mime_type=mime_type, content=value, provider_metadata=bag)


# ---------------------------------------------------------------------------
# Emission helpers
# ---------------------------------------------------------------------------


def _emit(target: dict[str, Any], bag: dict[str, Any] | None, mode: MetadataMode) -> dict[str, Any]:
    return apply_metadata(target, bag, mode, _PROVIDER)


def _message_from_canonical(message: Message, names: dict[str, str], mode: MetadataMode) -> list[dict[str, Any]]:
    if message.role == Role.TOOL:
        responses = [part for part in message.parts if isinstance(part, ToolCallResponsePart)]
        single = len(responses) == 1
        return [
            _tool_message(part, names, mode, message.provider_metadata if single else None) for part in responses
        ]

    if message.role == Role.ASSISTANT:
        responses = [part for part in message.parts if isinstance(part, ToolCallResponsePart)]
        others = [part for part in message.parts if not isinstance(part, ToolCallResponsePart)]
        if responses:
            result = [_tool_message(part, names, mode) for part in responses]
            content, dropped = _content(others, names, mode)
            if content:
                bag = stash_dropped_parts(message.provider_metadata, dropped)
                result.insert(0, _emit({"role": Role.ASSISTANT, "content": content}, bag, mode))
            return result

    role = message.role if message.role in _ROLES else Role.USER
    content, dropped = _content(message.parts, names, mode)
    out: dict[str, Any] = {"role": role, "content": content}
    if role == Role.USER and message.name:
        out["name"] = message.name
    return [_emit(out, stash_dropped_parts(message.provider_metadata, dropped), mode)]


def _content(
    parts: Sequence[Any], names: dict[str, str], mode: MetadataMode
) -> tuple[list[dict[str, Any]], list[tuple[int, Any]]]:
    """Emit *parts*, returning the content items and the parts left out with their indices."""
    content: list[dict[str, Any]] = []
    dropped: list[tuple[int, Any]] = []
    for index, part in enumerate(parts):
        item = _part_from_canonical(part, names, mode)
        if item is None:
            dropped.append((index, part))
        else:
            content.append(item)
    return content, dropped


def _tool_name(part: ToolCallResponsePart, names: dict[str, str]) -> str:
    return get_known_fields(part.provider_metadata).get(TOOL_NAME) or names.get(part.id or "") or "unknown"


def _tool_result(part: ToolCallResponsePart, names: dict[str, str]) -> dict[str, Any]:
    return {
        "type": "tool-result",
        "toolCallId": part.id or "",
        "toolName": _tool_name(part, names),
        "result": part.response,
        "isError": bool(get_known_fields(part.provider_metadata).get(IS_ERROR, False)),
    }


def _tool_message(
    part: ToolCallResponsePart,
    names: dict[str, str],
    mode: MetadataMode,
    message_bag: dict[str, Any] | None = None,
) -> dict[str, Any]:
    message = {
        "role": Role.TOOL,
        "toolName": _tool_name(part, names),
        "toolId": part.id or "",
        "content": [_emit(_tool_result(part, names), part.provider_metadata, mode)],
    }
    return _emit(message, message_bag, mode)


def _part_from_canonical(part: Any, names: dict[str, str], mode: MetadataMode) -> dict[str, Any] | None:
    bag = part.provider_metadata
    known = get_known_fields(bag)

    if isinstance(part, TextPart):
        return _emit({"type": "text", "text": part.content}, bag, mode)

    if isinstance(part, ReasoningPart):
        if known.get(ORIGINAL_TYPE) == REDACTED_REASONING:
            return _emit({"type": REDACTED_REASONING, "data": part.content}, bag, mode)
        return _emit({"type": "reasoning", "text": part.content}, bag, mode)

    if isinstance(part, (BlobPart, UriPart, FilePart)):
        return _emit(_media_content(part), note_canonical(bag, _PROVIDER, mode, **media_fields(part)), mode)

    if isinstance(part, ToolCallPart):
        arguments = part.arguments
        if not isinstance(arguments, dict):
            if arguments is not None:
                logger.debug("Replacing non-object arguments of tool call %r with {}", part.name)
            arguments = {}
        block = {
            "type": "tool-call",
            "toolCallId": part.id or "",
            "toolName": part.name,
            "args": arguments,
            "toolArguments": arguments,
        }
        return _emit(block, bag, mode)

    if isinstance(part, ToolCallResponsePart):
        return _emit(_tool_result(part, names), bag, mode)

    content = (part.model_extra or {}).get("content") if isinstance(part, GenericPart) else None
    if isinstance(content, str):
        bag = note_canonical(bag, _PROVIDER, mode, generic=generic_fields(part))
        return _emit({"type": "text", "text": content}, bag, mode)

    logger.debug("Dropping %s part: no PromptL equivalent", part.type)
    return None


def _media_content(part: Any) -> dict[str, Any]:
    if isinstance(part, BlobPart):
        value = part.content
    elif isinstance(part, UriPart):
        value = part.uri
    else:
        value = part.file_id

    if part.modality == Modality.IMAGE:
        return {"type": "image", "image": value}
    return {"type": "file", "file": value, "mimeType": part.mime_type or f"application/{part.modality}"}

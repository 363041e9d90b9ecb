"""OpenAI Chat Completions adapter.

Key differences from the canonical form:
- System instructions are inline ``system``/``developer`` messages.
- Tool calls live in an assistant ``tool_calls`` array with JSON-string arguments.
- Each tool result is its own ``tool`` message (``function`` for the legacy API).
- Content is a plain string whenever it is a single text block.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from llm_rosetta.core.genai.models import (
    BlobPart,
    FilePart,
    Message,
    Modality,
    Role,
    TextPart,
    ToolCallPart,
    ToolCallResponsePart,
    UriPart,
)
from llm_rosetta.core.keys import IS_REFUSAL, TOOL_NAME
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
from llm_rosetta.core.utils import (
    dump_json_if_needed,
    infer_modality,
    media_fields,
    parse_json_if_string,
    rebuild_media,
    split_data_url,
    to_data_url,
)
from llm_rosetta.providers.openai_completions.models import MESSAGES
from llm_rosetta.providers.provider import Direction, Provider, ProviderAdapter, ProviderOutput, prepare_messages

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

_PROVIDER = Provider.OPENAI_COMPLETIONS

_MESSAGE_KEYS = ("role", "content", "name", "refusal", "tool_calls", "function_call", "tool_call_id")
_TEXT_KEYS = ("type", "text")
_REFUSAL_KEYS = ("type", "refusal")
_IMAGE_KEYS = ("type", "image_url")
_AUDIO_KEYS = ("type", "input_audio")
_FILE_KEYS = ("type", "file")
_TOOL_CALL_KEYS = ("id", "type", "function", "custom")

# Fields placed structurally on emission rather than spread.
_CONSUMED = ("detail", "filename")


class OpenAICompletionsAdapter(ProviderAdapter):
    provider = _PROVIDER
    name = "OpenAI Completions"
    messages_schema = MESSAGES

    # -- provider -> canonical ---------------------------------------------

    def convert_messages(self, messages: list[Any], direction: Direction) -> list[Message]:
        return [self._message_to_canonical(message) for message in messages]

    def _message_to_canonical(self, raw: dict[str, Any]) -> Message:
        role = raw["role"]
        extra = extract_extra_fields(raw, _MESSAGE_KEYS)
        notes, existing = take_canonical(read_metadata(raw), _PROVIDER)
        bag = store_metadata(_PROVIDER, extra, existing=existing)

        if role == "tool":
            response = _decode(_text_response(raw["content"]), notes)
            part = ToolCallResponsePart(id=raw["tool_call_id"], response=response)
            return Message(role=Role.TOOL, parts=[part], provider_metadata=bag)

        if role == "function":
            part = ToolCallResponsePart(
                id=None,
                response=_decode(raw.get("content"), notes),
                provider_metadata=store_metadata(_PROVIDER, known={TOOL_NAME: raw["name"]}),
            )
            return Message(role=Role.TOOL, parts=[part], provider_metadata=bag)

        if role == "assistant":
            parts = _assistant_parts(raw)
        else:
            parts = _content_parts(raw["content"])

        return Message(role=role, parts=parts, name=raw.get("name"), provider_metadata=bag)

    # -- canonical -> provider ---------------------------------------------

    def to_provider_format(
        self,
        messages: Sequence[Message],
        mode: MetadataMode = MetadataMode.STRIP,
    ) -> ProviderOutput:
        mode = MetadataMode(mode)
        converted: list[dict[str, Any]] = []
        for message in prepare_messages(messages):
            converted.extend(self._message_from_canonical(message, mode))
        return ProviderOutput(messages=converted)

    def _message_from_canonical(self, message: Message, mode: MetadataMode) -> list[dict[str, Any]]:
        responses = [p for p in message.parts if isinstance(p, ToolCallResponsePart)]
        others = [p for p in message.parts if not isinstance(p, ToolCallResponsePart)]

        tool_messages = [
            _tool_message(part, message.provider_metadata if len(responses) == 1 and not others else None, mode)
            for part in responses
        ]
        if not others and responses:
            return tool_messages

        if message.role == Role.ASSISTANT:
            return [_assistant_message(message, others, mode), *tool_messages]
        # Tool results must directly follow the assistant turn that requested them.
        return [*tool_messages, _content_message(message, others, mode)]


# ---------------------------------------------------------------------------
# Ingestion helpers
# ---------------------------------------------------------------------------


def _text_response(content: str | list[dict[str, Any]]) -> Any:
    if isinstance(content, str):
        return content
    texts = [item["text"] for item in content]
    return texts[0] if len(texts) == 1 else texts


def _decode(response: Any, notes: dict[str, Any]) -> Any:
    if notes.get("response") == "json":
        return parse_json_if_string(response)
    return response


def _content_parts(content: str | list[dict[str, Any]]) -> list[Any]:
    if isinstance(content, str):
        return [TextPart(content=content)]
    return [_content_part(item) for item in content]


def _content_part(raw: dict[str, Any]) -> Any:
    notes, existing = take_canonical(read_metadata(raw), _PROVIDER)
    return rebuild_media(_parse_content_part(raw, existing), notes)


def _parse_content_part(raw: dict[str, Any], existing: dict[str, Any] | None) -> Any:
    kind = raw["type"]

    if kind == "text":
        bag = store_metadata(_PROVIDER, extract_extra_fields(raw, _TEXT_KEYS), existing=existing)
        return TextPart(content=raw["text"], provider_metadata=bag)

    if kind == "refusal":
        bag = store_metadata(
            _PROVIDER, extract_extra_fields(raw, _REFUSAL_KEYS), existing=existing, known={IS_REFUSAL: True}
        )
        return TextPart(content=raw["refusal"], provider_metadata=bag)

    if kind == "image_url":
        image = raw["image_url"]
        extra = {**extract_extra_fields(raw, _IMAGE_KEYS), **extract_extra_fields(image, ("url",))}
        bag = store_metadata(_PROVIDER, extra, existing=existing)
        url = image["url"]
        data = split_data_url(url) if url.startswith("data:") else None
        if data is not None:
            mime_type, payload = data
            return BlobPart(modality=Modality.IMAGE, mime_type=mime_type, content=payload, provider_metadata=bag)
        return UriPart(modality=Modality.IMAGE, uri=url, provider_metadata=bag)

    if kind == "input_audio":
        audio = raw["input_audio"]
        extra = {**extract_extra_fields(raw, _AUDIO_KEYS), **extract_extra_fields(audio, ("data", "format"))}
        bag = store_metadata(_PROVIDER, extra, existing=existing)
        return BlobPart(
            modality=Modality.AUDIO,
            mime_type="audio/wav" if audio["format"] == "wav" else "audio/mp3",
            content=audio["data"],
            provider_metadata=bag,
        )

    # file
    file = raw["file"]
    extra = {
        **extract_extra_fields(raw, _FILE_KEYS),
        **extract_extra_fields(file, ("file_id", "file_data")),
    }
    bag = store_metadata(_PROVIDER, extra, existing=existing)
    if file.get("file_id"):
        return FilePart(modality=Modality.DOCUMENT, file_id=file["file_id"], provider_metadata=bag)
    payload = file.get("file_data") or ""
    data = split_data_url(payload) if payload.startswith("data:") else None
    mime_type = None
    if data is not None:
        mime_type, payload = data
    return BlobPart(modality=infer_modality(mime_type), mime_type=mime_type, content=payload, provider_metadata=bag)


def _assistant_parts(raw: dict[str, Any]) -> list[Any]:
    parts: list[Any] = []
    content = raw.get("content")
    if content is not None:
        parts.extend(_content_parts(content))
    if raw.get("refusal"):
        bag = store_metadata(_PROVIDER, known={IS_REFUSAL: True})
        parts.append(TextPart(content=raw["refusal"], provider_metadata=bag))
    for call in raw.get("tool_calls") or []:
        parts.append(_tool_call_part(call))
    if raw.get("function_call"):
        function = raw["function_call"]
        arguments = parse_json_if_string(function["arguments"])
        parts.append(ToolCallPart(id=None, name=function["name"], arguments=arguments))
    return parts


def _tool_call_part(raw: dict[str, Any]) -> ToolCallPart:
    call = raw["function"] if raw["type"] == "function" else raw["custom"]
    extra = extract_extra_fields(raw, _TOOL_CALL_KEYS)
    if raw["type"] == "custom":
        extra = {**extra, "type": "custom"}
        arguments = call["input"]
    else:
        arguments = parse_json_if_string(call["arguments"])
    return ToolCallPart(
        id=raw["id"],
        name=call["name"],
        arguments=arguments,
        provider_metadata=store_metadata(_PROVIDER, extra, existing=read_metadata(raw)),
    )


# ---------------------------------------------------------------------------
# Emission helpers
# ---------------------------------------------------------------------------


def _emit(target: dict[str, Any], bag: dict[str, Any] | None, mode: MetadataMode) -> dict[str, Any]:
    return apply_metadata(target, bag, mode, _PROVIDER, consumed=_CONSUMED)


def _is_refusal(part: Any) -> bool:
    return isinstance(part, TextPart) and get_known_fields(part.provider_metadata).get(IS_REFUSAL) is True


def _content_item(part: Any, mode: MetadataMode) -> dict[str, Any] | None:
    own = emission_entry(part.provider_metadata, _PROVIDER, mode)

    if isinstance(part, TextPart):
        if _is_refusal(part):
            return _emit({"type": "refusal", "refusal": part.content}, part.provider_metadata, mode)
        return _emit({"type": "text", "text": part.content}, part.provider_metadata, mode)

    if not isinstance(part, (BlobPart, FilePart, UriPart)):
        logger.debug("Dropping %s part: no Chat Completions equivalent", part.type)
        return None

    bag = note_canonical(part.provider_metadata, _PROVIDER, mode, **media_fields(part))

    if isinstance(part, BlobPart) and part.modality == Modality.AUDIO:
        audio_format = "wav" if (part.mime_type or "").endswith("wav") else "mp3"
        item = {"type": "input_audio", "input_audio": {"data": part.content, "format": audio_format}}
        return _emit(item, bag, mode)

    if isinstance(part, (BlobPart, UriPart)) and part.modality == Modality.IMAGE:
        url = part.uri if isinstance(part, UriPart) else to_data_url(part.mime_type or "image/png", part.content)
        image: dict[str, Any] = {"url": url}
        if own.get("detail"):
            image["detail"] = own["detail"]
        return _emit({"type": "image_url", "image_url": image}, bag, mode)

    file: dict[str, Any] = {}
    if own.get("filename"):
        file["filename"] = own["filename"]
    if isinstance(part, FilePart):
        file["file_id"] = part.file_id
    elif isinstance(part, UriPart):
        file["file_data"] = part.uri
    else:
        file["file_data"] = to_data_url(part.mime_type, part.content) if part.mime_type else part.content
    return _emit({"type": "file", "file": file}, bag, mode)


def _content_items(
    parts: list[Any], allowed: tuple[type, ...], mode: MetadataMode
) -> tuple[list[dict[str, Any]], list[tuple[int, Any]]]:
    items: list[dict[str, Any]] = []
    dropped: list[tuple[int, Any]] = []
    for index, part in enumerate(parts):
        item = _content_item(part, mode) if isinstance(part, allowed) else None
        if item is None:
            dropped.append((index, part))
        else:
            items.append(item)
    return items, dropped


def _content_message(message: Message, parts: list[Any], mode: MetadataMode) -> dict[str, Any]:
    role = message.role if message.role in (Role.SYSTEM, "developer", Role.USER) else Role.USER
    if role != message.role:
        logger.debug("Mapping role %r to 'user'", message.role)

    out: dict[str, Any] = {"role": role}
    bag = message.provider_metadata
    if len(parts) == 1 and isinstance(parts[0], TextPart) and not _is_refusal(parts[0]):
        out["content"] = parts[0].content
        bag = collapse_parts_metadata(bag, parts[0].provider_metadata)
    else:
        allowed = (TextPart,) if role != Role.USER else (TextPart, BlobPart, FilePart, UriPart)
        out["content"], dropped = _content_items(parts, allowed, mode)
        bag = stash_dropped_parts(bag, dropped)
    if message.name:
        out["name"] = message.name
    return _emit(out, bag, mode)


def _assistant_message(message: Message, parts: list[Any], mode: MetadataMode) -> dict[str, Any]:
    out: dict[str, Any] = {"role": "assistant"}

    content = [p for p in parts if isinstance(p, TextPart)]
    calls = [p for p in parts if isinstance(p, ToolCallPart)]
    dropped = [(index, p) for index, p in enumerate(parts) if not isinstance(p, (TextPart, ToolCallPart))]
    for _, part in dropped:
        logger.debug("Dropping %s part from assistant message", part.type)
    bag = stash_dropped_parts(message.provider_metadata, dropped)

    if len(content) == 1 and _is_refusal(content[0]):
        out["content"] = None
        out["refusal"] = content[0].content
        bag = collapse_parts_metadata(bag, content[0].provider_metadata)
    elif len(content) == 1:
        out["content"] = content[0].content
        bag = collapse_parts_metadata(bag, content[0].provider_metadata)
    elif content:
        out["content"] = [_content_item(p, mode) for p in content]
    else:
        out["content"] = None

    if calls:
        out["tool_calls"] = [_tool_call(call, mode) for call in calls]
    if message.name:
        out["name"] = message.name
    return _emit(out, bag, mode)


def _tool_call(part: ToolCallPart, mode: MetadataMode) -> dict[str, Any]:
    own = emission_entry(part.provider_metadata, _PROVIDER, mode)
    if own.get("type") == "custom":
        call: dict[str, Any] = {
            "id": part.id or "",
            "type": "custom",
            "custom": {"name": part.name, "input": dump_json_if_needed(part.arguments)},
        }
    else:
        call = {
            "id": part.id or "",
            "type": "function",
            "function": {"name": part.name, "arguments": dump_json_if_needed(part.arguments)},
        }
    return apply_metadata(call, part.provider_metadata, mode, _PROVIDER, consumed=("type",))


def _tool_message(
    part: ToolCallResponsePart, message_bag: dict[str, Any] | None, mode: MetadataMode
) -> dict[str, Any]:
    content = "" if part.response is None else dump_json_if_needed(part.response)
    tool_name = get_known_fields(part.provider_metadata).get(TOOL_NAME)
    if part.id is None and tool_name:
        out: dict[str, Any] = {"role": "function", "name": tool_name, "content": content}
    else:
        out = {"role": "tool", "tool_call_id": part.id or "", "content": content}
    bag = collapse_parts_metadata(message_bag, part.provider_metadata)
    if part.response is not None and not isinstance(part.response, str):
        bag = note_canonical(bag, _PROVIDER, mode, response="json")
    return _emit(out, bag, mode)

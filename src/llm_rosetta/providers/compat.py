"""Best-effort source for message formats no other adapter recognizes.

Used as the last resort of provider inference, so it accepts any list of
objects.  Conversion works on recognizable shapes rather than a schema:

1. Keys are normalized to camelCase (``tool_call_id`` -> ``toolCallId``).
2. Provider-specific roles are mapped (``model`` -> ``assistant``).
3. Parts are identified by their ``type`` when present, otherwise by their
   characteristic fields (Gemini style).
4. Anything unrecognized survives as JSON text.
5. Metadata bags already on messages and parts are kept.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Union

from pydantic import TypeAdapter

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
from llm_rosetta.core.keys import IS_REFUSAL, ORIGINAL_TYPE, TOOL_NAME, is_reserved
from llm_rosetta.core.metadata import merge_metadata, read_metadata, store_metadata
from llm_rosetta.core.utils import infer_modality, is_url_string, normalize_keys, parse_json_if_string, split_data_url
from llm_rosetta.providers.provider import Direction, Provider, ProviderAdapter

logger = logging.getLogger(__name__)

_PROVIDER = Provider.COMPAT

MESSAGES = TypeAdapter(list[dict[str, Any]])
SYSTEM = TypeAdapter(Union[str, dict[str, Any], list[dict[str, Any]]])

_ROLE_ALIASES = {"model": Role.ASSISTANT, "function": Role.TOOL}
_MESSAGE_FIELDS = frozenset(
    {
        "role",
        "name",
        "content",
        "parts",
        "text",
        "message",
        "toolCalls",
        "functionCall",
        "thinking",
        "reasoning",
        "reasoningContent",
        "refusal",
    }
)
_CANONICAL_TYPES = frozenset({"blob", "uri"})

TOOL_CALL_TYPES = ("tool_use", "tooluse", "tool-call", "toolcall", "tool_call")
TOOL_RESULT_TYPES = ("tool_result", "toolresult", "tool-result", "tool_call_response")
REDACTED_TYPES = ("redacted_thinking", "redactedthinking", "redacted-reasoning")


class CompatAdapter(ProviderAdapter):
    provider = _PROVIDER
    name = "Compat"
    messages_schema = MESSAGES
    system_schema = SYSTEM

    def convert_messages(self, messages: list[Any], direction: Direction) -> list[Message]:
        return [_message(message, direction) for message in messages]

    def convert_system(self, system: Any) -> list[Any]:
        if isinstance(system, str):
            return [TextPart(content=system)]
        if isinstance(system, list):
            return [part for item in system for part in _part(item)]
        for key in ("text", "content"):
            if isinstance(system.get(key), str) and system[key]:
                return [TextPart(content=system[key])]
        return [TextPart(content=json.dumps(system))]


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def _string(obj: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = obj.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _first(obj: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if obj.get(key) is not None:
            return obj[key]
    return None


def _object(obj: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = obj.get(key)
    return value if isinstance(value, dict) else None


def _role(msg: dict[str, Any], direction: Direction) -> str:
    role = msg.get("role")
    if isinstance(role, str):
        role = role.lower()
        return _ROLE_ALIASES.get(role, role)
    return Role.USER if direction is Direction.INPUT else Role.ASSISTANT


def _message(raw: dict[str, Any], direction: Direction) -> Message:
    msg = normalize_keys(raw)
    role = _role(msg, direction)
    name = _string(msg, "name")
    parts: list[Any] = []

    for key in ("thinking", "reasoningContent", "reasoning"):
        text = _string(msg, key)
        if text:
            parts.append(ReasoningPart(content=text))

    refusal = _string(msg, "refusal")
    if refusal:
        bag = store_metadata(_PROVIDER, known={IS_REFUSAL: True})
        parts.append(TextPart(content=refusal, provider_metadata=bag))

    if msg.get("content") is not None:
        parts.extend(_content(msg["content"]))
    elif isinstance(msg.get("parts"), list):
        parts.extend(part for item in msg["parts"] if isinstance(item, dict) for part in _part(item))
    else:
        text = _string(msg, "text", "message")
        if text:
            parts.append(TextPart(content=text))

    for call in msg.get("toolCalls") or []:
        if isinstance(call, dict):
            parts.extend(_tool_call(call))

    function_call = _object(msg, "functionCall")
    if function_call and _string(function_call, "name"):
        arguments = parse_json_if_string(function_call.get("arguments"))
        parts.append(ToolCallPart(id=None, name=function_call["name"], arguments=arguments))

    bag = read_metadata(raw)
    if role == Role.TOOL and parts and not any(isinstance(p, ToolCallResponsePart) for p in parts):
        return _tool_message(msg, parts, name, bag)

    if not parts and any(key not in _MESSAGE_FIELDS and not is_reserved(key) for key in msg):
        logger.debug("No recognizable content in %s message; keeping it as JSON text", role)
        parts.append(TextPart(content=json.dumps(raw)))

    return Message(role=role, parts=parts, name=name, provider_metadata=bag)


def _tool_message(msg: dict[str, Any], parts: list[Any], name: str | None, bag: dict[str, Any] | None) -> Message:
    call_id = _first(msg, "toolCallId", "toolUseId")
    if len(parts) == 1 and isinstance(parts[0], TextPart):
        response: Any = parts[0].content
    else:
        response = [part.content if isinstance(part, TextPart) else dump(part) for part in parts]

    tool_name = _first(msg, "name", "toolName")
    part = ToolCallResponsePart(
        id=call_id if isinstance(call_id, str) else None,
        response=response,
        provider_metadata=store_metadata(_PROVIDER, known={TOOL_NAME: str(tool_name) if tool_name else None}),
    )
    return Message(role=Role.TOOL, parts=[part], name=name, provider_metadata=bag)


def _content(content: Any) -> list[Any]:
    if isinstance(content, str):
        return [TextPart(content=content)]
    if isinstance(content, list):
        parts: list[Any] = []
        for item in content:
            if isinstance(item, str):
                parts.append(TextPart(content=item))
            elif isinstance(item, dict):
                parts.extend(_part(item))
        return parts
    if isinstance(content, dict):
        return _part(content)
    return [TextPart(content=str(content))]


# ---------------------------------------------------------------------------
# Parts
# ---------------------------------------------------------------------------


def _part(raw: dict[str, Any]) -> list[Any]:
    part = normalize_keys(raw)
    kind = part.get("type")
    if isinstance(kind, str) and kind:
        return _with_bag(_typed_part(part, kind.lower()), raw)
    return _with_bag(_untyped_part(part), raw)


def _with_bag(parts: list[Any], raw: dict[str, Any]) -> list[Any]:
    """Merge the bag found on *raw* into each part converted from it."""
    bag = read_metadata(raw)
    if bag is None:
        return parts
    return [
        part.model_copy(update={"provider_metadata": merge_metadata(bag, part.provider_metadata)}) for part in parts
    ]


def _typed_part(part: dict[str, Any], kind: str) -> list[Any]:
    if kind == "text":
        text = _string(part, "text", "content")
        return [TextPart(content=text)] if text else []

    if kind in ("image_url", "imageurl"):
        image_url = _object(part, "imageUrl") or {}
        url = _string(image_url, "url", "uri")
        return [_image_url(url)] if url else []

    if kind == "image":
        source = _object(part, "source")
        if source:
            return [_source(source, Modality.IMAGE)]
        image = _string(part, "image")
        return [_image_url(image)] if image else []

    if kind in ("input_audio", "inputaudio", "audio"):
        audio = _object(part, "inputAudio") or _object(part, "audio") or {}
        data = _string(audio, "data") or _string(part, "data")
        audio_format = _string(audio, "format") or _string(part, "format")
        mime_type = {"wav": "audio/wav", "mp3": "audio/mp3"}.get(audio_format or "", "audio/mpeg")
        return [BlobPart(modality=Modality.AUDIO, mime_type=mime_type, content=data)] if data else []

    if kind in ("file", "document"):
        return _file(part)

    if kind in TOOL_CALL_TYPES:
        name = _string(part, "name", "toolName")
        if not name:
            return []
        arguments = parse_json_if_string(_first(part, "input", "args", "arguments", "toolArguments"))
        return [ToolCallPart(id=_string(part, "id", "toolCallId"), name=name, arguments=arguments)]

    if kind in TOOL_RESULT_TYPES:
        response = _first(part, "content", "output", "result", "response")
        return [ToolCallResponsePart(id=_string(part, "toolUseId", "toolCallId", "id"), response=response)]

    if kind in ("thinking", "reasoning"):
        text = _string(part, "thinking", "text", "content")
        return [ReasoningPart(content=text)] if text else []

    if kind in REDACTED_TYPES:
        data = _string(part, "data", "content")
        if not data:
            return []
        bag = store_metadata(_PROVIDER, known={ORIGINAL_TYPE: "redacted-reasoning"})
        return [ReasoningPart(content=data, provider_metadata=bag)]

    if kind == "refusal":
        text = _string(part, "refusal", "content")
        if not text:
            return []
        return [TextPart(content=text, provider_metadata=store_metadata(_PROVIDER, known={IS_REFUSAL: True}))]

    if kind in _CANONICAL_TYPES:
        return [TextPart(content=json.dumps(part))]

    text = _string(part, "text", "content")
    if text:
        return [GenericPart(type=kind, content=text)]
    return [GenericPart(**{**part, "type": kind})]


def _untyped_part(part: dict[str, Any]) -> list[Any]:
    text = _string(part, "text")
    if text:
        if part.get("thought") is True:
            return [ReasoningPart(content=text)]
        return [TextPart(content=text)]

    inline = _object(part, "inlineData")
    if inline and _string(inline, "data"):
        mime_type = _string(inline, "mimeType")
        return [BlobPart(modality=infer_modality(mime_type), mime_type=mime_type, content=inline["data"])]

    file_data = _object(part, "fileData")
    if file_data:
        uri = _string(file_data, "fileUri", "uri")
        if uri:
            mime_type = _string(file_data, "mimeType")
            return [UriPart(modality=infer_modality(mime_type), mime_type=mime_type, uri=uri)]

    call = _object(part, "functionCall")
    if call and _string(call, "name"):
        arguments = parse_json_if_string(_first(call, "args", "arguments"))
        return [ToolCallPart(id=_string(call, "id"), name=call["name"], arguments=arguments)]

    response = _object(part, "functionResponse")
    if response:
        bag = store_metadata(_PROVIDER, known={TOOL_NAME: _string(response, "name")})
        call_id = _string(response, "id")
        return [ToolCallResponsePart(id=call_id, response=response.get("response"), provider_metadata=bag)]

    if part.get("executableCode"):
        return [GenericPart(**{**part, "type": "executable_code"})]
    if part.get("codeExecutionResult"):
        return [GenericPart(**{**part, "type": "code_execution_result"})]

    content = _string(part, "content")
    if content:
        return [TextPart(content=content)]
    return [GenericPart(**{**part, "type": "unknown"})]


def _tool_call(raw: dict[str, Any]) -> list[Any]:
    return _with_bag(_call_parts(normalize_keys(raw)), raw)


def _call_parts(call: dict[str, Any]) -> list[Any]:
    call_id = _string(call, "id")

    for key in ("function", "custom"):
        nested = _object(call, key)
        if call.get("type") == key and nested and _string(nested, "name"):
            arguments = nested.get("arguments") if key == "function" else nested.get("input")
            return [ToolCallPart(id=call_id, name=nested["name"], arguments=parse_json_if_string(arguments))]

    name = _string(call, "name", "toolName")
    if not name:
        return []
    arguments = _first(call, "arguments", "args", "input")
    return [ToolCallPart(id=call_id, name=name, arguments=parse_json_if_string(arguments))]


def _file(part: dict[str, Any]) -> list[Any]:
    file = _object(part, "file")
    if file:
        file = normalize_keys(file)
        mime_type = _string(part, "mediaType", "mimeType") or _string(file, "mimeType")
        modality = infer_modality(mime_type)
        if _string(file, "fileId"):
            return [FilePart(modality=modality, mime_type=mime_type, file_id=file["fileId"])]
        if _string(file, "fileData"):
            return [BlobPart(modality=modality, mime_type=mime_type, content=file["fileData"])]

    source = _object(part, "source")
    if source:
        return [_source(source, None)]

    data = _string(part, "data")
    mime_type = _string(part, "mediaType", "mimeType")
    if data and mime_type:
        modality = infer_modality(mime_type)
        if is_url_string(data):
            return [UriPart(modality=modality, mime_type=mime_type, uri=data)]
        return [BlobPart(modality=modality, mime_type=mime_type, content=data)]
    return []


def _source(raw: dict[str, Any], modality: str | None) -> Any:
    """Convert an Anthropic-style ``source`` object (``None`` modality: infer from the media type)."""
    source = normalize_keys(raw)
    mime_type = _string(source, "mediaType", "mimeType")
    modality = modality or infer_modality(mime_type)

    if source.get("type") == "base64" and _string(source, "data"):
        return BlobPart(modality=modality, mime_type=mime_type, content=source["data"])
    if source.get("type") == "url":
        url = _string(source, "url", "uri")
        if url:
            return UriPart(modality=modality, mime_type=mime_type, uri=url)
    if source.get("type") == "file" and _string(source, "fileId"):
        return FilePart(modality=modality, mime_type=mime_type, file_id=source["fileId"])
    if source.get("type") == "text" and _string(source, "data"):
        return BlobPart(modality=modality, mime_type=mime_type or "text/plain", content=source["data"])
    logger.debug("Unrecognized %s source; keeping it as JSON text", source.get("type"))
    return TextPart(content=json.dumps(raw))


def _image_url(url: str) -> Any:
    if url.startswith("data:"):
        data = split_data_url(url)
        if data is not None:
            return BlobPart(modality=Modality.IMAGE, mime_type=data[0] or "image/png", content=data[1])
    return UriPart(modality=Modality.IMAGE, uri=url)

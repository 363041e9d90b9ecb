"""OpenAI Responses API adapter (source only).

Responses input is a flat list of *items*: messages, function calls, function
call outputs, reasoning and a growing set of hosted-tool items.  Each item
becomes one canonical message; items with no canonical equivalent become a
single generic part that carries the whole item in its metadata.
"""

from __future__ import annotations

from typing import Any

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
from llm_rosetta.core.keys import IS_REFUSAL
from llm_rosetta.core.metadata import extract_extra_fields, read_metadata, store_metadata
from llm_rosetta.core.utils import parse_json_if_string, split_data_url
from llm_rosetta.providers.openai_responses.models import ITEMS
from llm_rosetta.providers.provider import Direction, Provider, ProviderAdapter

_PROVIDER = Provider.OPENAI_RESPONSES

_MESSAGE_KEYS = ("type", "role", "content")
_FUNCTION_CALL_KEYS = ("type", "call_id", "name", "arguments")
_FUNCTION_OUTPUT_KEYS = ("type", "call_id", "output")
_REASONING_KEYS = ("type", "summary")
_TOOL_OUTPUT_SUFFIX = "_call_output"


class OpenAIResponsesAdapter(ProviderAdapter):
    provider = _PROVIDER
    name = "OpenAI Responses"
    messages_schema = ITEMS

    def convert_messages(self, messages: list[Any], direction: Direction) -> list[Message]:
        return [self._item_to_canonical(item) for item in messages]

    def _item_to_canonical(self, item: dict[str, Any]) -> Message:
        kind = item.get("type")
        if "role" in item and kind in (None, "message"):
            return _message(item)
        if kind == "function_call":
            return _function_call(item)
        if kind == "function_call_output":
            return _function_call_output(item)
        if kind == "reasoning":
            return _reasoning(item)

        role = Role.TOOL if kind.endswith(_TOOL_OUTPUT_SUFFIX) else Role.ASSISTANT
        part = GenericPart(type=kind, provider_metadata={_PROVIDER.value: dict(item)})
        return Message(role=role, parts=[part])


def _bag(raw: dict[str, Any], known_keys: tuple[str, ...], **known: Any) -> dict[str, Any] | None:
    return store_metadata(
        _PROVIDER,
        extract_extra_fields(raw, known_keys),
        existing=read_metadata(raw),
        known=known,
    )


def _message(item: dict[str, Any]) -> Message:
    content = item["content"]
    if isinstance(content, str):
        parts: list[Any] = [TextPart(content=content)]
    else:
        parts = [_content_part(part) for part in content]
    return Message(role=item["role"], parts=parts, provider_metadata=_bag(item, _MESSAGE_KEYS))


def _content_part(raw: dict[str, Any]) -> Any:
    kind = raw["type"]

    if kind in ("input_text", "output_text"):
        return TextPart(content=raw["text"], provider_metadata=_bag(raw, ("type", "text")))

    if kind == "refusal":
        return TextPart(content=raw["refusal"], provider_metadata=_bag(raw, ("type", "refusal"), **{IS_REFUSAL: True}))

    if kind == "input_image":
        bag = _bag(raw, ("type", "file_id", "image_url"))
        url = raw.get("image_url")
        if url:
            data = split_data_url(url) if url.startswith("data:") else None
            if data is not None:
                mime_type, payload = data
                return BlobPart(
                    modality=Modality.IMAGE,
                    mime_type=mime_type or "image/png",
                    content=payload,
                    provider_metadata=bag,
                )
            return UriPart(modality=Modality.IMAGE, uri=url, provider_metadata=bag)
        return FilePart(modality=Modality.IMAGE, file_id=raw.get("file_id") or "", provider_metadata=bag)

    if kind == "input_file":
        bag = _bag(raw, ("type", "file_data", "file_id"))
        if raw.get("file_data"):
            return BlobPart(modality=Modality.DOCUMENT, content=raw["file_data"], provider_metadata=bag)
        return FilePart(modality=Modality.DOCUMENT, file_id=raw.get("file_id") or "", provider_metadata=bag)

    # input_audio
    return BlobPart(
        modality=Modality.AUDIO,
        mime_type="audio/wav" if raw["format"] == "wav" else "audio/mp3",
        content=raw["data"],
        provider_metadata=_bag(raw, ("type", "data", "format")),
    )


def _function_call(item: dict[str, Any]) -> Message:
    part = ToolCallPart(
        id=item["call_id"],
        name=item["name"],
        arguments=parse_json_if_string(item["arguments"]),
        provider_metadata=_bag(item, _FUNCTION_CALL_KEYS),
    )
    return Message(role=Role.ASSISTANT, parts=[part])


def _function_call_output(item: dict[str, Any]) -> Message:
    part = ToolCallResponsePart(
        id=item["call_id"],
        response=parse_json_if_string(item["output"]),
        provider_metadata=_bag(item, _FUNCTION_OUTPUT_KEYS),
    )
    return Message(role=Role.TOOL, parts=[part])


def _reasoning(item: dict[str, Any]) -> Message:
    bag = _bag(item, _REASONING_KEYS)
    parts: list[Any] = [ReasoningPart(content=summary["text"]) for summary in item["summary"]]
    if not parts:
        # Encrypted-only reasoning: nothing to attach the extras to but the message.
        return Message(role=Role.ASSISTANT, parts=[], provider_metadata=bag)
    parts[0] = parts[0].model_copy(update={"provider_metadata": bag})
    return Message(role=Role.ASSISTANT, parts=parts)

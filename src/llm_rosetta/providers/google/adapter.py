"""Google Gemini ``Content`` adapter.

Key differences from the canonical form:
- The assistant role is ``model``; tool results are ``functionResponse`` parts
  inside user contents.
- A part has no ``type``: whichever data field is set decides its kind.
- System instructions are a separate ``Content`` without a role.
- ``functionCall.args`` and ``functionResponse.response`` must be objects.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

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
from llm_rosetta.core.keys import TOOL_NAME
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
from llm_rosetta.core.system import extract_system
from llm_rosetta.core.utils import infer_modality, media_fields, parse_json_if_string, rebuild_media
from llm_rosetta.providers.google.models import MESSAGES, SYSTEM
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

_PROVIDER = Provider.GOOGLE

_CONTENT_KEYS = ("role", "parts")
_PART_KEYS = (
    "text",
    "thought",
    "inlineData",
    "fileData",
    "functionCall",
    "functionResponse",
    "executableCode",
    "codeExecutionResult",
)
_RESPONSE_KEY = "content"

EXECUTABLE_CODE = "executable_code"
CODE_EXECUTION_RESULT = "code_execution_result"


class GoogleAdapter(ProviderAdapter):
    provider = _PROVIDER
    name = "Google Gemini"
    messages_schema = MESSAGES
    system_schema = SYSTEM

    # -- provider -> canonical ---------------------------------------------

    def convert_messages(self, messages: list[Any], direction: Direction) -> list[Message]:
        return [_content_to_canonical(content, direction) for content in messages]

    def convert_system(self, system: Any) -> list[Any]:
        if isinstance(system, str):
            return [TextPart(content=system)]
        if isinstance(system, list):
            return [_part_to_canonical(part) for part in system]
        if "parts" in system:
            return [_part_to_canonical(part) for part in system["parts"]]
        return [_part_to_canonical(system)]

    # -- canonical -> provider ---------------------------------------------

    def to_provider_format(
        self,
        messages: Sequence[Message],
        mode: MetadataMode = MetadataMode.STRIP,
    ) -> ProviderOutput:
        mode = MetadataMode(mode)
        prepared = prepare_messages(messages)
        names = tool_names(prepared)
        conversation = extract_system(prepared)

        system = None
        if conversation.system:
            parts = [_part_from_canonical(part, names, mode) for part in conversation.system]
            system = {"parts": [part for part in parts if part is not None]}

        converted = [_content_from_canonical(message, names, mode) for message in conversation.messages]
        return ProviderOutput(messages=converted, system=system)


# ---------------------------------------------------------------------------
# Ingestion helpers
# ---------------------------------------------------------------------------


def _content_to_canonical(raw: dict[str, Any], direction: Direction) -> Message:
    parts = [_part_to_canonical(part) for part in raw["parts"]]

    role = raw.get("role")
    if role == "model":
        role = Role.ASSISTANT
    elif role is None:
        role = Role.USER if direction is Direction.INPUT else Role.ASSISTANT
    if role == Role.USER and parts and all(isinstance(p, ToolCallResponsePart) for p in parts):
        role = Role.TOOL

    bag = store_metadata(_PROVIDER, extract_extra_fields(raw, _CONTENT_KEYS), existing=read_metadata(raw))
    return Message(role=role, parts=parts, provider_metadata=bag)


def _part_to_canonical(raw: dict[str, Any]) -> Any:
    extra = extract_extra_fields(raw, _PART_KEYS)
    notes, existing = take_canonical(read_metadata(raw), _PROVIDER)

    def bag(nested: dict[str, Any] | None = None, nested_keys: tuple[str, ...] = (), **known: Any) -> Any:
        fields = {**extra, **extract_extra_fields(nested or {}, nested_keys)}
        return store_metadata(_PROVIDER, fields, existing=existing, known=known)

    if raw.get("text") is not None:
        if raw.get("thought"):
            return ReasoningPart(content=raw["text"], provider_metadata=bag())
        return TextPart(content=raw["text"], provider_metadata=bag())

    if raw.get("inlineData") is not None:
        blob = raw["inlineData"]
        part = BlobPart(
            modality=infer_modality(blob.get("mimeType")),
            mime_type=blob.get("mimeType"),
            content=blob.get("data") or "",
            provider_metadata=bag(blob, ("mimeType", "data")),
        )
        return rebuild_media(part, notes)

    if raw.get("fileData") is not None:
        file = raw["fileData"]
        part = UriPart(
            modality=infer_modality(file.get("mimeType")),
            mime_type=file.get("mimeType"),
            uri=file.get("fileUri") or "",
            provider_metadata=bag(file, ("mimeType", "fileUri")),
        )
        return rebuild_media(part, notes)

    if raw.get("functionCall") is not None:
        call = raw["functionCall"]
        return ToolCallPart(
            id=call.get("id"),
            name=call.get("name") or "",
            arguments=call.get("args"),
            provider_metadata=bag(call, ("id", "name", "args")),
        )

    if raw.get("functionResponse") is not None:
        response = raw["functionResponse"]
        return ToolCallResponsePart(
            id=response.get("id"),
            response=_unwrap_response(response.get("response")),
            provider_metadata=bag(response, ("id", "name", "response"), **{TOOL_NAME: response.get("name")}),
        )

    if raw.get("executableCode") is not None:
        code = raw["executableCode"]
        return GenericPart(
            type=EXECUTABLE_CODE,
            code=code.get("code") or "",
            language=code.get("language"),
            provider_metadata=bag(code, ("code", "language")),
        )

    result = raw["codeExecutionResult"]
    return GenericPart(
        type=CODE_EXECUTION_RESULT,
        outcome=result.get("outcome"),
        output=result.get("output") or "",
        provider_metadata=bag(result, ("outcome", "output")),
    )


def _unwrap_response(response: Any) -> Any:
    if isinstance(response, dict) and list(response) == [_RESPONSE_KEY]:
        inner = response[_RESPONSE_KEY]
        if not isinstance(inner, dict):
            return inner
    return response


# ---------------------------------------------------------------------------
# Emission helpers
# ---------------------------------------------------------------------------


def _emit(target: dict[str, Any], bag: dict[str, Any] | None, mode: MetadataMode) -> dict[str, Any]:
    return apply_metadata(target, bag, mode, _PROVIDER)


def _content_from_canonical(message: Message, names: dict[str, str], mode: MetadataMode) -> dict[str, Any]:
    role = "model" if message.role == Role.ASSISTANT else "user"
    parts: list[dict[str, Any]] = []
    dropped: list[tuple[int, Any]] = []
    for index, part in enumerate(message.parts):
        converted = _part_from_canonical(part, names, mode)
        if converted is None:
            dropped.append((index, part))
        else:
            parts.append(converted)
    bag = stash_dropped_parts(message.provider_metadata, dropped)
    return _emit({"role": role, "parts": parts}, bag, mode)


def _part_from_canonical(part: Any, names: dict[str, str], mode: MetadataMode) -> dict[str, Any] | None:
    bag = part.provider_metadata

    if isinstance(part, TextPart):
        return _emit({"text": part.content}, bag, mode)

    if isinstance(part, ReasoningPart):
        return _emit({"text": part.content, "thought": True}, bag, mode)

    if isinstance(part, BlobPart):
        blob = {"mimeType": part.mime_type, "data": part.content} if part.mime_type else {"data": part.content}
        return _emit({"inlineData": blob}, note_canonical(bag, _PROVIDER, mode, **media_fields(part)), mode)

    if isinstance(part, (UriPart, FilePart)):
        uri = part.uri if isinstance(part, UriPart) else part.file_id
        file = {"mimeType": part.mime_type, "fileUri": uri} if part.mime_type else {"fileUri": uri}
        return _emit({"fileData": file}, note_canonical(bag, _PROVIDER, mode, **media_fields(part)), mode)

    if isinstance(part, ToolCallPart):
        call: dict[str, Any] = {"name": part.name, "args": _as_object(part.arguments, "args")}
        if part.id:
            call = {"id": part.id, **call}
        return _emit({"functionCall": call}, bag, mode)

    if isinstance(part, ToolCallResponsePart):
        name = get_known_fields(bag).get(TOOL_NAME) or names.get(part.id or "", "")
        response: dict[str, Any] = {"name": name, "response": _wrap_response(part.response)}
        if part.id:
            response = {"id": part.id, **response}
        return _emit({"functionResponse": response}, bag, mode)

    if isinstance(part, GenericPart) and part.type == EXECUTABLE_CODE:
        code = {key: value for key, value in (part.model_extra or {}).items() if value is not None}
        return _emit({"executableCode": code}, bag, mode)

    if isinstance(part, GenericPart) and part.type == CODE_EXECUTION_RESULT:
        result = {key: value for key, value in (part.model_extra or {}).items() if value is not None}
        return _emit({"codeExecutionResult": result}, bag, mode)

    logger.debug("Dropping %s part: no Gemini equivalent", part.type)
    return None


def _wrap_response(response: Any) -> dict[str, Any]:
    if isinstance(response, dict):
        return response
    return {_RESPONSE_KEY: response}


def _as_object(value: Any, field: str) -> dict[str, Any]:
    value = parse_json_if_string(value)
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    logger.debug("Wrapping non-object %s in {'value': ...} for Gemini", field)
    return {"value": value}

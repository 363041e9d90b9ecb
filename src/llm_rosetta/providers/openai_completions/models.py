"""Wire shapes of the OpenAI Chat Completions ``messages`` array.

Only used to accept or reject raw input; conversion reads the raw dicts so
that unknown fields keep their original order.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Wire(BaseModel):
    model_config = ConfigDict(extra="allow")


# ---------------------------------------------------------------------------
# Content parts
# ---------------------------------------------------------------------------


class TextContentPart(_Wire):
    type: Literal["text"]
    text: str


class RefusalContentPart(_Wire):
    type: Literal["refusal"]
    refusal: str


class ImageUrl(_Wire):
    url: str
    detail: Literal["auto", "low", "high"] | None = None


class ImageUrlContentPart(_Wire):
    type: Literal["image_url"]
    image_url: ImageUrl


class InputAudio(_Wire):
    data: str
    format: Literal["wav", "mp3"]


class InputAudioContentPart(_Wire):
    type: Literal["input_audio"]
    input_audio: InputAudio


class FileReference(_Wire):
    filename: str | None = None
    file_data: str | None = None
    file_id: str | None = None


class FileContentPart(_Wire):
    type: Literal["file"]
    file: FileReference


UserContentPart = Annotated[
    Union[TextContentPart, ImageUrlContentPart, InputAudioContentPart, FileContentPart],
    Field(discriminator="type"),
]
AssistantContentPart = Annotated[
    Union[TextContentPart, RefusalContentPart],
    Field(discriminator="type"),
]
TextParts = Annotated[list[TextContentPart], Field(min_length=1)]


# ---------------------------------------------------------------------------
# Tool calls
# ---------------------------------------------------------------------------


class FunctionSpec(_Wire):
    name: str
    arguments: str


class FunctionToolCall(_Wire):
    id: str
    type: Literal["function"]
    function: FunctionSpec


class CustomSpec(_Wire):
    name: str
    input: str


class CustomToolCall(_Wire):
    id: str
    type: Literal["custom"]
    custom: CustomSpec


ToolCall = Annotated[Union[FunctionToolCall, CustomToolCall], Field(discriminator="type")]


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class DeveloperMessage(_Wire):
    role: Literal["developer"]
    content: str | TextParts
    name: str | None = None


class SystemMessage(_Wire):
    role: Literal["system"]
    content: str | TextParts
    name: str | None = None


class UserMessage(_Wire):
    role: Literal["user"]
    content: str | Annotated[list[UserContentPart], Field(min_length=1)]
    name: str | None = None


class AssistantMessage(_Wire):
    role: Literal["assistant"]
    content: str | Annotated[list[AssistantContentPart], Field(min_length=1)] | None = None
    refusal: str | None = None
    name: str | None = None
    tool_calls: list[ToolCall] | None = None
    function_call: FunctionSpec | None = None


class ToolMessage(_Wire):
    role: Literal["tool"]
    content: str | TextParts
    tool_call_id: str


class FunctionMessage(_Wire):
    role: Literal["function"]
    content: str | None
    name: str


ChatMessage = Annotated[
    Union[
        DeveloperMessage,
        SystemMessage,
        UserMessage,
        AssistantMessage,
        ToolMessage,
        FunctionMessage,
    ],
    Field(discriminator="role"),
]

MESSAGES = TypeAdapter(list[ChatMessage])

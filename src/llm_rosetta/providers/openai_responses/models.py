"""Wire shapes of OpenAI Responses API input/output items."""

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, TypeAdapter


class _Wire(BaseModel):
    model_config = ConfigDict(extra="allow")


class TextContent(_Wire):
    type: Literal["input_text", "output_text"]
    text: str


class ImageContent(_Wire):
    type: Literal["input_image"]
    detail: Literal["low", "high", "auto"] | None = None
    file_id: str | None = None
    image_url: str | None = None


class FileContent(_Wire):
    type: Literal["input_file"]
    file_data: str | None = None
    file_id: str | None = None


class AudioContent(_Wire):
    type: Literal["input_audio"]
    data: str
    format: Literal["mp3", "wav"]


class RefusalContent(_Wire):
    type: Literal["refusal"]
    refusal: str


ContentPart = Union[TextContent, ImageContent, FileContent, AudioContent, RefusalContent]


class MessageItem(_Wire):
    type: Literal["message"] | None = None
    role: Literal["user", "assistant", "system", "developer"]
    content: str | list[ContentPart]


class FunctionCallItem(_Wire):
    type: Literal["function_call"]
    call_id: str
    name: str
    arguments: str


class FunctionCallOutputItem(_Wire):
    type: Literal["function_call_output"]
    call_id: str
    output: str


class ReasoningSummary(_Wire):
    type: Literal["summary_text"]
    text: str


class ReasoningItem(_Wire):
    type: Literal["reasoning"]
    summary: list[ReasoningSummary]


class GenericItem(_Wire):
    """Any other item type (web search calls, computer calls, ...)."""

    type: str


Item = Union[MessageItem, FunctionCallItem, FunctionCallOutputItem, ReasoningItem, GenericItem]

ITEMS = TypeAdapter(list[Item])

"""Wire shapes of the Anthropic Messages API."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Wire(BaseModel):
    model_config = ConfigDict(extra="allow")


class TextBlock(_Wire):
    type: Literal["text"]
    text: str


class ThinkingBlock(_Wire):
    type: Literal["thinking"]
    thinking: str
    signature: str


class RedactedThinkingBlock(_Wire):
    type: Literal["redacted_thinking"]
    data: str


class ToolUseBlock(_Wire):
    type: Literal["tool_use"]
    id: str
    name: str
    input: Any = None


class ServerToolUseBlock(_Wire):
    type: Literal["server_tool_use"]
    id: str
    name: str
    input: Any = None


class ToolResultBlock(_Wire):
    type: Literal["tool_result"]
    tool_use_id: str
    content: str | list[Any] | None = None
    is_error: bool | None = None


# ---------------------------------------------------------------------------
# Media sources
# ---------------------------------------------------------------------------


class Base64ImageSource(_Wire):
    type: Literal["base64"]
    media_type: Literal["image/jpeg", "image/png", "image/gif", "image/webp"]
    data: str


class UrlSource(_Wire):
    type: Literal["url"]
    url: str


class FileSource(_Wire):
    type: Literal["file"]
    file_id: str


class ImageBlock(_Wire):
    type: Literal["image"]
    source: Annotated[Union[Base64ImageSource, UrlSource, FileSource], Field(discriminator="type")]


class Base64PdfSource(_Wire):
    type: Literal["base64"]
    media_type: Literal["application/pdf"]
    data: str


class PlainTextSource(_Wire):
    type: Literal["text"]
    media_type: Literal["text/plain"]
    data: str


class ContentBlockSource(_Wire):
    type: Literal["content"]
    content: str | list[Union[TextBlock, ImageBlock]]


class DocumentBlock(_Wire):
    type: Literal["document"]
    source: Annotated[
        Union[Base64PdfSource, PlainTextSource, UrlSource, FileSource, ContentBlockSource],
        Field(discriminator="type"),
    ]


class WebSearchToolResultBlock(_Wire):
    type: Literal["web_search_tool_result"]
    tool_use_id: str
    content: Any = None


class SearchResultBlock(_Wire):
    type: Literal["search_result"]
    source: str
    title: str
    content: list[TextBlock]


ContentBlock = Annotated[
    Union[
        TextBlock,
        ImageBlock,
        DocumentBlock,
        ThinkingBlock,
        RedactedThinkingBlock,
        ToolUseBlock,
        ToolResultBlock,
        ServerToolUseBlock,
        WebSearchToolResultBlock,
        SearchResultBlock,
    ],
    Field(discriminator="type"),
]


class AnthropicMessage(_Wire):
    role: Literal["user", "assistant"]
    content: str | Annotated[list[ContentBlock], Field(min_length=1)]
    id: str | None = None
    type: Literal["message"] | None = None
    model: str | None = None
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: dict[str, Any] | None = None


MESSAGES = TypeAdapter(list[AnthropicMessage])
SYSTEM = TypeAdapter(Union[str, list[TextBlock]])

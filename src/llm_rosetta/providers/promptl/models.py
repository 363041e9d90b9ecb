"""Wire shapes of PromptL messages."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Wire(BaseModel):
    model_config = ConfigDict(extra="allow")


class TextContent(_Wire):
    type: Literal["text"]
    text: str | None = None


class ImageContent(_Wire):
    type: Literal["image"]
    image: str


class FileContent(_Wire):
    type: Literal["file"]
    file: str
    mimeType: str


class ReasoningContent(_Wire):
    type: Literal["reasoning"]
    text: str
    id: str | None = None
    isStreaming: bool | None = None


class RedactedReasoningContent(_Wire):
    type: Literal["redacted-reasoning"]
    data: str


class ToolCallContent(_Wire):
    type: Literal["tool-call"]
    toolCallId: str
    toolName: str
    args: dict[str, Any] | None = None
    toolArguments: dict[str, Any] | None = None


class ToolResultContent(_Wire):
    type: Literal["tool-result"]
    toolCallId: str
    toolName: str
    result: Any = None
    isError: bool | None = None


Content = Annotated[
    Union[
        TextContent,
        ImageContent,
        FileContent,
        ReasoningContent,
        RedactedReasoningContent,
        ToolCallContent,
        ToolResultContent,
    ],
    Field(discriminator="type"),
]


class ToolCall(_Wire):
    """Legacy assistant ``toolCalls`` entry."""

    id: str
    name: str
    arguments: dict[str, Any]


class _ContentMessage(_Wire):
    content: str | list[Content]


class SystemMessage(_ContentMessage):
    role: Literal["system"]


class DeveloperMessage(_ContentMessage):
    role: Literal["developer"]


class UserMessage(_ContentMessage):
    role: Literal["user"]
    name: str | None = None


class AssistantMessage(_ContentMessage):
    role: Literal["assistant"]
    toolCalls: list[ToolCall] | None = None


class ToolMessage(_Wire):
    role: Literal["tool"]
    content: list[Content]
    toolName: str | None = None
    toolId: str | None = None


PromptlMessage = Annotated[
    Union[SystemMessage, DeveloperMessage, UserMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]

MESSAGES = TypeAdapter(list[PromptlMessage])

"""Wire shapes of Vercel AI SDK ``ModelMessage`` values."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Wire(BaseModel):
    model_config = ConfigDict(extra="allow")


# ---------------------------------------------------------------------------
# Parts
# ---------------------------------------------------------------------------


class TextPart(_Wire):
    type: Literal["text"]
    text: str


class ImagePart(_Wire):
    type: Literal["image"]
    image: str
    mediaType: str | None = None


class FilePart(_Wire):
    type: Literal["file"]
    data: str
    mediaType: str
    filename: str | None = None


class ReasoningPart(_Wire):
    type: Literal["reasoning"]
    text: str


class ToolCallPart(_Wire):
    type: Literal["tool-call"]
    toolCallId: str
    toolName: str
    input: Any = None


class TextOutput(_Wire):
    type: Literal["text", "error-text"]
    value: str


class JsonOutput(_Wire):
    type: Literal["json", "error-json"]
    value: Any = None


class ExecutionDeniedOutput(_Wire):
    type: Literal["execution-denied"]
    reason: str | None = None


class ContentOutput(_Wire):
    type: Literal["content"]
    value: list[dict[str, Any]]


ToolResultOutput = Union[TextOutput, JsonOutput, ExecutionDeniedOutput, ContentOutput]


class ToolResultPart(_Wire):
    type: Literal["tool-result"]
    toolCallId: str
    toolName: str
    output: ToolResultOutput


class ToolApprovalRequest(_Wire):
    type: Literal["tool-approval-request"]
    approvalId: str
    toolCallId: str


class ToolApprovalResponse(_Wire):
    type: Literal["tool-approval-response"]
    approvalId: str
    approved: bool
    reason: str | None = None


UserContent = Annotated[Union[TextPart, ImagePart, FilePart], Field(discriminator="type")]
AssistantContent = Annotated[
    Union[TextPart, FilePart, ReasoningPart, ToolCallPart, ToolResultPart, ToolApprovalRequest],
    Field(discriminator="type"),
]
ToolContent = Annotated[Union[ToolResultPart, ToolApprovalResponse], Field(discriminator="type")]


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class SystemMessage(_Wire):
    role: Literal["system"]
    content: str


class UserMessage(_Wire):
    role: Literal["user"]
    content: str | list[UserContent]


class AssistantMessage(_Wire):
    role: Literal["assistant"]
    content: str | list[AssistantContent]


class ToolMessage(_Wire):
    role: Literal["tool"]
    content: list[ToolContent]


ModelMessage = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]

MESSAGES = TypeAdapter(list[ModelMessage])

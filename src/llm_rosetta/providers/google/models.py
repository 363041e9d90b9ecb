"""Wire shapes of Gemini ``Content`` objects (camelCase keys)."""

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, TypeAdapter, model_validator


class _Wire(BaseModel):
    model_config = ConfigDict(extra="allow")


class Blob(_Wire):
    mimeType: str | None = None
    data: str | None = None


class FileData(_Wire):
    mimeType: str | None = None
    fileUri: str | None = None


class FunctionCall(_Wire):
    id: str | None = None
    name: str | None = None
    args: dict[str, Any] | None = None


class FunctionResponse(_Wire):
    id: str | None = None
    name: str | None = None
    response: dict[str, Any] | None = None


class ExecutableCode(_Wire):
    code: str | None = None
    language: str | None = None


class CodeExecutionResult(_Wire):
    outcome: str | None = None
    output: str | None = None


DATA_FIELDS = (
    "text",
    "inlineData",
    "fileData",
    "functionCall",
    "functionResponse",
    "executableCode",
    "codeExecutionResult",
)


class GooglePart(_Wire):
    """A Gemini part.  Exactly which data field is set decides its kind."""

    text: str | None = None
    thought: bool | None = None
    thoughtSignature: str | None = None
    inlineData: Blob | None = None
    fileData: FileData | None = None
    functionCall: FunctionCall | None = None
    functionResponse: FunctionResponse | None = None
    executableCode: ExecutableCode | None = None
    codeExecutionResult: CodeExecutionResult | None = None

    @model_validator(mode="after")
    def _has_data(self) -> "GooglePart":
        if not any(getattr(self, name) is not None for name in DATA_FIELDS):
            raise ValueError(f"part must set one of: {', '.join(DATA_FIELDS)}")
        return self


class GoogleContent(_Wire):
    role: Literal["user", "model", "system"] | None = None
    parts: list[GooglePart]


MESSAGES = TypeAdapter(list[GoogleContent])
SYSTEM = TypeAdapter(Union[str, GoogleContent, list[GooglePart], GooglePart])

"""Canonical intermediate representation shared by every provider adapter."""

from llm_rosetta.core.genai.models import (
    BlobPart,
    Conversation,
    FilePart,
    FinishReason,
    GenericPart,
    Message,
    Modality,
    Part,
    ReasoningPart,
    Role,
    TextPart,
    ToolCallPart,
    ToolCallResponsePart,
    UriPart,
    dump,
    dump_messages,
    dump_parts,
    parse_messages,
    parse_part,
    parse_parts,
)

__all__ = [
    "BlobPart",
    "Conversation",
    "FilePart",
    "FinishReason",
    "GenericPart",
    "Message",
    "Modality",
    "Part",
    "ReasoningPart",
    "Role",
    "TextPart",
    "ToolCallPart",
    "ToolCallResponsePart",
    "UriPart",
    "dump",
    "dump_messages",
    "dump_parts",
    "parse_messages",
    "parse_part",
    "parse_parts",
]

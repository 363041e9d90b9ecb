"""Small value helpers shared by the provider adapters."""

from __future__ import annotations

import json
import re
from typing import Any

from llm_rosetta.core.genai.models import BlobPart, FilePart, GenericPart, Modality, TextPart, UriPart
from llm_rosetta.core.keys import reserved_name

_DATA_URL = re.compile(r"^data:([^;,]+)?(?:;base64)?,(.*)$", re.DOTALL)
_KEY_SEPARATOR = re.compile(r"[-_](\w)")


def parse_json_if_string(value: Any) -> Any:
    """Decode *value* if it is a JSON string; keep the raw string when it is not valid JSON."""
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def dump_json_if_needed(value: Any) -> str:
    """Encode *value* as a JSON string unless it already is a string."""
    if isinstance(value, str):
        return value
    return json.dumps(value if value is not None else {})


def is_url_string(value: str) -> bool:
    return value.startswith(("http://", "https://", "data:"))


def infer_modality(mime_type: str | None) -> str:
    """Map a MIME type to a canonical modality (``document`` when unknown)."""
    if not mime_type:
        return Modality.DOCUMENT
    for prefix, modality in (("image/", Modality.IMAGE), ("video/", Modality.VIDEO), ("audio/", Modality.AUDIO)):
        if mime_type.startswith(prefix):
            return modality
    return Modality.DOCUMENT


def split_data_url(url: str) -> tuple[str | None, str] | None:
    """Split a ``data:`` URL into ``(mime_type, payload)``, or ``None`` if *url* is not one."""
    match = _DATA_URL.match(url)
    if match is None:
        return None
    return match.group(1), match.group(2)


def to_data_url(mime_type: str | None, payload: str) -> str:
    return f"data:{mime_type or 'application/octet-stream'};base64,{payload}"


def normalize_key(key: str) -> str:
    """``tool_call_id`` / ``tool-call-id`` -> ``toolCallId``."""
    return _KEY_SEPARATOR.sub(lambda m: m.group(1).upper(), key)


def normalize_keys(obj: dict[str, Any]) -> dict[str, Any]:
    """Normalize every key except the reserved metadata names."""
    return {key if reserved_name(key) else normalize_key(key): value for key, value in obj.items()}


# ---------------------------------------------------------------------------
# Canonical notes for media and generic parts
# ---------------------------------------------------------------------------

_MEDIA: dict[str, tuple[type, str]] = {
    "blob": (BlobPart, "content"),
    "file": (FilePart, "file_id"),
    "uri": (UriPart, "uri"),
}


def media_fields(part: Any) -> dict[str, Any]:
    """The canonical descriptor of a blob, file or uri part."""
    return {"type": part.type, "modality": part.modality, "mime_type": part.mime_type}


def rebuild_media(part: Any, notes: dict[str, Any]) -> Any:
    """Rebuild a media part from the descriptor noted by :func:`media_fields`.

    The payload (inline data, file id or URL) is taken from *part* as parsed
    off the wire; type, modality and MIME type come from *notes*.
    """
    kind = notes.get("type")
    if kind not in _MEDIA or not isinstance(part, (BlobPart, FilePart, UriPart)):
        return part
    payload = getattr(part, _MEDIA[part.type][1])
    cls, field = _MEDIA[kind]
    return cls(
        modality=notes.get("modality") or part.modality,
        mime_type=notes.get("mime_type"),
        provider_metadata=part.provider_metadata,
        **{field: payload},
    )


def generic_fields(part: GenericPart) -> dict[str, Any]:
    """Fields of a generic part emitted as plain text, other than its text."""
    extra = {key: value for key, value in (part.model_extra or {}).items() if key != "content"}
    return {"type": part.type, **extra}


def rebuild_generic(part: Any, notes: dict[str, Any]) -> Any:
    """Turn a text part back into the generic part noted by :func:`generic_fields`."""
    fields = notes.get("generic")
    if not isinstance(part, TextPart) or not isinstance(fields, dict) or not isinstance(fields.get("type"), str):
        return part
    return GenericPart(**{**fields, "content": part.content, "provider_metadata": part.provider_metadata})

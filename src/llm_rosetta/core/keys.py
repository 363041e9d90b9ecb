"""Reserved metadata field names shared by every adapter.

These names are part of the wire contract: payloads written by one provider
adapter must be readable by every other one.  Each reserved name is matched
case-insensitively under both its snake_case and its historical camelCase
spelling, and is normalized to the snake_case spelling when read.
"""

from __future__ import annotations

from typing import Any

PROVIDER_METADATA = "_provider_metadata"
KNOWN_FIELDS = "_known_fields"
PARTS_METADATA = "_parts_metadata"

# Known-field keys: the only metadata entries with cross-provider meaning.
TOOL_NAME = "toolName"
IS_ERROR = "isError"
IS_REFUSAL = "isRefusal"
ORIGINAL_TYPE = "originalType"
MESSAGE_INDEX = "messageIndex"
MESSAGE_METADATA = "messageMetadata"
DROPPED_PARTS = "droppedParts"

_SPELLINGS: dict[str, str] = {
    "_provider_metadata": PROVIDER_METADATA,
    "_providermetadata": PROVIDER_METADATA,
    "_known_fields": KNOWN_FIELDS,
    "_knownfields": KNOWN_FIELDS,
    "_parts_metadata": PARTS_METADATA,
    "_partsmetadata": PARTS_METADATA,
}


def reserved_name(key: str) -> str | None:
    """Return the canonical spelling of *key* if it is a reserved name."""
    if not isinstance(key, str):
        return None
    return _SPELLINGS.get(key.lower())


def is_reserved(key: str, name: str | None = None) -> bool:
    """Return ``True`` if *key* is reserved (optionally: is the reserved *name*)."""
    canonical = reserved_name(key)
    if canonical is None:
        return False
    return name is None or canonical == name


def normalize_bag(bag: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a metadata bag with reserved sub-keys normalized."""
    normalized: dict[str, Any] = {}
    for key, value in bag.items():
        canonical = reserved_name(key)
        if canonical in (KNOWN_FIELDS, PARTS_METADATA) and isinstance(value, dict):
            target = normalized.setdefault(canonical, {})
            value = normalize_bag(value) if canonical == PARTS_METADATA else value
            target.update(value)
        else:
            normalized[key] = value
    return normalized


def normalize_entity(data: dict[str, Any]) -> dict[str, Any]:
    """Rename any spelling of the metadata-bag field on a raw entity to ``_provider_metadata``."""
    if not any(is_reserved(key, PROVIDER_METADATA) and key != PROVIDER_METADATA for key in data):
        bag = data.get(PROVIDER_METADATA)
        if isinstance(bag, dict):
            return {**data, PROVIDER_METADATA: normalize_bag(bag)}
        return data

    normalized: dict[str, Any] = {}
    for key, value in data.items():
        if is_reserved(key, PROVIDER_METADATA):
            if isinstance(value, dict):
                merged = normalized.get(PROVIDER_METADATA) or {}
                normalized[PROVIDER_METADATA] = {**merged, **normalize_bag(value)}
            continue
        normalized[key] = value
    return normalized

"""Metadata preservation engine.

Provider wire formats carry fields the IR has no slot for.  On ingestion an
adapter splits each raw entity into *known* fields (consumed structurally) and
*extra* fields, which are stored in the entity's metadata bag under the
producing provider's key::

    {
        "anthropic": {"cache_control": {"type": "ephemeral"}},
        "_known_fields": {"toolName": "search", "isError": True},
        "_parts_metadata": {...},
    }

Only ``_known_fields`` entries carry meaning across providers.  On emission,
:func:`apply_metadata` writes the bag back onto the target entity according to
a :class:`MetadataMode`.
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import TYPE_CHECKING, Any

from llm_rosetta.core.genai.models import dump, parse_part
from llm_rosetta.core.keys import (
    DROPPED_PARTS,
    KNOWN_FIELDS,
    PARTS_METADATA,
    PROVIDER_METADATA,
    is_reserved,
    normalize_bag,
    reserved_name,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from llm_rosetta.core.genai.models import Message


class MetadataMode(str, Enum):
    """How a metadata bag is written onto emitted provider entities."""

    STRIP = "strip"
    PASSTHROUGH = "passthrough"
    PRESERVE = "preserve"


# Own-entry field holding canonical details a wire format cannot express.
CANONICAL_NOTES = "_canonical"


def _key(provider: Any) -> str:
    return provider.value if isinstance(provider, Enum) else str(provider)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


def extract_extra_fields(raw: Mapping[str, Any], known_keys: Iterable[str]) -> dict[str, Any]:
    """Return the fields of *raw* not in *known_keys*, in their original order.

    The metadata bag itself is never an extra field.
    """
    known = set(known_keys)
    return {
        key: value
        for key, value in raw.items()
        if key not in known and not is_reserved(key, PROVIDER_METADATA)
    }


def read_metadata(raw: Mapping[str, Any]) -> dict[str, Any] | None:
    """Return the normalized metadata bag found on a raw entity, if any."""
    for key, value in raw.items():
        if is_reserved(key, PROVIDER_METADATA) and isinstance(value, dict):
            return normalize_bag(value)
    return None


def merge_metadata(
    base: Mapping[str, Any] | None, overlay: Mapping[str, Any] | None
) -> dict[str, Any] | None:
    """Merge two bags entry by entry; *overlay* wins on conflicting sub-keys."""
    merged: dict[str, Any] = copy.deepcopy(dict(base or {}))
    for key, value in (overlay or {}).items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = {**current, **copy.deepcopy(value)}
        else:
            merged[key] = copy.deepcopy(value)
    return merged or None


def store_metadata(
    provider: Any,
    extra: Mapping[str, Any] | None = None,
    *,
    existing: Mapping[str, Any] | None = None,
    known: Mapping[str, Any] | None = None,
) -> dict[str, Any] | None:
    """Build an IR metadata bag.

    *extra* fields go under the *provider* key, on top of any *existing* bag
    found on the raw entity.  *known* fields go under ``_known_fields``;
    ``None`` values are skipped.
    """
    overlay: dict[str, Any] = {}
    if extra:
        overlay[_key(provider)] = dict(extra)
    known_values = {k: v for k, v in (known or {}).items() if v is not None}
    if known_values:
        overlay[KNOWN_FIELDS] = known_values
    return merge_metadata(existing, overlay)


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------


def _reserved_entry(bag: Mapping[str, Any] | None, name: str) -> dict[str, Any] | None:
    if not bag:
        return None
    for key, value in bag.items():
        if reserved_name(key) == name and isinstance(value, dict):
            return value
    return None


def get_known_fields(bag: Mapping[str, Any] | None) -> dict[str, Any]:
    return dict(_reserved_entry(bag, KNOWN_FIELDS) or {})


def get_parts_metadata(bag: Mapping[str, Any] | None) -> dict[str, Any] | None:
    entry = _reserved_entry(bag, PARTS_METADATA)
    return normalize_bag(entry) if entry is not None else None


def get_provider_metadata(bag: Mapping[str, Any] | None, provider: Any) -> dict[str, Any]:
    """Return the opaque entry *provider* stored in *bag* (empty if none)."""
    entry = (bag or {}).get(_key(provider))
    return dict(entry) if isinstance(entry, dict) else {}


def with_known_fields(bag: Mapping[str, Any] | None, **fields: Any) -> dict[str, Any] | None:
    """Return a copy of *bag* with known fields updated.  ``None`` removes a field."""
    result = {k: v for k, v in copy.deepcopy(dict(bag or {})).items() if reserved_name(k) != KNOWN_FIELDS}
    known = get_known_fields(bag)
    for name, value in fields.items():
        if value is None:
            known.pop(name, None)
        else:
            known[name] = value
    if known:
        result[KNOWN_FIELDS] = known
    return result or None


def without_entry(bag: Mapping[str, Any] | None, name: str) -> dict[str, Any] | None:
    """Return a copy of *bag* without the entry *name* (any spelling)."""
    result = {k: v for k, v in (bag or {}).items() if reserved_name(k) != name and k != name}
    return result or None


def emission_entry(bag: Mapping[str, Any] | None, provider: Any, mode: MetadataMode | str) -> dict[str, Any]:
    """Return *provider*'s own entry for building an emitted entity.

    ``strip`` discards every bag, so nothing read from one may reach the output.
    """
    if MetadataMode(mode) is MetadataMode.STRIP:
        return {}
    return get_provider_metadata(bag, provider)


# ---------------------------------------------------------------------------
# Canonical notes
# ---------------------------------------------------------------------------


def note_canonical(
    bag: Mapping[str, Any] | None, provider: Any, mode: MetadataMode | str, **fields: Any
) -> dict[str, Any] | None:
    """Record canonical *fields* that the emitted wire entity cannot express.

    Notes are written in ``preserve`` mode only, under the provider's own
    entry, and are consumed again by :func:`take_canonical` on ingestion.
    """
    if MetadataMode(mode) is not MetadataMode.PRESERVE or not fields:
        return dict(bag) if bag else None
    return store_metadata(provider, {CANONICAL_NOTES: fields}, existing=bag)


def take_canonical(bag: Mapping[str, Any] | None, provider: Any) -> tuple[dict[str, Any], dict[str, Any] | None]:
    """Split the notes written by :func:`note_canonical` off a raw entity's bag."""
    own = get_provider_metadata(bag, provider)
    notes = own.pop(CANONICAL_NOTES, None)
    if not isinstance(notes, dict):
        return {}, dict(bag) if bag else None

    key = _key(provider)
    result = {k: v for k, v in (bag or {}).items() if k != key}
    if own:
        result[key] = own
    return notes, result or None


# ---------------------------------------------------------------------------
# Emission
# ---------------------------------------------------------------------------


def apply_metadata(
    target: dict[str, Any],
    bag: Mapping[str, Any] | None,
    mode: MetadataMode | str,
    provider: Any,
    consumed: Iterable[str] = (),
) -> dict[str, Any]:
    """Write *bag* onto the emitted *target* entity and return it.

    ``strip`` writes nothing.  ``passthrough`` spreads every provider entry onto
    the target, the target provider's own entry first, never replacing a field
    the target already has; reserved entries and canonical notes are never
    spread, nor are the *consumed* keys of the target provider's own entry (the
    adapter already placed those structurally).  ``preserve`` nests the whole
    bag under ``_provider_metadata``.
    """
    mode = MetadataMode(mode)
    if not bag or mode is MetadataMode.STRIP:
        return target

    if mode is MetadataMode.PRESERVE:
        target[PROVIDER_METADATA] = copy.deepcopy(dict(bag))
        return target

    own = _key(provider)
    skip = set(consumed)
    ordered = [own, *(key for key in bag if key != own)]
    for key in ordered:
        entry = bag.get(key)
        if reserved_name(key) is not None or not isinstance(entry, dict):
            continue
        for field, value in entry.items():
            if (key == own and field in skip) or field == CANONICAL_NOTES:
                continue
            target.setdefault(field, copy.deepcopy(value))
    return target


def collapse_parts_metadata(
    message_bag: Mapping[str, Any] | None, part_bag: Mapping[str, Any] | None
) -> dict[str, Any] | None:
    """Stash a part's bag on its message when the part collapses into a string.

    The stash lives under ``_parts_metadata``, so only ``preserve`` mode emits it.
    """
    if not part_bag:
        return dict(message_bag) if message_bag else None
    result = dict(message_bag or {})
    result[PARTS_METADATA] = merge_metadata(get_parts_metadata(message_bag), part_bag)
    return {k: v for k, v in result.items() if not (reserved_name(k) == PARTS_METADATA and k != PARTS_METADATA)}


def restore_parts_metadata(message: Message) -> Message:
    """Move a message's ``_parts_metadata`` stash onto its first part."""
    stash = get_parts_metadata(message.provider_metadata)
    if stash is None or not message.parts:
        return message

    parts = list(message.parts)
    first = parts[0]
    parts[0] = first.model_copy(
        update={"provider_metadata": merge_metadata(first.provider_metadata, stash)}
    )
    return message.model_copy(
        update={
            "parts": parts,
            "provider_metadata": without_entry(message.provider_metadata, PARTS_METADATA),
        }
    )


def stash_dropped_parts(
    message_bag: Mapping[str, Any] | None, dropped: Sequence[tuple[int, Any]]
) -> dict[str, Any] | None:
    """Record parts a target format has no place for on their message's bag.

    Each entry keeps the part's index in the canonical message.  The stash is a
    known field, so only ``preserve`` mode emits it.
    """
    if not dropped:
        return dict(message_bag) if message_bag else None
    stash = [{"index": index, "part": dump(part)} for index, part in dropped]
    return with_known_fields(message_bag, **{DROPPED_PARTS: stash})


def restore_dropped_parts(message: Message) -> Message:
    """Reinsert stashed dropped parts at their original positions.

    Raises :class:`pydantic.ValidationError` if a stashed part is malformed.
    """
    stash = get_known_fields(message.provider_metadata).get(DROPPED_PARTS)
    if not isinstance(stash, list):
        return message

    entries = [
        entry
        for entry in stash
        if isinstance(entry, dict)
        and isinstance(entry.get("index"), int)
        and not isinstance(entry["index"], bool)
        and isinstance(entry.get("part"), dict)
    ]
    parts = list(message.parts)
    for entry in sorted(entries, key=lambda entry: entry["index"]):
        parts.insert(min(max(entry["index"], 0), len(parts)), parse_part(entry["part"]))
    return message.model_copy(
        update={
            "parts": parts,
            "provider_metadata": with_known_fields(message.provider_metadata, **{DROPPED_PARTS: None}),
        }
    )

"""System-instruction reconciliation.

Split-channel providers (Anthropic, Gemini) keep system instructions outside
the message list; single-channel providers (OpenAI, PromptL, Vercel AI) keep
them inline as system-role messages.  The canonical form always carries them
separately, each part remembering where its message originally sat so the
inline order can be rebuilt exactly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from llm_rosetta.core.genai.models import Conversation, Message, Role
from llm_rosetta.core.keys import MESSAGE_INDEX, MESSAGE_METADATA
from llm_rosetta.core.metadata import get_known_fields, merge_metadata, with_known_fields

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


def message_index(part: Any) -> int | None:
    """Return the original message index recorded on a system part, if valid."""
    index = get_known_fields(part.provider_metadata).get(MESSAGE_INDEX)
    if isinstance(index, int) and not isinstance(index, bool):
        return index
    return None


def extract_system(messages: Sequence[Message], system: Sequence[Any] | None = None) -> Conversation:
    """Move every system-role message out of *messages* into the system sequence.

    Separately supplied *system* parts come first and keep whatever index they
    already carry.  Each extracted part records the index its message held in
    the original sequence; the first part of a message also keeps that
    message's own metadata bag so it can be restored on reinsertion.
    """
    parts: list[Any] = list(system or [])
    remaining: list[Message] = []

    for index, message in enumerate(messages):
        if message.role != Role.SYSTEM:
            remaining.append(message)
            continue
        for position, part in enumerate(message.parts):
            known: dict[str, Any] = {MESSAGE_INDEX: index}
            if position == 0 and message.provider_metadata:
                known[MESSAGE_METADATA] = message.provider_metadata
            parts.append(
                part.model_copy(
                    update={"provider_metadata": with_known_fields(part.provider_metadata, **known)}
                )
            )

    return Conversation(messages=remaining, system=parts or None)


def _system_message(parts: list[Any]) -> Message:
    message_bag: dict[str, Any] | None = None
    restored: list[Any] = []
    for part in parts:
        stored = get_known_fields(part.provider_metadata).get(MESSAGE_METADATA)
        if stored is not None:
            if isinstance(stored, dict):
                message_bag = merge_metadata(message_bag, stored)
            part = part.model_copy(
                update={"provider_metadata": with_known_fields(part.provider_metadata, **{MESSAGE_METADATA: None})}
            )
        restored.append(part)
    return Message(role=Role.SYSTEM, parts=restored, provider_metadata=message_bag)


def reinsert_system(messages: Sequence[Message], system: Sequence[Any] | None) -> list[Message]:
    """Rebuild an inline message list from canonical messages and system parts.

    Parts without an index form one message at position 0.  Indexed parts are
    grouped by index (equal indices share one message) and inserted in
    ascending order, each index clamped to the final length of the list.
    """
    result = list(messages)
    if not system:
        return result

    implicit: list[Any] = []
    groups: dict[int, list[Any]] = {}
    for part in system:
        index = message_index(part)
        if index is None:
            implicit.append(part)
        else:
            groups.setdefault(index, []).append(part)

    if implicit:
        result.insert(0, _system_message(implicit))

    final_length = len(result) + len(groups)
    for index in sorted(groups):
        position = min(max(index, 0), final_length, len(result))
        result.insert(position, _system_message(groups[index]))

    logger.debug(
        "Reinserted %d system part(s) into %d message(s) (%d indexed group(s))",
        len(system),
        len(messages),
        len(groups),
    )
    return result

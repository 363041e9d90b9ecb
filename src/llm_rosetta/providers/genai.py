"""The canonical format itself, exposed as a provider.

Its system channel is a list of canonical parts (a bare string or a single
part is also accepted on input).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Union

from pydantic import TypeAdapter

from llm_rosetta.core.genai.models import (
    Conversation,
    Message,
    Part,
    Role,
    TextPart,
    dump_messages,
    dump_parts,
    parse_messages,
    parse_part,
    parse_parts,
)
from llm_rosetta.core.metadata import MetadataMode
from llm_rosetta.core.system import extract_system
from llm_rosetta.providers.provider import (
    Direction,
    Provider,
    ProviderAdapter,
    ProviderOutput,
    prepare_messages,
)

if TYPE_CHECKING:
    from collections.abc import Sequence


class GenAIAdapter(ProviderAdapter):
    provider = Provider.GENAI
    name = "GenAI"
    messages_schema = TypeAdapter(list[Message])
    system_schema = TypeAdapter(Union[str, list[Part], Part])

    def convert_messages(self, messages: list[Any], direction: Direction) -> list[Message]:
        return parse_messages(messages)

    def convert_system(self, system: Any) -> list[Any]:
        if isinstance(system, str):
            return [TextPart(content=system)]
        if isinstance(system, list):
            return parse_parts(system)
        return [parse_part(system)]

    def to_provider_format(
        self,
        messages: Sequence[Message],
        mode: MetadataMode = MetadataMode.STRIP,
    ) -> ProviderOutput:
        """Split system content out and dump the rest as plain canonical dicts.

        ``strip`` drops metadata bags; the other modes keep them as they are,
        since the canonical format already has a slot for them.  Extracted
        system parts then remember their original positions.
        """
        mode = MetadataMode(mode)
        prepared = prepare_messages(messages)
        if mode is MetadataMode.STRIP:
            stripped = [_strip(message) for message in prepared]
            system = [part for message in stripped if message.role == Role.SYSTEM for part in message.parts]
            conversation = Conversation(
                messages=[message for message in stripped if message.role != Role.SYSTEM],
                system=system or None,
            )
        else:
            conversation = extract_system(prepared)
        return ProviderOutput(
            messages=dump_messages(conversation.messages),
            system=dump_parts(conversation.system) if conversation.system else None,
        )


def _strip(message: Message) -> Message:
    parts = [part.model_copy(update={"provider_metadata": None}) for part in message.parts]
    return message.model_copy(update={"parts": parts, "provider_metadata": None})

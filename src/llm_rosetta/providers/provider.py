"""Provider adapter contract.

Every provider format is a :class:`ProviderAdapter`: it validates raw payloads
against its own wire schema and converts them to the canonical IR, so every
provider can act as a translation *source*.  Adapters that can also emit their
format implement ``to_provider_format`` and thereby satisfy the
:class:`TargetAdapter` protocol; adapters that do not are source-only.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, ValidationError

from llm_rosetta.core.genai.models import Message, Role, TextPart, ToolCallPart
from llm_rosetta.core.metadata import MetadataMode, restore_dropped_parts, restore_parts_metadata
from llm_rosetta.core.system import extract_system
from llm_rosetta.errors import SchemaMismatchError, SystemNotSupportedError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pydantic import TypeAdapter

    from llm_rosetta.core.genai.models import Conversation

logger = logging.getLogger(__name__)


class Provider(str, Enum):
    """Tags of the built-in provider formats."""

    GENAI = "genai"
    PROMPTL = "promptl"
    OPENAI_COMPLETIONS = "openai_completions"
    OPENAI_RESPONSES = "openai_responses"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    VERCEL_AI = "vercel_ai"
    COMPAT = "compat"


def provider_tag(provider: str) -> str:
    """Return the plain string tag of a ``Provider`` member or custom tag."""
    return provider.value if isinstance(provider, Enum) else str(provider)


class Direction(str, Enum):
    """Whether a bare string payload is model input (user) or output (assistant)."""

    INPUT = "input"
    OUTPUT = "output"


class ProviderOutput(BaseModel):
    """Provider-shaped messages plus the separate system value, if any."""

    model_config = ConfigDict(frozen=True)

    messages: list[Any] = []
    system: Any = None


@runtime_checkable
class TargetAdapter(Protocol):
    """An adapter that can emit its format from canonical messages."""

    def to_provider_format(
        self,
        messages: Sequence[Message],
        mode: MetadataMode = MetadataMode.STRIP,
    ) -> ProviderOutput:
        """Convert canonical messages (system content inline) to this format."""
        ...


class ProviderAdapter(ABC):
    """Base class for provider formats.

    Subclasses set ``provider``, ``name`` and ``messages_schema`` (and
    ``system_schema`` when the format has a separate system channel), and
    implement :meth:`convert_messages`.
    """

    provider: ClassVar[str]
    name: ClassVar[str]
    messages_schema: ClassVar[TypeAdapter[Any]]
    system_schema: ClassVar[TypeAdapter[Any] | None] = None

    @property
    def tag(self) -> str:
        return provider_tag(self.provider)

    @property
    def supports_system(self) -> bool:
        return self.system_schema is not None

    @property
    def is_target(self) -> bool:
        return isinstance(self, TargetAdapter)

    # -- validation ---------------------------------------------------------

    def matches(self, messages: Any) -> bool:
        """Return ``True`` if every message in *messages* is valid for this format."""
        try:
            self.messages_schema.validate_python(messages)
        except ValidationError:
            return False
        return True

    def matches_system(self, system: Any) -> bool:
        if self.system_schema is None:
            return False
        try:
            self.system_schema.validate_python(system)
        except ValidationError:
            return False
        return True

    def validate_messages(self, messages: Any) -> None:
        try:
            self.messages_schema.validate_python(messages)
        except ValidationError as exc:
            raise SchemaMismatchError(self.tag, messages, detail=_first_error(exc)) from exc

    def validate_system(self, system: Any) -> None:
        if self.system_schema is None:
            raise SystemNotSupportedError(self.tag)
        try:
            self.system_schema.validate_python(system)
        except ValidationError as exc:
            raise SchemaMismatchError(self.tag, system, detail=_first_error(exc)) from exc

    # -- conversion ---------------------------------------------------------

    def to_canonical(
        self,
        messages: str | Sequence[Any],
        system: Any = None,
        direction: Direction | str = Direction.INPUT,
    ) -> Conversation:
        """Validate and convert raw provider input to a canonical conversation.

        A bare string becomes a single text message whose role follows
        *direction*.  System-role messages are moved into the conversation's
        system sequence.  Parts stashed by an earlier ``preserve`` emission are
        put back in place.
        """
        direction = Direction(direction)
        if isinstance(messages, str):
            converted = [self._wrap_string(messages, direction)]
        else:
            self.validate_messages(messages)
            converted = self.convert_messages(list(messages), direction)

        system_parts = None
        if system is not None:
            self.validate_system(system)
            system_parts = self.convert_system(system)

        try:
            converted = [restore_dropped_parts(restore_parts_metadata(message)) for message in converted]
        except ValidationError as exc:
            raise SchemaMismatchError(self.tag, messages, detail=_first_error(exc)) from exc
        return extract_system(converted, system_parts)

    def _wrap_string(self, text: str, direction: Direction) -> Message:
        role = Role.USER if direction is Direction.INPUT else Role.ASSISTANT
        return Message(role=role, parts=[TextPart(content=text)])

    @abstractmethod
    def convert_messages(self, messages: list[Any], direction: Direction) -> list[Message]:
        """Convert validated raw messages to canonical messages."""
        ...

    def convert_system(self, system: Any) -> list[Any]:
        """Convert a validated raw system value to canonical parts."""
        raise SystemNotSupportedError(self.tag)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.tag!r}>"


# ---------------------------------------------------------------------------
# Helpers shared by target adapters
# ---------------------------------------------------------------------------


def prepare_messages(messages: Sequence[Message]) -> list[Message]:
    """Reattach any stashed part metadata before emitting *messages*."""
    return [restore_parts_metadata(message) for message in messages]


def tool_names(messages: Sequence[Message]) -> dict[str, str]:
    """Map tool-call ids to tool names across a conversation."""
    names: dict[str, str] = {}
    for message in messages:
        for part in message.parts:
            if isinstance(part, ToolCallPart) and part.id:
                names[part.id] = part.name
    return names


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ""
    first = errors[0]
    location = ".".join(str(item) for item in first.get("loc", ()))
    return f"{location}: {first.get('msg', '')}" if location else first.get("msg", "")

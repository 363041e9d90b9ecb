"""Translation orchestrator.

Sequences the whole pipeline for one call::

    raw input --(infer, if no source)--> source.to_canonical
              --> canonical Conversation
              --(reinsert system, target.to_provider_format)--> provider output

Without a target (or with the canonical ``genai`` target) the canonical
conversation itself is returned.  Every call is independent: the translator
holds only its immutable config and registry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from llm_rosetta.api.config import TranslatorConfig
from llm_rosetta.core.genai.models import dump
from llm_rosetta.core.infer import infer_provider
from llm_rosetta.core.metadata import MetadataMode
from llm_rosetta.core.system import reinsert_system
from llm_rosetta.errors import TranslationError, UnsupportedTargetError
from llm_rosetta.providers.provider import Direction, Provider, provider_tag
from llm_rosetta.providers.registry import DEFAULT_REGISTRY
from llm_rosetta.utils.telemetry import (
    ATTR_DIRECTION,
    ATTR_HAS_SYSTEM,
    ATTR_MESSAGE_COUNT,
    ATTR_METADATA_MODE,
    ATTR_OUTPUT_COUNT,
    ATTR_SOURCE,
    ATTR_SOURCE_INFERRED,
    ATTR_TARGET,
    get_tracer,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from llm_rosetta.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class TranslateResult(BaseModel):
    """Translated messages plus the separate system value, if any.

    For a canonical target both hold IR models; for a provider target they hold
    plain provider-shaped data.
    """

    model_config = ConfigDict(frozen=True)

    messages: list[Any] = []
    system: Any = None

    def to_data(self) -> dict[str, Any]:
        """Return a JSON-ready dict (IR models dumped with their reserved field names)."""
        data: dict[str, Any] = {"messages": _plain(self.messages)}
        if self.system is not None:
            data["system"] = _plain(self.system)
        return data


class SafeTranslateResult(TranslateResult):
    """Result of :func:`safe_translate`: either the translation or the error."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error: TranslationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return dump(value)
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


class Translator:
    """Translate chat payloads between provider formats.

    Usage::

        translator = Translator()
        result = translator.translate(messages, source="openai_completions", target="anthropic")
        result.messages, result.system
    """

    def __init__(
        self,
        config: TranslatorConfig | dict[str, Any] | None = None,
        registry: ProviderRegistry = DEFAULT_REGISTRY,
    ) -> None:
        self._config = TranslatorConfig.load(config)
        self._registry = registry

    @property
    def config(self) -> TranslatorConfig:
        return self._config

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def translate(
        self,
        messages: str | Sequence[Any],
        *,
        source: str | None = None,
        target: str | None = None,
        system: Any = None,
        direction: Direction | str | None = None,
        metadata_mode: MetadataMode | str | None = None,
    ) -> TranslateResult:
        """Translate *messages* (and an optional separate *system* value).

        Raises:
            UnknownProviderError: *source* or *target* is not registered.
            SchemaMismatchError: The input does not match the source format.
            SystemNotSupportedError: *system* was given for a source without a system channel.
            UnsupportedTargetError: The target is source-only.
        """
        direction = Direction(direction or self._config.direction)
        mode = MetadataMode(metadata_mode or self._config.metadata_mode)

        with _tracer.start_as_current_span("rosetta.translate") as span:
            span.set_attribute(ATTR_DIRECTION, direction.value)
            span.set_attribute(ATTR_METADATA_MODE, mode.value)
            span.set_attribute(ATTR_SOURCE_INFERRED, source is None)
            span.set_attribute(ATTR_HAS_SYSTEM, system is not None)
            if isinstance(messages, (list, tuple)):
                span.set_attribute(ATTR_MESSAGE_COUNT, len(messages))

            if source is None:
                source = infer_provider(messages, system, self._config.infer_priority, self._registry)
            source_adapter = self._registry.require(source)
            span.set_attribute(ATTR_SOURCE, source_adapter.tag)

            target_tag = provider_tag(target) if target is not None else Provider.GENAI.value
            span.set_attribute(ATTR_TARGET, target_tag)

            # Target checks run before any conversion.
            target_adapter = None
            if target_tag != Provider.GENAI.value:
                target_adapter = self._registry.require(target_tag)
                if not target_adapter.is_target:
                    raise UnsupportedTargetError(target_tag)

            conversation = source_adapter.to_canonical(messages, system, direction)
            logger.debug(
                "Converted %s input to %d canonical message(s) and %d system part(s)",
                source_adapter.tag,
                len(conversation.messages),
                len(conversation.system or ()),
            )

            if target_adapter is None:
                span.set_attribute(ATTR_OUTPUT_COUNT, len(conversation.messages))
                return TranslateResult(messages=list(conversation.messages), system=conversation.system)

            inline = reinsert_system(conversation.messages, conversation.system)
            output = target_adapter.to_provider_format(inline, mode)
            span.set_attribute(ATTR_OUTPUT_COUNT, len(output.messages))
            logger.debug(
                "Translated %s -> %s (%s): %d message(s) out",
                source_adapter.tag,
                target_adapter.tag,
                mode.value,
                len(output.messages),
            )
            return TranslateResult(messages=output.messages, system=output.system)

    def safe_translate(
        self,
        messages: str | Sequence[Any],
        **kwargs: Any,
    ) -> SafeTranslateResult:
        """Like :meth:`translate`, but return translation errors instead of raising."""
        try:
            result = self.translate(messages, **kwargs)
        except TranslationError as exc:
            logger.debug("Translation failed: %s", exc)
            return SafeTranslateResult(error=exc)
        return SafeTranslateResult(messages=result.messages, system=result.system)


_default_translator: Translator | None = None


def _get_default() -> Translator:
    global _default_translator
    if _default_translator is None:
        _default_translator = Translator()
    return _default_translator


def translate(messages: str | Sequence[Any], **kwargs: Any) -> TranslateResult:
    """Translate with the default configuration.  See :meth:`Translator.translate`."""
    return _get_default().translate(messages, **kwargs)


def safe_translate(messages: str | Sequence[Any], **kwargs: Any) -> SafeTranslateResult:
    """Translate with the default configuration, capturing translation errors."""
    return _get_default().safe_translate(messages, **kwargs)

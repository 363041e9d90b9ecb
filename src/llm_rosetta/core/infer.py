"""Provider inference.

Detects which provider format a raw payload belongs to by trying each
candidate adapter's validator in priority order.  Most structurally specific
formats come first and the permissive ``compat`` format last, so the first
adapter that accepts the whole payload wins.  Inference never fails: when
nothing matches, the ``compat`` best-effort source is returned.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from llm_rosetta.providers.provider import Provider, provider_tag
from llm_rosetta.providers.registry import DEFAULT_REGISTRY
from llm_rosetta.utils.telemetry import ATTR_CANDIDATES, ATTR_SOURCE, get_tracer

if TYPE_CHECKING:
    from collections.abc import Sequence

    from llm_rosetta.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DEFAULT_INFER_PRIORITY: tuple[Provider, ...] = (
    Provider.OPENAI_COMPLETIONS,
    Provider.OPENAI_RESPONSES,
    Provider.ANTHROPIC,
    Provider.GOOGLE,
    Provider.VERCEL_AI,
    Provider.GENAI,
    Provider.PROMPTL,
    Provider.COMPAT,
)


def infer_provider(
    messages: str | Sequence[Any],
    system: Any = None,
    priority: Sequence[str] = DEFAULT_INFER_PRIORITY,
    registry: ProviderRegistry = DEFAULT_REGISTRY,
) -> str:
    """Return the tag of the first provider in *priority* that accepts the payload.

    A bare string is valid for every format and resolves to the first entry
    of *priority*.  Otherwise the message array is tried first (an empty
    array matches nothing), then the separately supplied *system* value.
    Tags missing from *registry* are skipped.
    """
    with _tracer.start_as_current_span("rosetta.infer") as span:
        span.set_attribute(ATTR_CANDIDATES, [provider_tag(tag) for tag in priority])
        provider = _infer(messages, system, priority, registry)
        span.set_attribute(ATTR_SOURCE, provider_tag(provider))
        return provider


def _infer(
    messages: str | Sequence[Any],
    system: Any,
    priority: Sequence[str],
    registry: ProviderRegistry,
) -> str:
    candidates = [registry[tag] for tag in priority if tag in registry]

    if isinstance(messages, str):
        provider = candidates[0].provider if candidates else Provider.COMPAT
        logger.debug("Bare string input: using first priority entry %s", provider_tag(provider))
        return provider

    if messages:
        for adapter in candidates:
            if adapter.matches(messages):
                logger.debug("Inferred %s from %d message(s)", adapter.tag, len(messages))
                return adapter.provider
            logger.debug("Messages do not match %s", adapter.tag)

    if system is not None:
        with_system = [adapter for adapter in candidates if adapter.supports_system]
        if isinstance(system, str) and with_system:
            logger.debug("Bare string system: using first system-capable entry %s", with_system[0].tag)
            return with_system[0].provider
        for adapter in with_system:
            if adapter.matches_system(system):
                logger.debug("Inferred %s from the system value", adapter.tag)
                return adapter.provider

    logger.debug("No provider matched; falling back to %s", Provider.COMPAT.value)
    return Provider.COMPAT

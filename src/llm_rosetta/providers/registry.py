"""Provider registry: maps provider tags to their adapters."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from llm_rosetta.errors import UnknownProviderError
from llm_rosetta.providers.anthropic.adapter import AnthropicAdapter
from llm_rosetta.providers.compat import CompatAdapter
from llm_rosetta.providers.genai import GenAIAdapter
from llm_rosetta.providers.google.adapter import GoogleAdapter
from llm_rosetta.providers.openai_completions.adapter import OpenAICompletionsAdapter
from llm_rosetta.providers.openai_responses.adapter import OpenAIResponsesAdapter
from llm_rosetta.providers.promptl.adapter import PromptlAdapter
from llm_rosetta.providers.provider import ProviderAdapter, provider_tag
from llm_rosetta.providers.vercel_ai.adapter import VercelAIAdapter

if TYPE_CHECKING:
    from collections.abc import Iterable


class ProviderRegistry(Mapping[str, ProviderAdapter]):
    """An immutable tag-to-adapter table, built once.

    Keys are the string tags; a :class:`~llm_rosetta.providers.provider.Provider`
    member looks up the same entry as its value.

    Usage::

        registry = ProviderRegistry([OpenAICompletionsAdapter(), AnthropicAdapter()])
        adapter = registry.require("anthropic")   # raises UnknownProviderError
        targets = registry.targets()              # adapters that can emit
    """

    def __init__(self, adapters: Iterable[ProviderAdapter]) -> None:
        self._adapters: Mapping[str, ProviderAdapter] = MappingProxyType(
            {adapter.tag: adapter for adapter in adapters}
        )

    def __getitem__(self, provider: str) -> ProviderAdapter:
        return self._adapters[provider_tag(provider)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._adapters)

    def __len__(self) -> int:
        return len(self._adapters)

    def require(self, provider: str) -> ProviderAdapter:
        """Return the adapter for *provider* or raise :class:`UnknownProviderError`."""
        adapter = self.get(provider)
        if adapter is None:
            raise UnknownProviderError(provider_tag(provider))
        return adapter

    def sources(self) -> list[ProviderAdapter]:
        return list(self._adapters.values())

    def targets(self) -> list[ProviderAdapter]:
        return [adapter for adapter in self._adapters.values() if adapter.is_target]

    def with_adapter(self, adapter: ProviderAdapter) -> ProviderRegistry:
        """Return a new registry that also holds *adapter* (replacing one with the same tag)."""
        adapters = {**self._adapters, adapter.tag: adapter}
        return ProviderRegistry(adapters.values())

    def __repr__(self) -> str:
        return f"ProviderRegistry({list(self._adapters)!r})"


DEFAULT_REGISTRY = ProviderRegistry(
    [
        GenAIAdapter(),
        PromptlAdapter(),
        OpenAICompletionsAdapter(),
        OpenAIResponsesAdapter(),
        AnthropicAdapter(),
        GoogleAdapter(),
        VercelAIAdapter(),
        CompatAdapter(),
    ]
)

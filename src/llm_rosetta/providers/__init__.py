"""Provider layer: one adapter per wire format, plus the registry."""

from llm_rosetta.providers.provider import (
    Direction,
    Provider,
    ProviderAdapter,
    ProviderOutput,
    TargetAdapter,
)
from llm_rosetta.providers.registry import DEFAULT_REGISTRY, ProviderRegistry

__all__ = [
    "DEFAULT_REGISTRY",
    "Direction",
    "Provider",
    "ProviderAdapter",
    "ProviderOutput",
    "ProviderRegistry",
    "TargetAdapter",
]

"""Error types raised by the translation engine."""

from __future__ import annotations

import json
from typing import Any

_EXCERPT_LENGTH = 200


def excerpt(value: Any, limit: int = _EXCERPT_LENGTH) -> str:
    """Return a short, single-line JSON rendering of *value* for error messages."""
    try:
        text = json.dumps(value, default=str)
    except (TypeError, ValueError):
        text = repr(value)
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class TranslationError(Exception):
    """Base error for all translation failures."""


class SchemaMismatchError(TranslationError):
    """Raw input does not conform to the declared or inferred provider format."""

    def __init__(self, provider: str, content: Any = None, detail: str = "") -> None:
        self.provider = provider
        self.excerpt = excerpt(content)
        self.detail = detail
        msg = f"Input does not match the {provider!r} format: {self.excerpt}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class UnsupportedTargetError(TranslationError):
    """The requested target provider is source-only."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Translating to provider {provider!r} is not supported")


class UnknownProviderError(TranslationError):
    """A provider tag does not name a registered provider."""

    def __init__(self, tag: str) -> None:
        self.tag = tag
        super().__init__(f"Unknown provider: {tag!r}")


class SystemNotSupportedError(TranslationError):
    """Separate system instructions were given for a provider without a system channel."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Provider {provider!r} does not support separated system instructions")


class InvalidConfigError(TranslationError):
    """A translator configuration value is invalid."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Invalid translator configuration" + (f": {detail}" if detail else ""))

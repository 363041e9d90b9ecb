"""Public translation API."""

from llm_rosetta.api.config import TranslatorConfig
from llm_rosetta.api.translator import (
    SafeTranslateResult,
    TranslateResult,
    Translator,
    safe_translate,
    translate,
)

__all__ = [
    "SafeTranslateResult",
    "TranslateResult",
    "Translator",
    "TranslatorConfig",
    "safe_translate",
    "translate",
]

"""llm-rosetta: translate chat conversations between LLM provider formats."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from llm_rosetta.api.config import TranslatorConfig as TranslatorConfig
    from llm_rosetta.api.translator import Translator as Translator
    from llm_rosetta.api.translator import safe_translate as safe_translate
    from llm_rosetta.api.translator import translate as translate
    from llm_rosetta.core.infer import infer_provider as infer_provider
    from llm_rosetta.core.metadata import MetadataMode as MetadataMode
    from llm_rosetta.providers.provider import Provider as Provider

_LAZY_EXPORTS = {
    "translate": "llm_rosetta.api.translator",
    "safe_translate": "llm_rosetta.api.translator",
    "Translator": "llm_rosetta.api.translator",
    "TranslatorConfig": "llm_rosetta.api.config",
    "infer_provider": "llm_rosetta.core.infer",
    "MetadataMode": "llm_rosetta.core.metadata",
    "Provider": "llm_rosetta.providers.provider",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'llm_rosetta' has no attribute {name!r}")

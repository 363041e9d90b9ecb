"""PromptL format."""

from llm_rosetta.providers.promptl.adapter import PromptlAdapter

__all__ = ["PromptlAdapter"]

"""OpenAI Completions format."""

from llm_rosetta.providers.openai_completions.adapter import OpenAICompletionsAdapter

__all__ = ["OpenAICompletionsAdapter"]

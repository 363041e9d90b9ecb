"""OpenAI Responses format."""

from llm_rosetta.providers.openai_responses.adapter import OpenAIResponsesAdapter

__all__ = ["OpenAIResponsesAdapter"]

"""Anthropic format."""

from llm_rosetta.providers.anthropic.adapter import AnthropicAdapter

__all__ = ["AnthropicAdapter"]

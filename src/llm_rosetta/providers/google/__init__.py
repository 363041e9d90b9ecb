"""Google Gemini format."""

from llm_rosetta.providers.google.adapter import GoogleAdapter

__all__ = ["GoogleAdapter"]

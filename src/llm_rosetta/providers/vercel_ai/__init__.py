"""Vercel AI format."""

from llm_rosetta.providers.vercel_ai.adapter import VercelAIAdapter

__all__ = ["VercelAIAdapter"]

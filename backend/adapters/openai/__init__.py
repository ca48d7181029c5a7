"""OpenAI Whisper API adapter for hosted transcription."""

from .transcription import OpenAIWhisperAdapter

__all__ = ["OpenAIWhisperAdapter"]

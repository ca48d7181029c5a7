"""Stand-in transcription used when no ASR engine is configured."""

from .transcription import StandInTranscriptionAdapter

__all__ = ["StandInTranscriptionAdapter"]

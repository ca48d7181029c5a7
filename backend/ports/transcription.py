"""TranscriptionPort — abstract interface for ASR engines."""

from abc import ABC, abstractmethod
from typing import Optional

from domain.models import TranscriptSegment


class TranscriptionPort(ABC):
    @abstractmethod
    def transcribe(
        self,
        audio: bytes,
        language: Optional[str] = None,
        timestamps: bool = False,
    ) -> tuple[str, list[TranscriptSegment]]:
        """Transcribe WAV bytes. Returns (full_text, segments)."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the engine is configured and ready for requests."""

    @abstractmethod
    def supported_content_types(self) -> list[str]:
        """MIME types the engine accepts as input."""

    @abstractmethod
    def model_name(self) -> str:
        """Return the human-readable model name for API responses."""

    def supports(self, content_type: str) -> bool:
        return content_type.lower() in self.supported_content_types()

"""MediaTranscodingPort — abstract interface for audio extraction and normalization."""

from abc import ABC, abstractmethod

from domain.models import AudioStream, MediaProbe


class MediaTranscodingPort(ABC):
    @abstractmethod
    def extract_audio(self, video: bytes) -> AudioStream:
        """Extract the audio track of a video as 16kHz mono WAV."""

    @abstractmethod
    def normalize_audio(self, audio: bytes) -> AudioStream:
        """Re-encode audio as loudness-normalized 16kHz mono WAV."""

    @abstractmethod
    def probe(self, media: bytes) -> MediaProbe:
        """Return duration, codec and stream presence for a media file."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying engine can be invoked."""

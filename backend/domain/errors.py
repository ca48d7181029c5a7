"""Exception hierarchy for the ingest pipeline."""

from typing import Optional


class ConversateError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(ConversateError):
    """Invalid or missing configuration value."""


class MediaError(ConversateError):
    """Media could not be decoded or has no usable audio."""


class ProbeError(MediaError):
    """The transcoding engine could not read container metadata."""


class NoAudioTrackError(MediaError):
    """The input media carries no audio stream."""


class TranscodeError(MediaError):
    """The transcoding engine failed to produce an audio stream."""


class TranscriptionError(ConversateError):
    """Transcription failed for one chunk or for the whole request."""

    def __init__(self, message: str, failed_chunks: int = 1, total_chunks: int = 1):
        super().__init__(message)
        self.failed_chunks = failed_chunks
        self.total_chunks = total_chunks


class TranscriptionTimeoutError(TranscriptionError):
    """The transcription engine did not answer within the configured timeout."""


class StorageError(ConversateError):
    """Object storage rejected a read or write."""


class EmptyContentError(ConversateError):
    """A stage produced no usable text to analyse."""


class PipelineError(ConversateError):
    """A pipeline stage failed; wraps the stage's own error."""

    def __init__(self, stage: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        detail = message or (str(cause) if cause else "unknown error")
        super().__init__(f"{stage} failed: {detail}")
        self.stage = stage
        self.cause = cause
        self.detail = detail

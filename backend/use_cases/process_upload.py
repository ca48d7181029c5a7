"""ProcessUploadUseCase — runs one uploaded file through the learning-content pipeline.

Video:  extract audio → chunk → transcribe → segment speakers → analyze
Audio:  normalize audio → chunk → transcribe → segment speakers → analyze
Text:   split into sentences as "Reader" turns → analyze

Stages run strictly in order. Any stage error is wrapped in a PipelineError
naming the stage, and no later stage runs.
"""

import re
import logging
import uuid
from typing import Optional, Union

import audio_chunking
import speaker_segmentation
from content_analysis import ContentAnalyzer
from domain.errors import EmptyContentError, PipelineError
from domain.models import (
    AudioChunk,
    AudioStream,
    MediaType,
    ProcessingOutcome,
    SpeakerTurn,
    Transcript,
    TranscriptSegment,
)
from ports.progress import ProgressPort
from ports.transcoding import MediaTranscodingPort
from use_cases.transcribe import TranscribeChunksUseCase, TranscriptionOptions

logger = logging.getLogger(__name__)

READER_LABEL = "Reader"
READER_TURN_SECONDS = 3.0

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def text_to_turns(text: str, turn_seconds: float = READER_TURN_SECONDS) -> list[SpeakerTurn]:
    """One synthetic Reader turn per sentence, spaced turn_seconds apart."""
    sentences = [s.strip() for s in _SENTENCE_END.split(text) if s.strip()]
    return [
        SpeakerTurn(
            speaker=READER_LABEL,
            text=sentence,
            start=i * turn_seconds,
            end=(i + 1) * turn_seconds,
        )
        for i, sentence in enumerate(sentences)
    ]


def decode_text(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="replace")


class ProcessUploadUseCase:
    def __init__(
        self,
        transcoder: MediaTranscodingPort,
        transcriber: TranscribeChunksUseCase,
        analyzer: ContentAnalyzer,
        progress: ProgressPort,
        chunk_duration: float = audio_chunking.DEFAULT_CHUNK_DURATION,
        speaker_gap: float = speaker_segmentation.DEFAULT_GAP_THRESHOLD,
    ):
        self._transcoder = transcoder
        self._transcriber = transcriber
        self._analyzer = analyzer
        self._progress = progress
        self._chunk_duration = chunk_duration
        self._speaker_gap = speaker_gap

    def process(
        self,
        data: bytes,
        media_type: Union[MediaType, str],
        language: Optional[str] = None,
        requested_level: str = "A1",
        job_id: Optional[str] = None,
    ) -> ProcessingOutcome:
        """Run the pipeline for one file. Raises PipelineError on any stage failure."""
        job_id = job_id or uuid.uuid4().hex[:12]
        try:
            media_type = MediaType(media_type)
        except ValueError as e:
            raise PipelineError("validation", e, f"Unsupported media type: {media_type!r}") from e

        logger.info(f"[{job_id}] Processing {media_type.value} upload ({len(data)} bytes)")

        if media_type is MediaType.TEXT:
            return self._process_text(job_id, data, language, requested_level)
        return self._process_media(job_id, data, media_type, language, requested_level)

    def _process_text(self, job_id: str, data: bytes, language: Optional[str], level: str) -> ProcessingOutcome:
        self._progress.report(job_id, "text_extraction")
        with self._stage("text_extraction"):
            text = decode_text(data).strip()
            turns = text_to_turns(text)
            if not turns:
                raise EmptyContentError("Text file contains no readable content")

        result = self._analyze(job_id, text, turns, language, level)
        return ProcessingOutcome(
            result=result,
            media_type=MediaType.TEXT,
            turns=turns,
            duration=turns[-1].end,
        )

    def _process_media(
        self,
        job_id: str,
        data: bytes,
        media_type: MediaType,
        language: Optional[str],
        level: str,
    ) -> ProcessingOutcome:
        # 1. Transcode
        self._progress.report(job_id, "transcoding")
        with self._stage("transcoding"):
            if media_type is MediaType.VIDEO:
                stream = self._transcoder.extract_audio(data)
            else:
                stream = self._transcoder.normalize_audio(data)

        # 2. Chunk long audio
        with self._stage("chunking"):
            chunks = self._chunk(job_id, stream)

        # 3. Transcribe
        self._progress.report(job_id, "transcription", detail=f"{len(chunks)} chunk(s)")
        with self._stage("transcription"):
            transcript = self._transcriber.execute(
                chunks, TranscriptionOptions(language=language, include_timestamps=True)
            )
            if not transcript.text.strip():
                raise EmptyContentError("Transcription produced no text")

        # 4. Heuristic speaker segmentation
        self._progress.report(job_id, "segmentation")
        with self._stage("segmentation"):
            segments = transcript.segments or [
                TranscriptSegment(
                    id="segment_0",
                    text=transcript.text,
                    start=0.0,
                    end=transcript.duration or stream.duration,
                )
            ]
            turns = speaker_segmentation.identify_speakers(segments, self._speaker_gap)

        # 5. Analyze
        result = self._analyze(job_id, transcript.text, turns, language, level)
        return ProcessingOutcome(
            result=result,
            media_type=media_type,
            turns=turns,
            transcript=transcript,
            duration=stream.duration,
            used_stand_in=transcript.is_stand_in,
        )

    def _chunk(self, job_id: str, stream: AudioStream) -> list[AudioChunk]:
        if not audio_chunking.needs_chunking(stream, self._chunk_duration):
            return audio_chunking.single_chunk(stream)
        self._progress.report(job_id, "chunking", detail=f"{stream.duration:.0f}s audio")
        return audio_chunking.split_into_chunks(stream, self._chunk_duration)

    def _analyze(self, job_id: str, text: str, turns: list[SpeakerTurn], language: Optional[str], level: str):
        self._progress.report(job_id, "analysis")
        with self._stage("analysis"):
            return self._analyzer.analyze(text, turns, language, level)

    def _stage(self, name: str) -> "_Stage":
        return _Stage(name)


class _Stage:
    """Context manager that wraps any error raised inside a stage in a PipelineError."""

    def __init__(self, name: str):
        self.name = name

    def __enter__(self) -> "_Stage":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is None or isinstance(exc, PipelineError):
            return False
        if isinstance(exc, Exception):
            logger.error(f"Pipeline stage {self.name!r} failed: {exc}")
            raise PipelineError(self.name, exc) from exc
        return False

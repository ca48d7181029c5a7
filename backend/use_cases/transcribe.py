"""TranscribeChunksUseCase — sends audio chunks to an ASR engine and stitches the results.

Chunks are transcribed independently (in parallel when there is more than
one) and reassembled in chunk order. Each chunk's segment timestamps are
shifted by the chunk's start offset so the combined transcript reads as
one continuous timeline. A single failed chunk fails the whole request.
"""

import math
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError, wait
from dataclasses import dataclass, replace
from typing import Optional

from domain.errors import TranscriptionError, TranscriptionTimeoutError
from domain.models import AudioChunk, Transcript, TranscriptSegment
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0
DEFAULT_MAX_WORKERS = 4


@dataclass
class TranscriptionOptions:
    language: Optional[str] = None
    include_timestamps: bool = True


def shift_segments(segments: list[TranscriptSegment], chunk_index: int, offset: float) -> list[TranscriptSegment]:
    """Return copies of a chunk's segments moved onto the global timeline."""
    return [
        replace(
            seg,
            id=f"chunk_{chunk_index}_{seg.id}",
            start=seg.start + offset,
            end=seg.end + offset,
        )
        for seg in segments
    ]


class TranscribeChunksUseCase:
    def __init__(
        self,
        engine: TranscriptionPort,
        stand_in: Optional[TranscriptionPort] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
    ):
        self._engine = engine
        self._stand_in = stand_in
        self._max_workers = max(1, max_workers)
        self._timeout = timeout

    def select_engine(self) -> TranscriptionPort:
        """Pick the configured engine, or the stand-in when it is unavailable."""
        if self._engine.is_available():
            return self._engine
        if self._stand_in is None:
            raise TranscriptionError(f"Transcription engine {self._engine.model_name()!r} is unavailable")
        logger.warning(
            f"Transcription engine {self._engine.model_name()!r} unavailable, "
            f"using stand-in transcript"
        )
        return self._stand_in

    def execute(self, chunks: list[AudioChunk], options: Optional[TranscriptionOptions] = None) -> Transcript:
        options = options or TranscriptionOptions()
        if not chunks:
            raise TranscriptionError("No audio chunks to transcribe", failed_chunks=0, total_chunks=0)

        engine = self.select_engine()
        is_stand_in = engine is self._stand_in

        if len(chunks) == 1:
            results = [self._transcribe_single(engine, chunks[0], options)]
        else:
            results = self._transcribe_parallel(engine, chunks, options)

        text_parts: list[str] = []
        segments: list[TranscriptSegment] = []
        for chunk, (chunk_text, chunk_segments) in zip(chunks, results):
            if chunk_text.strip():
                text_parts.append(chunk_text.strip())
            if chunk.start_offset or len(chunks) > 1:
                chunk_segments = shift_segments(chunk_segments, chunk.index, chunk.start_offset)
            segments.extend(chunk_segments)

        if segments:
            duration = max(seg.end for seg in segments)
        else:
            duration = sum(chunk.stream.duration for chunk in chunks)

        logger.info(
            f"Transcribed {len(chunks)} chunk(s) with {engine.model_name()}: "
            f"{len(segments)} segments, {duration:.2f}s"
        )
        return Transcript(
            text=" ".join(text_parts),
            segments=segments,
            language=options.language,
            duration=duration,
            engine=engine.model_name(),
            is_stand_in=is_stand_in,
        )

    def _call(self, engine: TranscriptionPort, chunk: AudioChunk, options: TranscriptionOptions):
        return engine.transcribe(
            chunk.stream.data,
            language=options.language,
            timestamps=options.include_timestamps,
        )

    def _transcribe_single(self, engine: TranscriptionPort, chunk: AudioChunk, options: TranscriptionOptions):
        # Run on a worker thread so the timeout applies to single-chunk files too.
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="asr")
        try:
            future = pool.submit(self._call, engine, chunk, options)
            try:
                return future.result(timeout=self._timeout)
            except FutureTimeoutError as e:
                raise TranscriptionTimeoutError(
                    f"Transcription timed out after {self._timeout}s"
                ) from e
            except TranscriptionError:
                raise
            except Exception as e:
                logger.error(f"Transcription failed: {e}", exc_info=True)
                raise TranscriptionError(f"Transcription failed: {e}") from e
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def _transcribe_parallel(self, engine: TranscriptionPort, chunks: list[AudioChunk], options: TranscriptionOptions):
        total = len(chunks)
        workers = min(self._max_workers, total)
        logger.info(f"Transcribing {total} chunks with up to {workers} workers")

        # One deadline for the batch: a timeout per wave of concurrently running chunks.
        deadline = self._timeout * math.ceil(total / workers) if self._timeout is not None else None

        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="asr")
        results: list = [None] * total
        failures: list[tuple[int, BaseException]] = []
        try:
            futures = [pool.submit(self._call, engine, chunk, options) for chunk in chunks]
            _, not_done = wait(futures, timeout=deadline)
            for i, future in enumerate(futures):
                if future in not_done:
                    future.cancel()
                    failures.append((i, FutureTimeoutError(f"no result within {deadline}s")))
                elif future.exception() is not None:
                    failures.append((i, future.exception()))
                else:
                    results[i] = future.result()
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        if failures:
            for i, error in failures:
                logger.error(f"Chunk {i + 1}/{total} failed: {error!r}")
            timed_out = any(isinstance(error, FutureTimeoutError) for _, error in failures)
            error_cls = TranscriptionTimeoutError if timed_out else TranscriptionError
            raise error_cls(
                f"Failed to transcribe {len(failures)} of {total} chunks",
                failed_chunks=len(failures),
                total_chunks=total,
            ) from failures[0][1]

        return results

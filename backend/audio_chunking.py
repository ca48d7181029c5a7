"""Split long audio streams into bounded-duration chunks.

Chunk i covers [i * max_duration, min((i + 1) * max_duration, total)) and
keeps its start offset so transcript timestamps can be re-aligned after
per-chunk transcription.
"""

import io
import math
import logging

import numpy as np
import soundfile

from domain.models import AudioChunk, AudioStream

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_DURATION = 600


def chunk_boundaries(duration: float, max_chunk_duration: float = DEFAULT_CHUNK_DURATION) -> list[tuple[float, float]]:
    """Return the [start, end) second ranges covering a stream of the given duration."""
    if max_chunk_duration <= 0:
        raise ValueError(f"max_chunk_duration must be positive, got {max_chunk_duration}")
    if duration <= 0:
        return []

    num_chunks = math.ceil(duration / max_chunk_duration)
    return [
        (i * max_chunk_duration, min((i + 1) * max_chunk_duration, duration))
        for i in range(num_chunks)
    ]


def needs_chunking(stream: AudioStream, max_chunk_duration: float = DEFAULT_CHUNK_DURATION) -> bool:
    return stream.duration > max_chunk_duration


def single_chunk(stream: AudioStream) -> list[AudioChunk]:
    """Wrap a short stream as the one implicit chunk at offset 0."""
    return [AudioChunk(stream=stream, index=0, start_offset=0.0)]


def split_into_chunks(stream: AudioStream, max_chunk_duration: float = DEFAULT_CHUNK_DURATION) -> list[AudioChunk]:
    """Slice a WAV stream into ordered chunks of at most max_chunk_duration seconds."""
    boundaries = chunk_boundaries(stream.duration, max_chunk_duration)
    if not boundaries:
        return []

    audio, sample_rate = soundfile.read(io.BytesIO(stream.data), dtype="int16")
    if audio.ndim > 1:
        audio = audio.mean(axis=1).astype(np.int16)

    logger.info(
        f"Splitting {stream.duration:.2f}s of audio into {len(boundaries)} chunks "
        f"of {max_chunk_duration}s"
    )

    chunks: list[AudioChunk] = []
    last = len(boundaries) - 1
    for i, (start, end) in enumerate(boundaries):
        start_sample = int(round(start * sample_rate))
        end_sample = len(audio) if i == last else int(round(end * sample_rate))
        samples = audio[start_sample:end_sample]

        buffer = io.BytesIO()
        soundfile.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
        chunks.append(AudioChunk(
            stream=AudioStream(
                data=buffer.getvalue(),
                sample_rate=sample_rate,
                channels=1,
                duration=len(samples) / sample_rate,
            ),
            index=i,
            start_offset=start,
        ))

    return chunks

"""SherpaTranscriptionAdapter — local offline ASR with token timestamps.

Splits audio into sub-chunks that fit the encoder's attention window (~100s max),
creates a stream per sub-chunk, then batch-decodes all streams in one call.
Token timestamps from each sub-chunk are offset-corrected and merged, then grouped
into sentence-like segments based on silence gaps.
"""

import io
import logging
import os
from typing import Optional

import numpy as np
import soundfile

from domain.errors import TranscriptionError
from domain.models import TranscriptSegment
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

REQUIRED_FILES = ["encoder.int8.onnx", "decoder.int8.onnx", "joiner.int8.onnx", "tokens.txt"]

DEFAULT_MODEL_DIR = "/models/sherpa-onnx"

# Parakeet TDT's self-attention supports ~100s per stream.
MAX_CHUNK_SECONDS = 80

# Silence gap (seconds) between tokens that starts a new segment.
SEGMENT_SILENCE_THRESHOLD = 0.25

MAX_SEGMENT_DURATION = 6.0

SUPPORTED_CONTENT_TYPES = ["audio/wav", "audio/x-wav", "audio/flac"]


class SherpaTranscriptionAdapter(TranscriptionPort):
    def __init__(self, model_dir: str = DEFAULT_MODEL_DIR):
        self._model_dir = model_dir
        self._recognizer = None
        self._ready = False

    def load(self, device: str = "cpu", num_threads: int = 4) -> None:
        """Load the ASR model. Raises FileNotFoundError when model files are missing."""
        import sherpa_onnx

        self._ensure_models()

        logger.info(f"Loading Sherpa-ONNX ASR model (provider={device})...")
        self._recognizer = sherpa_onnx.OfflineRecognizer.from_transducer(
            encoder=os.path.join(self._model_dir, "encoder.int8.onnx"),
            decoder=os.path.join(self._model_dir, "decoder.int8.onnx"),
            joiner=os.path.join(self._model_dir, "joiner.int8.onnx"),
            tokens=os.path.join(self._model_dir, "tokens.txt"),
            model_type="nemo_transducer",
            provider=device,
            num_threads=num_threads,
        )
        self._ready = True
        logger.info(f"Sherpa transcription adapter ready: {self._model_dir}")

    def transcribe(
        self,
        audio: bytes,
        language: Optional[str] = None,
        timestamps: bool = False,
    ) -> tuple[str, list[TranscriptSegment]]:
        """Sub-chunk audio → create streams → batch decode → merge tokens."""
        if not self._ready:
            raise TranscriptionError("Sherpa model is not loaded")

        try:
            samples, sample_rate = soundfile.read(io.BytesIO(audio), dtype="float32")
        except RuntimeError as e:
            raise TranscriptionError(f"Could not decode audio for Sherpa: {e}") from e

        if len(samples.shape) > 1:
            samples = samples.mean(axis=1)

        if sample_rate != 16000:
            logger.warning(f"Audio is {sample_rate}Hz, expected 16000Hz")
            target_len = int(len(samples) * 16000 / sample_rate)
            indices = np.linspace(0, len(samples) - 1, target_len)
            samples = np.interp(indices, np.arange(len(samples)), samples).astype(np.float32)
            sample_rate = 16000

        duration = len(samples) / sample_rate
        chunk_samples = MAX_CHUNK_SECONDS * sample_rate
        num_chunks = max(1, int(np.ceil(len(samples) / chunk_samples)))

        streams = []
        chunk_offsets = []
        for i in range(num_chunks):
            start_sample = i * chunk_samples
            end_sample = min((i + 1) * chunk_samples, len(samples))
            stream = self._recognizer.create_stream()
            stream.accept_waveform(sample_rate, samples[start_sample:end_sample])
            streams.append(stream)
            chunk_offsets.append(start_sample / sample_rate)

        logger.info(f"Decoding {num_chunks} streams ({duration:.2f}s audio)")
        try:
            self._recognizer.decode_streams(streams)
        except RuntimeError as e:
            raise TranscriptionError(f"Sherpa decoding failed: {e}") from e

        all_tokens = []
        all_timestamps = []
        text_parts = []
        for stream, offset in zip(streams, chunk_offsets):
            result = stream.result
            if result.tokens:
                all_tokens.extend(result.tokens)
                all_timestamps.extend(t + offset for t in result.timestamps)
            if result.text.strip():
                text_parts.append(result.text.strip())

        full_text = " ".join(text_parts)
        if not full_text:
            logger.warning("No speech detected")
            return "", []

        if not timestamps:
            return full_text, []

        segments = self._group_tokens_into_segments(all_tokens, all_timestamps, duration)
        logger.info(f"Grouped into {len(segments)} segments, {len(full_text)} characters")
        return full_text, segments

    def _group_tokens_into_segments(
        self,
        tokens: list,
        timestamps: list,
        audio_duration: float,
    ) -> list[TranscriptSegment]:
        """Group tokens into segments by detecting silence gaps between them."""
        if not tokens:
            return []

        segments: list[TranscriptSegment] = []
        current_tokens: list[str] = [tokens[0]]
        current_start: float = timestamps[0]
        prev_timestamp: float = timestamps[0]

        def flush(end: float) -> None:
            text = "".join(current_tokens).strip()
            if text:
                segments.append(TranscriptSegment(
                    id=f"segment_{len(segments)}",
                    text=text,
                    start=current_start,
                    end=max(end, current_start),
                ))

        for i in range(1, len(tokens)):
            gap = timestamps[i] - prev_timestamp
            segment_duration = timestamps[i] - current_start
            if gap > SEGMENT_SILENCE_THRESHOLD or segment_duration > MAX_SEGMENT_DURATION:
                flush(prev_timestamp + 0.1)
                current_tokens = [tokens[i]]
                current_start = timestamps[i]
            else:
                current_tokens.append(tokens[i])
            prev_timestamp = timestamps[i]

        flush(min(prev_timestamp + 0.1, audio_duration))
        return segments

    def is_available(self) -> bool:
        return self._ready

    def supported_content_types(self) -> list[str]:
        return list(SUPPORTED_CONTENT_TYPES)

    def model_name(self) -> str:
        return "parakeet-tdt-0.6b-v2-int8"

    def _ensure_models(self) -> None:
        missing = [f for f in REQUIRED_FILES if not os.path.exists(os.path.join(self._model_dir, f))]
        if missing:
            raise FileNotFoundError(f"Missing model files in {self._model_dir}: {missing}")
        logger.info("All sherpa-onnx models verified")

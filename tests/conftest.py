"""Shared fixtures: in-memory WAV audio and test doubles for the engine ports."""

import io
import time
import threading
from typing import Optional

import numpy as np
import pytest
import soundfile

from domain.errors import NoAudioTrackError, TranscriptionError
from domain.models import AudioStream, MediaProbe, TranscriptSegment
from ports.progress import ProgressPort
from ports.transcoding import MediaTranscodingPort
from ports.transcription import TranscriptionPort

SAMPLE_RATE = 16000


def make_wav(duration: float, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Low-level noise as 16-bit mono WAV bytes; no two slices are identical."""
    rng = np.random.default_rng(0)
    samples = rng.integers(-2000, 2000, size=int(round(duration * sample_rate)), dtype=np.int16)
    buffer = io.BytesIO()
    soundfile.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


def make_stream(duration: float, sample_rate: int = SAMPLE_RATE) -> AudioStream:
    return AudioStream(data=make_wav(duration, sample_rate), sample_rate=sample_rate, channels=1, duration=duration)


class FakeTranscoder(MediaTranscodingPort):
    """Returns a fixed stream and counts calls."""

    def __init__(self, duration: float = 10.0, has_audio: bool = True):
        self.duration = duration
        self.has_audio = has_audio
        self.extract_calls = 0
        self.normalize_calls = 0
        self.probe_calls = 0

    def extract_audio(self, video: bytes) -> AudioStream:
        self.extract_calls += 1
        if not self.has_audio:
            raise NoAudioTrackError("Video contains no audio track")
        return make_stream(self.duration)

    def normalize_audio(self, audio: bytes) -> AudioStream:
        self.normalize_calls += 1
        return make_stream(self.duration)

    def probe(self, media: bytes) -> MediaProbe:
        self.probe_calls += 1
        return MediaProbe(duration=self.duration, has_audio=self.has_audio)

    def is_available(self) -> bool:
        return True


DEFAULT_RESPONSE = ("hello there", [TranscriptSegment("0", "hello there", 0.0, 1.5)])


class FakeEngine(TranscriptionPort):
    """Scripted ASR engine.

    Answers each audio payload from the responses mapping, falling back to
    a default response. Payloads in failing raise TranscriptionError.
    """

    def __init__(
        self,
        responses: Optional[dict] = None,
        failing: Optional[set] = None,
        available: bool = True,
        name: str = "fake-asr",
        delays: Optional[dict] = None,
    ):
        self.responses = responses or {}
        self.failing = failing or set()
        self.delays = delays or {}
        self.available = available
        self.name = name
        self.calls: list[bytes] = []
        self._lock = threading.Lock()

    def transcribe(self, audio: bytes, language: Optional[str] = None, timestamps: bool = False):
        with self._lock:
            self.calls.append(audio)
        if audio in self.delays:
            time.sleep(self.delays[audio])
        if audio in self.failing:
            raise TranscriptionError("engine rejected chunk")
        text, segments = self.responses.get(audio, DEFAULT_RESPONSE)
        return text, [TranscriptSegment(s.id, s.text, s.start, s.end, s.confidence) for s in segments]

    def is_available(self) -> bool:
        return self.available

    def supported_content_types(self) -> list[str]:
        return ["audio/wav"]

    def model_name(self) -> str:
        return self.name


class RecordingProgress(ProgressPort):
    def __init__(self):
        self.stages: list[str] = []

    def report(self, job_id: str, stage: str, progress: float = 0.0, detail: Optional[str] = None) -> None:
        self.stages.append(stage)


@pytest.fixture
def transcoder():
    return FakeTranscoder()


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def progress():
    return RecordingProgress()

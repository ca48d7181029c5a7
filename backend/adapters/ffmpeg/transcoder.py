"""FFmpegTranscoder — audio extraction, normalization and probing via ffmpeg/ffprobe."""

import io
import os
import json
import wave
import logging
import tempfile
import subprocess
from typing import Optional

from domain.errors import NoAudioTrackError, ProbeError, TranscodeError
from domain.models import AudioStream, MediaProbe
from ports.transcoding import MediaTranscodingPort

logger = logging.getLogger(__name__)

TARGET_SAMPLE_RATE = 16000
TARGET_CHANNELS = 1


def wav_duration(data: bytes) -> float:
    """Duration in seconds of an in-memory WAV file."""
    with wave.open(io.BytesIO(data), "rb") as wf:
        rate = wf.getframerate()
        return wf.getnframes() / rate if rate else 0.0


class FFmpegTranscoder(MediaTranscodingPort):
    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        sample_rate: int = TARGET_SAMPLE_RATE,
        timeout: Optional[float] = None,
        temp_dir: Optional[str] = None,
    ):
        self._ffmpeg = ffmpeg_path
        self._ffprobe = ffprobe_path
        self._sample_rate = sample_rate
        self._timeout = timeout
        self._temp_dir = temp_dir

    def extract_audio(self, video: bytes) -> AudioStream:
        with tempfile.TemporaryDirectory(dir=self._temp_dir) as workdir:
            input_path = self._write_input(workdir, video)
            probe = self._probe_path(input_path)
            if not probe.has_audio:
                raise NoAudioTrackError("Video contains no audio track")
            logger.info(f"Extracting audio from {probe.codec} video ({probe.duration:.2f}s)")
            return self._transcode(input_path, workdir)

    def normalize_audio(self, audio: bytes) -> AudioStream:
        with tempfile.TemporaryDirectory(dir=self._temp_dir) as workdir:
            input_path = self._write_input(workdir, audio)
            logger.info("Normalizing audio (loudnorm, mono, 16kHz)")
            return self._transcode(input_path, workdir, filters=["loudnorm"])

    def probe(self, media: bytes) -> MediaProbe:
        with tempfile.TemporaryDirectory(dir=self._temp_dir) as workdir:
            input_path = self._write_input(workdir, media)
            return self._probe_path(input_path)

    def is_available(self) -> bool:
        try:
            result = subprocess.run(
                [self._ffmpeg, "-version"], capture_output=True, text=True, timeout=10
            )
        except (OSError, subprocess.TimeoutExpired):
            return False
        return result.returncode == 0

    def _write_input(self, workdir: str, data: bytes) -> str:
        input_path = os.path.join(workdir, "input.media")
        with open(input_path, "wb") as f:
            f.write(data)
        return input_path

    def _transcode(self, input_path: str, workdir: str, filters: Optional[list[str]] = None) -> AudioStream:
        output_path = os.path.join(workdir, "output.wav")
        cmd = [self._ffmpeg, "-y", "-i", input_path, "-vn"]
        if filters:
            cmd += ["-af", ",".join(filters)]
        cmd += [
            "-c:a", "pcm_s16le",
            "-ar", str(self._sample_rate),
            "-ac", str(TARGET_CHANNELS),
            output_path,
        ]
        self._run(cmd, TranscodeError)

        if not os.path.exists(output_path):
            raise TranscodeError("ffmpeg reported success but produced no output")
        with open(output_path, "rb") as f:
            data = f.read()

        try:
            duration = wav_duration(data)
        except (wave.Error, EOFError) as e:
            raise TranscodeError(f"ffmpeg produced an unreadable WAV file: {e}") from e

        logger.info(f"Transcoded audio: {duration:.2f}s, {len(data)} bytes")
        return AudioStream(
            data=data,
            sample_rate=self._sample_rate,
            channels=TARGET_CHANNELS,
            duration=duration,
        )

    def _probe_path(self, input_path: str) -> MediaProbe:
        cmd = [
            self._ffprobe,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            input_path,
        ]
        result = self._run(cmd, ProbeError)
        try:
            info = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise ProbeError(f"Unreadable ffprobe output: {e}") from e

        streams = info.get("streams", [])
        audio = next((s for s in streams if s.get("codec_type") == "audio"), None)
        video = next((s for s in streams if s.get("codec_type") == "video"), None)
        fmt = info.get("format", {})
        primary = video or audio or {}

        try:
            duration = float(fmt.get("duration") or 0.0)
        except ValueError:
            duration = 0.0

        return MediaProbe(
            duration=duration,
            has_audio=audio is not None,
            has_video=video is not None,
            codec=primary.get("codec_name", "unknown"),
            format_name=fmt.get("format_name"),
            width=int((video or {}).get("width") or 0),
            height=int((video or {}).get("height") or 0),
        )

    def _run(self, cmd: list[str], error_cls: type) -> subprocess.CompletedProcess:
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self._timeout)
        except subprocess.TimeoutExpired as e:
            logger.error(f"{cmd[0]} timed out after {self._timeout}s")
            raise error_cls(f"{cmd[0]} timed out after {self._timeout}s") from e
        except OSError as e:
            logger.error(f"Could not run {cmd[0]}: {e}")
            raise error_cls(f"Could not run {cmd[0]}: {e}") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            logger.error(f"{cmd[0]} failed: {stderr}")
            raise error_cls(f"{cmd[0]} failed: {stderr or 'exit code ' + str(result.returncode)}")
        return result

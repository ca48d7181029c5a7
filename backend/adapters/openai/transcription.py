"""OpenAIWhisperAdapter — hosted Whisper transcription with segment timestamps."""

import math
import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from domain.errors import TranscriptionError
from domain.models import TranscriptSegment
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "whisper-1"

SUPPORTED_CONTENT_TYPES = [
    "audio/wav",
    "audio/mp3",
    "audio/mpeg",
    "audio/mp4",
    "audio/m4a",
    "audio/flac",
    "audio/ogg",
    "audio/webm",
]


class OpenAIWhisperAdapter(TranscriptionPort):
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: Optional[float] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._client: Optional[OpenAI] = None

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    def transcribe(
        self,
        audio: bytes,
        language: Optional[str] = None,
        timestamps: bool = False,
    ) -> tuple[str, list[TranscriptSegment]]:
        if not self.is_available():
            raise TranscriptionError("OpenAI API key is not configured")

        request = {
            "model": self._model,
            "file": ("audio.wav", audio, "audio/wav"),
            "temperature": 0,
            "response_format": "verbose_json" if timestamps else "json",
        }
        if language:
            request["language"] = language
        if timestamps:
            request["timestamp_granularities"] = ["segment"]

        try:
            response = self._get_client().audio.transcriptions.create(**request)
        except OpenAIError as e:
            logger.error(f"Whisper API request failed: {e}")
            raise TranscriptionError(f"Whisper API request failed: {e}") from e

        if isinstance(response, str):
            return response.strip(), []

        text = (getattr(response, "text", "") or "").strip()
        segments: list[TranscriptSegment] = []
        for index, seg in enumerate(getattr(response, "segments", None) or []):
            avg_logprob = getattr(seg, "avg_logprob", None)
            segments.append(TranscriptSegment(
                id=f"segment_{index}",
                text=(seg.text or "").strip(),
                start=float(seg.start or 0.0),
                end=float(seg.end or 0.0),
                confidence=math.exp(avg_logprob) if avg_logprob else None,
            ))

        logger.info(f"Whisper returned {len(text)} characters, {len(segments)} segments")
        return text, segments

    def is_available(self) -> bool:
        return bool(self._api_key)

    def supported_content_types(self) -> list[str]:
        return list(SUPPORTED_CONTENT_TYPES)

    def model_name(self) -> str:
        return self._model

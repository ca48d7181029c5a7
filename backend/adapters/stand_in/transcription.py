"""StandInTranscriptionAdapter — labelled placeholder transcript for degraded mode.

Selected by the transcription use case when the configured engine reports
itself unavailable, so uploads still flow through segmentation and analysis.
"""

import logging
from typing import Optional

from domain.models import TranscriptSegment
from ports.transcription import TranscriptionPort

logger = logging.getLogger(__name__)

STAND_IN_MODEL = "stand-in"

STAND_IN_SEGMENTS = [
    (
        "Hello, welcome to our language learning conversation.",
        0.0, 3.5, 0.95,
    ),
    (
        "This is a stand-in transcription because no speech recognition engine is configured.",
        3.5, 8.2, 0.92,
    ),
    (
        "With a real engine, this would contain the actual spoken content from your uploaded audio or video file.",
        8.2, 14.1, 0.94,
    ),
    (
        "The transcription would include proper punctuation and timestamp information to help with language learning analysis.",
        14.1, 22.3, 0.93,
    ),
]

SUPPORTED_CONTENT_TYPES = ["audio/wav", "audio/x-wav", "audio/mpeg", "audio/mp3", "audio/ogg"]


class StandInTranscriptionAdapter(TranscriptionPort):
    def transcribe(
        self,
        audio: bytes,
        language: Optional[str] = None,
        timestamps: bool = False,
    ) -> tuple[str, list[TranscriptSegment]]:
        logger.warning("Using stand-in transcript; no transcription engine is configured")
        text = " ".join(seg[0] for seg in STAND_IN_SEGMENTS)
        if not timestamps:
            return text, []
        segments = [
            TranscriptSegment(id=f"segment_{i}", text=t, start=start, end=end, confidence=conf)
            for i, (t, start, end, conf) in enumerate(STAND_IN_SEGMENTS)
        ]
        return text, segments

    def is_available(self) -> bool:
        return True

    def supported_content_types(self) -> list[str]:
        return list(SUPPORTED_CONTENT_TYPES)

    def model_name(self) -> str:
        return STAND_IN_MODEL

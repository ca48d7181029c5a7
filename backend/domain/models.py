"""Framework-agnostic domain models for Conversate Ingest.

Processing logic works on these dataclasses only. The pydantic DTOs in
models.py are the API response schema, with mappers at the boundary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class MediaType(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    TEXT = "text"


CEFR_LEVELS = ["A1", "A2", "B1", "B2", "C1", "C2"]


@dataclass
class AudioStream:
    """Decoded mono PCM audio held as WAV bytes."""
    data: bytes
    sample_rate: int
    channels: int
    duration: float


@dataclass
class AudioChunk:
    """A slice of an AudioStream plus its offset into the original."""
    stream: AudioStream
    index: int
    start_offset: float

    @property
    def end_offset(self) -> float:
        return self.start_offset + self.stream.duration


@dataclass
class MediaProbe:
    """Container-level metadata reported by the transcoding engine."""
    duration: float
    has_audio: bool
    has_video: bool = False
    codec: str = "unknown"
    format_name: Optional[str] = None
    width: int = 0
    height: int = 0


@dataclass
class TranscriptSegment:
    """A single transcribed speech segment with timing."""
    id: str
    text: str
    start: float
    end: float
    confidence: Optional[float] = None


@dataclass
class Transcript:
    """Stitched transcription output for one pipeline run."""
    text: str
    segments: list[TranscriptSegment] = field(default_factory=list)
    language: Optional[str] = None
    duration: float = 0.0
    engine: Optional[str] = None
    is_stand_in: bool = False


@dataclass
class SpeakerTurn:
    """Consecutive speech attributed to one heuristic speaker label."""
    speaker: str
    text: str
    start: float
    end: float


@dataclass
class VocabularyItem:
    word: str
    difficulty: int
    frequency: int
    context: str
    definition: Optional[str] = None


@dataclass
class GrammarPattern:
    name: str
    description: str
    examples: list[str]
    difficulty: int


@dataclass
class ConversationSegment:
    """A window of consecutive speaker turns packaged as a lesson unit."""
    id: str
    title: str
    content: str
    difficulty: int
    vocabulary: list[str]
    start: float
    end: float
    speakers: list[str]
    turn_count: int
    language: Optional[str] = None
    proficiency_level: Optional[str] = None


@dataclass
class ContentAnalysisResult:
    conversations: list[ConversationSegment] = field(default_factory=list)
    vocabulary: list[VocabularyItem] = field(default_factory=list)
    grammar_patterns: list[GrammarPattern] = field(default_factory=list)
    overall_difficulty: int = 1
    suggested_level: str = "A1"
    topics: list[str] = field(default_factory=list)


@dataclass
class ProcessingOutcome:
    """Everything a pipeline run produced, handed back to the caller."""
    result: ContentAnalysisResult
    media_type: MediaType
    turns: list[SpeakerTurn] = field(default_factory=list)
    transcript: Optional[Transcript] = None
    duration: float = 0.0
    used_stand_in: bool = False

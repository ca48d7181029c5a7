from typing import List, Optional, Dict
from pydantic import BaseModel


class SegmentDTO(BaseModel):
    """A time-aligned transcript segment"""
    id: str
    start: float
    end: float
    text: str
    confidence: Optional[float] = None


class SpeakerTurnDTO(BaseModel):
    """Consecutive speech under one heuristic speaker label."""
    speaker: str
    text: str
    start: float
    end: float


class VocabularyItemDTO(BaseModel):
    word: str
    difficulty: int
    frequency: int
    context: str
    definition: Optional[str] = None


class GrammarPatternDTO(BaseModel):
    name: str
    description: str
    examples: List[str] = []
    difficulty: int


class ConversationSegmentDTO(BaseModel):
    """A lesson unit built from consecutive speaker turns."""
    id: str
    title: str
    content: str
    difficulty: int
    vocabulary: List[str] = []
    start: float
    end: float
    speakers: List[str] = []
    turn_count: int
    language: Optional[str] = None
    proficiency_level: Optional[str] = None


class SpeakerStatistics(BaseModel):
    """Per-speaker talk time and word count."""
    duration: float
    percentage: float
    word_count: int


class Statistics(BaseModel):
    """Aggregate heuristic speaker statistics for the upload."""
    speakers: Dict[str, SpeakerStatistics]
    total_speakers: int


class AnalysisResponse(BaseModel):
    """Learning material produced from one upload"""
    conversations: List[ConversationSegmentDTO] = []
    vocabulary: List[VocabularyItemDTO] = []
    grammar_patterns: List[GrammarPatternDTO] = []
    overall_difficulty: int
    suggested_level: str
    topics: List[str] = []
    media_type: str
    duration: float = 0.0
    transcript: Optional[str] = None
    segments: Optional[List[SegmentDTO]] = None
    turns: List[SpeakerTurnDTO] = []
    statistics: Optional[Statistics] = None
    engine: Optional[str] = None
    used_stand_in: bool = False


class UploadAccepted(BaseModel):
    job_id: str
    status: str
    filename: str
    media_type: str
    size: int
    storage_url: str


class UploadStatus(BaseModel):
    job_id: str
    status: str
    stage: Optional[str] = None
    error: Optional[str] = None
    analysis: Optional[AnalysisResponse] = None


class HealthResponse(BaseModel):
    status: str
    ffmpeg: bool
    transcription_engine: str
    stand_in_mode: bool
    storage: bool

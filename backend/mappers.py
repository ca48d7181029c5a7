"""Domain -> DTO mappers.

Converts the pipeline's ProcessingOutcome (domain dataclasses) into the
pydantic AnalysisResponse served by the API.
"""

from dataclasses import asdict

from domain.models import (
    ContentAnalysisResult,
    ProcessingOutcome,
    SpeakerTurn,
    TranscriptSegment,
)
from models import (
    AnalysisResponse,
    ConversationSegmentDTO,
    GrammarPatternDTO,
    SegmentDTO,
    SpeakerStatistics,
    SpeakerTurnDTO,
    Statistics,
    VocabularyItemDTO,
)
from speaker_segmentation import speaker_statistics


def segment_to_dto(seg: TranscriptSegment) -> SegmentDTO:
    return SegmentDTO(**asdict(seg))


def turn_to_dto(turn: SpeakerTurn) -> SpeakerTurnDTO:
    return SpeakerTurnDTO(**asdict(turn))


def statistics_to_dto(turns: list[SpeakerTurn]) -> Statistics:
    raw = speaker_statistics(turns)
    return Statistics(
        speakers={k: SpeakerStatistics(**v) for k, v in raw["speakers"].items()},
        total_speakers=raw["total_speakers"],
    )


def analysis_fields(result: ContentAnalysisResult) -> dict:
    """Learning-material fields of a ContentAnalysisResult as DTOs."""
    return {
        "conversations": [ConversationSegmentDTO(**asdict(c)) for c in result.conversations],
        "vocabulary": [VocabularyItemDTO(**asdict(v)) for v in result.vocabulary],
        "grammar_patterns": [GrammarPatternDTO(**asdict(g)) for g in result.grammar_patterns],
        "overall_difficulty": result.overall_difficulty,
        "suggested_level": result.suggested_level,
        "topics": list(result.topics),
    }


def outcome_to_response(outcome: ProcessingOutcome) -> AnalysisResponse:
    """Convert a pipeline outcome into the API response, preserving order."""
    transcript = outcome.transcript
    return AnalysisResponse(
        **analysis_fields(outcome.result),
        media_type=outcome.media_type.value,
        duration=outcome.duration,
        transcript=transcript.text if transcript else None,
        segments=[segment_to_dto(s) for s in transcript.segments] if transcript else None,
        turns=[turn_to_dto(t) for t in outcome.turns],
        statistics=statistics_to_dto(outcome.turns) if outcome.turns else None,
        engine=transcript.engine if transcript else None,
        used_stand_in=outcome.used_stand_in,
    )

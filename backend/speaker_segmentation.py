"""Heuristic speaker segmentation over time-aligned transcript segments.

This is heuristic diarization, not voice-based speaker identification: a
silence gap longer than the threshold between two consecutive segments is
taken as a change of speaker. Rapid alternation without a pause keeps a
single label, and one speaker pausing mid-thought for longer than the
threshold is split into two labels. Labels ("Speaker 1", "Speaker 2", ...)
are never reused, so two adjacent turns always carry different labels.
"""

import logging
from typing import Optional

from domain.models import SpeakerTurn, TranscriptSegment

logger = logging.getLogger(__name__)

DEFAULT_GAP_THRESHOLD = 2.0


def speaker_label(number: int) -> str:
    return f"Speaker {number}"


def label_segments(
    segments: list[TranscriptSegment],
    gap_threshold: float = DEFAULT_GAP_THRESHOLD,
) -> list[tuple[str, TranscriptSegment]]:
    """Assign a heuristic speaker label to each segment, in the given order.

    Each segment takes the current label; when the silence between its end
    and the next segment's start exceeds gap_threshold, the label switches
    before the next segment is labelled.
    """
    labelled: list[tuple[str, TranscriptSegment]] = []
    speaker_count = 1
    current = speaker_label(speaker_count)

    for i, segment in enumerate(segments):
        labelled.append((current, segment))
        if i + 1 < len(segments):
            silence_gap = segments[i + 1].start - segment.end
            if silence_gap > gap_threshold:
                speaker_count += 1
                current = speaker_label(speaker_count)

    return labelled


def identify_speakers(
    segments: list[TranscriptSegment],
    gap_threshold: float = DEFAULT_GAP_THRESHOLD,
) -> list[SpeakerTurn]:
    """Label segments by silence gaps and merge consecutive same-label segments into turns.

    Args:
        segments: Time-ordered transcript segments.
        gap_threshold: Seconds of silence that starts a new speaker.

    Returns:
        Time-ordered, non-overlapping speaker turns.
    """
    turns: list[SpeakerTurn] = []
    current: Optional[SpeakerTurn] = None

    for label, segment in label_segments(segments, gap_threshold):
        text = segment.text.strip()
        if current is None or current.speaker != label:
            current = SpeakerTurn(speaker=label, text=text, start=segment.start, end=segment.end)
            turns.append(current)
        else:
            if text:
                current.text = f"{current.text} {text}" if current.text else text
            current.end = segment.end

    speakers = {turn.speaker for turn in turns}
    logger.info(f"Heuristic segmentation: {len(segments)} segments -> {len(turns)} turns, {len(speakers)} speakers")
    return turns


def speaker_statistics(turns: list[SpeakerTurn]) -> dict:
    """Compute per-speaker talk time and word count.

    Returns:
        Dict with per-speaker stats and total_speakers count. Empty
        input yields an empty speakers mapping.
    """
    speakers: dict[str, dict] = {}
    for turn in turns:
        stats = speakers.setdefault(turn.speaker, {"duration": 0.0, "word_count": 0})
        stats["duration"] += max(turn.end - turn.start, 0.0)
        stats["word_count"] += len(turn.text.split())

    total_talk = sum(s["duration"] for s in speakers.values())
    result = {}
    for spk, data in speakers.items():
        percentage = (data["duration"] / total_talk * 100) if total_talk > 0 else 0
        result[spk] = {
            "duration": round(data["duration"], 1),
            "percentage": round(percentage, 1),
            "word_count": data["word_count"],
        }

    return {"speakers": result, "total_speakers": len(speakers)}

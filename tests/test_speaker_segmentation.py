"""Tests for silence-gap speaker segmentation."""

import pytest

from domain.models import TranscriptSegment
from speaker_segmentation import identify_speakers, label_segments, speaker_statistics


def seg(i: int, start: float, end: float, text: str = None) -> TranscriptSegment:
    return TranscriptSegment(id=str(i), text=text or f"words {i}", start=start, end=end)


@pytest.mark.unit
class TestIdentifySpeakers:
    def test_gap_over_threshold_switches_speaker(self):
        turns = identify_speakers([seg(0, 0.0, 1.0), seg(1, 3.1, 4.0)])

        assert [t.speaker for t in turns] == ["Speaker 1", "Speaker 2"]

    def test_gap_under_threshold_keeps_speaker(self):
        turns = identify_speakers([seg(0, 0.0, 1.0), seg(1, 2.9, 4.0)])

        assert len(turns) == 1
        assert turns[0].speaker == "Speaker 1"

    def test_same_speaker_segments_merge(self):
        turns = identify_speakers([
            seg(0, 0.0, 1.0, "Hello there."),
            seg(1, 1.5, 2.5, "How are you?"),
            seg(2, 6.0, 7.0, "Fine, thanks."),
            seg(3, 7.2, 8.0, "And you?"),
        ])

        assert len(turns) == 2
        assert turns[0].text == "Hello there. How are you?"
        assert (turns[0].start, turns[0].end) == (0.0, 2.5)
        assert turns[1].speaker == "Speaker 2"
        assert turns[1].text == "Fine, thanks. And you?"
        assert (turns[1].start, turns[1].end) == (6.0, 8.0)

    def test_blank_segment_extends_turn_without_text(self):
        turns = identify_speakers([seg(0, 0.0, 1.0, "foo"), seg(1, 1.5, 2.5, "   ")])

        assert len(turns) == 1
        assert turns[0].text == "foo"
        assert turns[0].end == 2.5

    def test_labels_are_never_reused(self):
        turns = identify_speakers([seg(0, 0.0, 1.0), seg(1, 4.0, 5.0), seg(2, 8.0, 9.0)])

        assert [t.speaker for t in turns] == ["Speaker 1", "Speaker 2", "Speaker 3"]

    def test_single_segment_is_one_turn(self):
        turns = identify_speakers([seg(0, 0.0, 12.0, "Just one line")])

        assert len(turns) == 1
        assert turns[0].speaker == "Speaker 1"
        assert turns[0].text == "Just one line"

    def test_empty_input(self):
        assert identify_speakers([]) == []

    def test_deterministic(self):
        segments = [seg(0, 0.0, 1.0), seg(1, 3.5, 4.0), seg(2, 4.2, 5.0), seg(3, 9.0, 9.5)]

        assert identify_speakers(segments) == identify_speakers(segments)

    def test_turns_are_time_ordered_and_non_overlapping(self):
        segments = [seg(i, i * 2.5, i * 2.5 + 1.0) for i in range(6)]
        turns = identify_speakers(segments, gap_threshold=1.0)

        for current, following in zip(turns, turns[1:]):
            assert current.end <= following.start
            assert current.speaker != following.speaker

    def test_custom_threshold(self):
        labelled = label_segments([seg(0, 0.0, 1.0), seg(1, 1.6, 2.0)], gap_threshold=0.5)

        assert [label for label, _ in labelled] == ["Speaker 1", "Speaker 2"]


@pytest.mark.unit
class TestSpeakerStatistics:
    def test_talk_time_and_words(self):
        turns = identify_speakers([seg(0, 0.0, 3.0, "one two three"), seg(1, 6.0, 7.0, "four")])
        stats = speaker_statistics(turns)

        assert stats["total_speakers"] == 2
        assert stats["speakers"]["Speaker 1"] == {"duration": 3.0, "percentage": 75.0, "word_count": 3}
        assert stats["speakers"]["Speaker 2"]["word_count"] == 1

    def test_empty(self):
        assert speaker_statistics([]) == {"speakers": {}, "total_speakers": 0}

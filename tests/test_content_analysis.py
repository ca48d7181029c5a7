"""Tests for the linguistic analysis engine."""

import pytest

from content_analysis import (
    DEFAULT_TOPIC,
    ContentAnalyzer,
    calculate_content_difficulty,
    extract_topics,
    extract_vocabulary,
    generate_conversation_segments,
    identify_grammar_patterns,
    suggest_proficiency_level,
    tokenize,
    word_difficulty,
)
from domain.models import SpeakerTurn, VocabularyItem

GREETING = "Hello, how are you today? I am learning English."
GREETING_TURNS = [
    SpeakerTurn("Speaker 1", "Hello, how are you today?", 0.0, 2.0),
    SpeakerTurn("Speaker 2", "I am learning English.", 3.0, 5.0),
]


@pytest.mark.unit
class TestTokenize:
    def test_lowercases_and_strips_punctuation(self):
        assert tokenize("Hello, World! It's fine.") == ["hello", "world", "it", "s", "fine"]

    def test_empty(self):
        assert tokenize("") == []
        assert tokenize(None) == []


@pytest.mark.unit
class TestVocabulary:
    def test_excludes_stop_words_and_short_words(self):
        words = [item.word for item in extract_vocabulary(GREETING)]

        assert words == ["hello", "today", "learning", "english"]
        for stop_word in ("how", "are", "you", "am"):
            assert stop_word not in words

    def test_only_common_words_are_stop_words(self):
        words = [item.word for item in extract_vocabulary("What about there? Would they come?")]

        assert words == ["what", "about", "there", "would"]

    def test_ranked_by_frequency(self):
        vocabulary = extract_vocabulary("Travel is fun. Travel often. Travel with friends. Friends help.")

        assert vocabulary[0].word == "travel"
        assert vocabulary[0].frequency == 3
        assert vocabulary[1].word == "friends"
        assert vocabulary[1].frequency == 2

    def test_keeps_top_twenty(self):
        text = " ".join(f"word{chr(97 + i)}{chr(97 + j)}" for i in range(5) for j in range(5))

        assert len(extract_vocabulary(text)) == 20

    def test_difficulty_and_context(self):
        vocabulary = {item.word: item for item in extract_vocabulary(GREETING)}

        assert vocabulary["learning"].difficulty == 1
        assert vocabulary["learning"].context == "I am learning English"
        assert vocabulary["hello"].definition is None

    def test_reference_list_before_length_heuristic(self):
        assert word_difficulty("ubiquitous") == 6
        assert word_difficulty("nevertheless") == 3
        assert word_difficulty("consequently") == 3
        assert word_difficulty("comprehensive") == 4
        assert word_difficulty("lamp") == 1
        assert word_difficulty("garden") == 2
        assert word_difficulty("keyboard") == 3
        assert word_difficulty("skyscraper") == 4
        assert word_difficulty("photosynthesis") == 5

    def test_empty_text(self):
        assert extract_vocabulary("") == []
        assert extract_vocabulary("... !!! ???") == []


@pytest.mark.unit
class TestGrammarPatterns:
    def test_each_rule_contributes_one_entry(self):
        patterns = identify_grammar_patterns(
            "If it rains tomorrow, we will stay home. I have been there before. "
            "You should call her."
        )
        names = [p.name for p in patterns]

        assert names == ["Conditional sentences", "Present/Past perfect tense", "Modal verbs"]
        assert len(set(names)) == len(names)

    def test_at_most_three_examples(self):
        patterns = identify_grammar_patterns("I will go. You will see. He will eat. She will run.")

        assert len(patterns) == 1
        assert patterns[0].examples == ["will go", "will see", "will eat"]
        assert patterns[0].difficulty == 2

    def test_gerund_with_subordinator(self):
        patterns = identify_grammar_patterns("She was singing while cooking dinner")

        assert [p.name for p in patterns] == ["Gerunds and participles"]
        assert patterns[0].difficulty == 3

    def test_no_matches(self):
        assert identify_grammar_patterns("Cats sleep.") == []
        assert identify_grammar_patterns("") == []


@pytest.mark.unit
class TestDifficulty:
    def test_simple_text_scores_one(self):
        assert calculate_content_difficulty(GREETING) == 1

    def test_capped_at_six(self):
        text = " ".join(["extraordinarily"] * 30) + "."

        assert calculate_content_difficulty(text) == 6

    @pytest.mark.parametrize("text", [
        "Yes.",
        "A a a a a a a a a a a a a a a a a a a a a a a a a a a a.",
        "Considerations regarding institutional responsibilities. Short one.",
        "no punctuation at all here",
        "?!",
        "",
    ])
    def test_always_within_bounds(self, text):
        score = calculate_content_difficulty(text)

        assert isinstance(score, int)
        assert 1 <= score <= 6

    def test_long_sentences_raise_difficulty(self):
        text = " ".join(["cat"] * 20) + "."

        assert calculate_content_difficulty(text) == 2


@pytest.mark.unit
class TestProficiencyLevel:
    def vocab(self, *levels):
        return [VocabularyItem(word=f"w{i}", difficulty=d, frequency=1, context="") for i, d in enumerate(levels)]

    @pytest.mark.parametrize("difficulty,levels,expected", [
        (1, (1, 1), "A1"),
        (1, (3, 3), "A2"),
        (3, (4,), "B1"),
        (4, (5,), "B2"),
        (5, (6,), "C1"),
        (6, (6,), "C2"),
    ])
    def test_cut_points(self, difficulty, levels, expected):
        assert suggest_proficiency_level(difficulty, self.vocab(*levels)) == expected

    def test_empty_vocabulary_uses_difficulty_alone(self):
        assert suggest_proficiency_level(2, []) == "A2"
        assert suggest_proficiency_level(6, []) == "C2"


@pytest.mark.unit
class TestTopics:
    def test_two_distinct_keywords_required(self):
        assert extract_topics("We booked a hotel for our trip.") == ["Travel"]
        assert extract_topics("The hotel was nice.") == [DEFAULT_TOPIC]

    def test_repeated_keyword_counts_once(self):
        assert extract_topics("hotel hotel hotel") == [DEFAULT_TOPIC]

    def test_keywords_match_inside_longer_words(self):
        assert extract_topics("We had a homework meeting.") == ["Business"]

    def test_multiple_topics(self):
        topics = extract_topics("The doctor at the hospital said my family and my brother are fine.")

        assert topics == ["Health", "Family"]

    def test_never_empty(self):
        assert extract_topics("") == ["General Conversation"]
        assert extract_topics(None) == ["General Conversation"]


@pytest.mark.unit
class TestConversationSegments:
    def make_turns(self, count):
        return [
            SpeakerTurn(f"Speaker {i % 2 + 1}", f"The garden needs water number {i}.", i * 3.0, i * 3.0 + 2.0)
            for i in range(count)
        ]

    def test_windows_of_four_turns(self):
        segments = generate_conversation_segments(self.make_turns(9), language="en", proficiency_level="A2")

        assert [s.turn_count for s in segments] == [4, 4, 1]
        assert (segments[0].start, segments[0].end) == (0.0, 11.0)
        assert (segments[2].start, segments[2].end) == (24.0, 26.0)
        assert segments[0].speakers == ["Speaker 1", "Speaker 2"]
        assert segments[2].speakers == ["Speaker 1"]
        assert segments[0].language == "en"
        assert segments[0].proficiency_level == "A2"
        assert len({s.id for s in segments}) == 3

    def test_title_content_and_vocabulary(self):
        segment = generate_conversation_segments(self.make_turns(2))[0]

        assert segment.title == "Discussion about garden, needs, water"
        assert segment.content.splitlines()[0] == "Speaker 1: The garden needs water number 0."
        assert segment.vocabulary == ["garden", "needs", "water", "number"]
        assert 1 <= segment.difficulty <= 6

    def test_segment_vocabulary_limited_to_eight(self):
        turn = SpeakerTurn("Reader", "alpha bravo charlie delta extra foxtrot golfer hotel india juliet kilos", 0.0, 3.0)
        segment = generate_conversation_segments([turn])[0]

        assert len(segment.vocabulary) == 8

    def test_stop_words_only_gives_default_title(self):
        segment = generate_conversation_segments([SpeakerTurn("Reader", "you are the one", 0.0, 3.0)])[0]

        assert segment.title == "Conversation Segment"

    def test_no_turns(self):
        assert generate_conversation_segments([]) == []


@pytest.mark.unit
class TestContentAnalyzer:
    def test_greeting_round_trip(self):
        result = ContentAnalyzer().analyze(GREETING, GREETING_TURNS, language="en", requested_level="A1")

        assert len(result.conversations) >= 1
        assert result.vocabulary
        vocabulary_words = {item.word for item in result.vocabulary}
        assert not vocabulary_words & {"how", "are", "you"}
        assert result.suggested_level == "A1"
        assert result.overall_difficulty == 1
        assert result.topics == ["General Conversation"]

    def test_empty_input_degrades_to_defaults(self):
        result = ContentAnalyzer().analyze("", [])

        assert result.conversations == []
        assert result.vocabulary == []
        assert result.grammar_patterns == []
        assert result.overall_difficulty == 1
        assert result.suggested_level == "A1"
        assert result.topics == ["General Conversation"]

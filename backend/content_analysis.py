"""Linguistic analysis that turns transcript text into learning material.

Functions for tokenization, vocabulary extraction, grammar pattern
detection, difficulty scoring, CEFR level suggestion, topic extraction,
and grouping speaker turns into conversation segments. Everything here is
pure and total: empty or malformed input degrades to empty collections
and default values instead of raising.
"""

import re
import uuid
import logging
from collections import Counter
from typing import Optional

from domain.models import (
    CEFR_LEVELS,
    ContentAnalysisResult,
    ConversationSegment,
    GrammarPattern,
    SpeakerTurn,
    VocabularyItem,
)

logger = logging.getLogger(__name__)

VOCABULARY_SIZE = 20
SEGMENT_TURNS = 4
SEGMENT_VOCABULARY_SIZE = 8
DEFAULT_TOPIC = "General Conversation"

STOP_WORDS = frozenset([
    "the", "and", "that", "have", "for", "not", "with", "you", "this", "but",
    "his", "from", "they", "she", "her", "been", "than", "its", "who", "did",
    "get", "may", "him", "old", "see", "now", "way", "two", "how", "day",
    "man", "new", "has", "can", "was", "one", "our", "out", "use", "your",
    "all", "any", "more", "time", "very", "when", "come", "here", "just",
    "like", "long", "make", "many", "over", "such", "take", "will", "work",
])

# Reference words by CEFR level. A word takes the lowest level it appears at.
WORD_LISTS = {
    "A1": [
        "hello", "please", "thank", "thanks", "good", "today", "tomorrow",
        "yesterday", "name", "friend", "family", "house", "school", "learn",
        "learning", "english", "language", "speak", "water", "morning",
        "evening", "night", "happy", "welcome", "small", "big", "bad", "new",
        "old", "yes", "no",
    ],
    "A2": [
        "always", "never", "sometimes", "often", "usually", "important",
        "different", "difficult", "easy", "weather", "holiday", "beautiful",
        "outside", "favourite", "favorite", "restaurant", "journey",
    ],
    "B1": [
        "although", "however", "therefore", "nevertheless", "furthermore",
        "consequently", "opinion", "experience", "environment", "suggest",
        "necessary", "discussion",
    ],
    "B2": [
        "significant", "substantial", "predominantly", "comprehensive",
        "considerable", "implications",
    ],
    "C1": [
        "sophisticated", "meticulous", "unprecedented", "intricate",
        "ambiguous", "inherent", "scrutiny", "albeit",
    ],
    "C2": [
        "ubiquitous", "paradigm", "quintessential", "juxtaposition",
        "dichotomy", "ephemeral", "perfunctory", "obfuscate",
    ],
}

_WORD_LEVELS: dict[str, int] = {}
for _index, _level in enumerate(CEFR_LEVELS):
    for _word in WORD_LISTS[_level]:
        _WORD_LEVELS.setdefault(_word, _index + 1)

# (name, description, pattern, difficulty), evaluated in order.
GRAMMAR_RULES = [
    (
        "Conditional sentences",
        "Clauses introduced by if/when/because followed by a result clause",
        re.compile(r"\b(if|when|while|although|because|since)\b.*,.*\b(then|will|would|can|could)\b", re.IGNORECASE),
        3,
    ),
    (
        "Present/Past perfect tense",
        "have/has/had followed by a past participle",
        re.compile(r"\b(have|has|had)\s+(been|done|gone|seen|made)\b", re.IGNORECASE),
        2,
    ),
    (
        "Modal verbs",
        "Modal auxiliary followed by a main verb",
        re.compile(r"\b(will|would|could|should|might|may)\s+\w+", re.IGNORECASE),
        2,
    ),
    (
        "Gerunds and participles",
        "-ing form used together with a time subordinator",
        re.compile(r"\b\w+ing\b.*\b(while|when|after|before)\b", re.IGNORECASE),
        3,
    ),
]

TOPIC_KEYWORDS = {
    "Business": ["business", "company", "work", "job", "career", "office", "meeting", "project"],
    "Travel": ["travel", "trip", "vacation", "flight", "hotel", "tourism", "country", "culture"],
    "Education": ["school", "student", "teacher", "learn", "study", "education", "university"],
    "Technology": ["computer", "internet", "software", "digital", "technology", "app", "device"],
    "Health": ["health", "doctor", "medicine", "hospital", "exercise", "diet", "wellness"],
    "Food": ["food", "restaurant", "cooking", "recipe", "meal", "dinner", "lunch"],
    "Family": ["family", "parent", "child", "brother", "sister", "home", "relationship"],
}

_NON_WORD = re.compile(r"[^\w\s]")
_SENTENCE_BREAK = re.compile(r"[.!?]+")


def tokenize(text: Optional[str]) -> list[str]:
    """Lowercase, replace punctuation with spaces and split on whitespace."""
    if not text:
        return []
    return _NON_WORD.sub(" ", text.lower()).split()


def split_sentences(text: Optional[str]) -> list[str]:
    if not text:
        return []
    return [s.strip() for s in _SENTENCE_BREAK.split(text) if s.strip()]


def is_stop_word(word: str) -> bool:
    return word in STOP_WORDS


def word_difficulty(word: str) -> int:
    """CEFR index (1-6) from the reference lists, else a length heuristic (1-5)."""
    level = _WORD_LEVELS.get(word)
    if level is not None:
        return level
    if len(word) <= 4:
        return 1
    if len(word) <= 6:
        return 2
    if len(word) <= 8:
        return 3
    if len(word) <= 10:
        return 4
    return 5


def find_word_context(word: str, text: str) -> str:
    """Return the first sentence containing the word, or an empty string."""
    for sentence in _SENTENCE_BREAK.split(text or ""):
        if word.lower() in sentence.lower():
            return sentence.strip()
    return ""


def extract_vocabulary(text: Optional[str], limit: int = VOCABULARY_SIZE) -> list[VocabularyItem]:
    """Rank content words by frequency and attach difficulty and example context."""
    frequency = Counter(
        word for word in tokenize(text)
        if len(word) > 3 and not is_stop_word(word)
    )
    ranked = sorted(frequency.items(), key=lambda item: item[1], reverse=True)[:limit]

    return [
        VocabularyItem(
            word=word,
            difficulty=word_difficulty(word),
            frequency=count,
            context=find_word_context(word, text),
        )
        for word, count in ranked
    ]


def identify_grammar_patterns(text: Optional[str]) -> list[GrammarPattern]:
    """Run the grammar rules; each matching rule contributes one entry with up to 3 examples."""
    if not text:
        return []

    patterns: list[GrammarPattern] = []
    for name, description, pattern, difficulty in GRAMMAR_RULES:
        matches = [m.group(0) for m in pattern.finditer(text)]
        if matches:
            patterns.append(GrammarPattern(
                name=name,
                description=description,
                examples=matches[:3],
                difficulty=difficulty,
            ))
    return patterns


def calculate_content_difficulty(text: Optional[str]) -> int:
    """Score text difficulty from 1 to 6 using sentence length and word length thresholds."""
    words = tokenize(text)
    sentences = split_sentences(text)
    if not words or not sentences:
        return 1

    avg_words_per_sentence = len(words) / len(sentences)
    avg_word_length = sum(len(w) for w in words) / len(words)
    complex_word_ratio = sum(1 for w in words if len(w) > 6) / len(words)

    difficulty = 1
    if avg_words_per_sentence > 15:
        difficulty += 1
    if avg_words_per_sentence > 25:
        difficulty += 1
    if avg_word_length > 5:
        difficulty += 1
    if avg_word_length > 6.5:
        difficulty += 1
    if complex_word_ratio > 0.3:
        difficulty += 1
    if complex_word_ratio > 0.5:
        difficulty += 1

    return min(difficulty, 6)


def suggest_proficiency_level(difficulty: float, vocabulary: list[VocabularyItem]) -> str:
    """Map content difficulty combined with mean vocabulary difficulty to a CEFR label."""
    if vocabulary:
        avg_vocab_difficulty = sum(item.difficulty for item in vocabulary) / len(vocabulary)
    else:
        avg_vocab_difficulty = difficulty

    combined = (difficulty + avg_vocab_difficulty) / 2
    for cut_point, level in zip((1.5, 2.5, 3.5, 4.5, 5.5), CEFR_LEVELS):
        if combined <= cut_point:
            return level
    return CEFR_LEVELS[-1]


def extract_topics(text: Optional[str]) -> list[str]:
    """Return topics with at least two distinct keyword hits; never empty."""
    lower = (text or "").lower()
    topics = []
    for topic, keywords in TOPIC_KEYWORDS.items():
        hits = [kw for kw in keywords if kw in lower]
        if len(hits) >= 2:
            topics.append(topic)
    return topics or [DEFAULT_TOPIC]


def segment_title(turns: list[SpeakerTurn]) -> str:
    words = [
        w for w in tokenize(" ".join(t.text for t in turns))
        if len(w) > 3 and not is_stop_word(w)
    ]
    top = [word for word, _ in Counter(words).most_common(3)]
    if top:
        return f"Discussion about {', '.join(top)}"
    return "Conversation Segment"


def segment_vocabulary(text: str, limit: int = SEGMENT_VOCABULARY_SIZE) -> list[str]:
    seen: list[str] = []
    for word in tokenize(text):
        if len(word) > 4 and not is_stop_word(word) and word not in seen:
            seen.append(word)
            if len(seen) == limit:
                break
    return seen


def generate_conversation_segments(
    turns: list[SpeakerTurn],
    language: Optional[str] = None,
    proficiency_level: Optional[str] = None,
    turns_per_segment: int = SEGMENT_TURNS,
) -> list[ConversationSegment]:
    """Group consecutive turns into fixed-size windows with title, difficulty and vocabulary."""
    segments: list[ConversationSegment] = []
    for i in range(0, len(turns), turns_per_segment):
        window = turns[i:i + turns_per_segment]
        spoken = " ".join(turn.text for turn in window)
        speakers: list[str] = []
        for turn in window:
            if turn.speaker not in speakers:
                speakers.append(turn.speaker)

        segments.append(ConversationSegment(
            id=f"conv_{uuid.uuid4().hex[:12]}",
            title=segment_title(window),
            content="\n".join(f"{turn.speaker}: {turn.text}" for turn in window),
            difficulty=calculate_content_difficulty(spoken),
            vocabulary=segment_vocabulary(spoken),
            start=window[0].start,
            end=window[-1].end,
            speakers=speakers,
            turn_count=len(window),
            language=language,
            proficiency_level=proficiency_level,
        ))
    return segments


class ContentAnalyzer:
    """Runs every analysis step over one transcript and its speaker turns."""

    def analyze(
        self,
        transcript: str,
        turns: list[SpeakerTurn],
        language: Optional[str] = None,
        requested_level: Optional[str] = None,
    ) -> ContentAnalysisResult:
        conversations = generate_conversation_segments(turns, language, requested_level)
        vocabulary = extract_vocabulary(transcript)
        grammar_patterns = identify_grammar_patterns(transcript)
        overall_difficulty = calculate_content_difficulty(transcript)
        suggested_level = suggest_proficiency_level(overall_difficulty, vocabulary)
        topics = extract_topics(transcript)

        logger.info(
            f"Analysis: {len(conversations)} segments, {len(vocabulary)} words, "
            f"{len(grammar_patterns)} grammar patterns, difficulty {overall_difficulty}, "
            f"level {suggested_level}, topics {topics}"
        )
        return ContentAnalysisResult(
            conversations=conversations,
            vocabulary=vocabulary,
            grammar_patterns=grammar_patterns,
            overall_difficulty=overall_difficulty,
            suggested_level=suggested_level,
            topics=topics,
        )

"""
Matching a question against stored question patterns.
"""

from typing import Iterable, Optional

from ..models.core import MatchType, QuestionPattern
from ..utils.text_normalizer import calculate_similarity, extract_keywords, normalize_question

DEFAULT_KEYWORD_THRESHOLD = 0.3
DEFAULT_SIMILARITY_THRESHOLD = 0.5


def exact_match(question: str, patterns: Iterable[QuestionPattern]) -> Optional[QuestionPattern]:
    """First pattern with a phrasing that normalizes to the same text as the question."""
    normalized = normalize_question(question)

    for pattern in patterns:
        for phrasing in pattern.patterns:
            if normalize_question(phrasing) == normalized:
                return pattern

    return None


def keyword_score(question_keywords, pattern_keywords) -> float:
    """Share of question keywords found in the pattern keywords.

    A pair matches when either keyword contains the other. The denominator is the larger of the
    two keyword counts.
    """
    denominator = max(len(pattern_keywords), len(question_keywords))
    if denominator == 0:
        return 0.0

    matched = [qk for qk in question_keywords if any(qk in pk or pk in qk for pk in pattern_keywords)]
    return len(matched) / denominator


def keyword_match(question: str,
                  patterns: Iterable[QuestionPattern],
                  threshold: float = DEFAULT_KEYWORD_THRESHOLD) -> Optional[QuestionPattern]:
    """Best keyword/similarity pattern by keyword overlap; ties keep the first pattern."""
    question_keywords = extract_keywords(question)

    best_match = None
    best_score = 0.0

    for pattern in patterns:
        if pattern.match_type not in (MatchType.KEYWORD, MatchType.SIMILARITY):
            continue

        pattern_keywords = [keyword.lower() for keyword in pattern.keywords if keyword]
        score = keyword_score(question_keywords, pattern_keywords)

        if score >= threshold and score > best_score:
            best_score = score
            best_match = pattern

    return best_match


def similarity_match(question: str,
                     patterns: Iterable[QuestionPattern],
                     threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> Optional[QuestionPattern]:
    """Best similarity pattern by Jaccard similarity against its literal phrasings."""
    best_match = None
    best_score = 0.0

    for pattern in patterns:
        if pattern.match_type != MatchType.SIMILARITY:
            continue

        for phrasing in pattern.patterns:
            similarity = calculate_similarity(question, phrasing)
            if similarity >= threshold and similarity > best_score:
                best_score = similarity
                best_match = pattern

    return best_match


"""
Question normalization, keyword extraction and similarity scoring.
"""

import re
from typing import List, Set

# ASCII word characters, any whitespace and Hangul syllables survive normalization
_DISALLOWED_CHARS = re.compile(r'[^0-9A-Za-z_\s가-힣]')
_WHITESPACE = re.compile(r'\s+')


def normalize_question(question: str) -> str:
    """Canonicalize question text for comparison.

    Lowercases, strips punctuation and symbols, collapses whitespace runs to a single
    space and trims the result.

    Args:
        question: Raw question text

    Returns:
        Normalized question text
    """
    if not question:
        return ''
    text = _DISALLOWED_CHARS.sub('', question.lower())
    return _WHITESPACE.sub(' ', text).strip()


def extract_keywords(question: str) -> List[str]:
    """Split a question into keyword tokens, keeping only tokens longer than one character.

    Args:
        question: Raw question text

    Returns:
        Keywords in order of occurrence
    """
    normalized = normalize_question(question)
    return [word for word in normalized.split(' ') if len(word) > 1]


def keyword_set(question: str) -> Set[str]:
    return set(extract_keywords(question))


def calculate_similarity(first: str, second: str) -> float:
    """Jaccard similarity between the keyword sets of two questions.

    Args:
        first: First question
        second: Second question

    Returns:
        Similarity in [0, 1]; 0.0 when neither question has a keyword
    """
    first_set = keyword_set(first)
    second_set = keyword_set(second)

    union = first_set | second_set
    if not union:
        return 0.0

    return len(first_set & second_set) / len(union)

#!/usr/bin/env python3
"""
Keyword Matcher

Whole-word recognition of keyword phrases and numeric patterns inside
free-text operating system labels. Every free-text extractor in the
recognizers goes through these helpers.
"""

import re
from functools import lru_cache
from typing import Iterable, Optional, Pattern, Sequence, Tuple, TypeVar

T = TypeVar('T')

BUILD_NUMBER_DIGITS = 5
_SERVICE_PACK_PATTERN = re.compile(r'\b(?:SP|Service\s+Pack\s*)(\d)([a-z])?\b', re.IGNORECASE)


@lru_cache(maxsize=512)
def _word_pattern(words: Tuple[str, ...], ignore_case: bool) -> Pattern:
    alternation = '|'.join(re.escape(word) for word in words)
    flags = re.IGNORECASE if ignore_case else 0
    return re.compile(rf'\b(?:{alternation})\b', flags)


def build_alternation(words: Iterable[str], ignore_case: bool = True) -> Optional[Pattern]:
    """
    Compile a word-bounded alternation that captures the matched word.

    Longer words are tried first so that a label which is a prefix of
    another never shadows it. Returns None for an empty vocabulary.
    """
    ordered = sorted(set(words), key=lambda word: (-len(word), word))
    if not ordered:
        return None
    alternation = '|'.join(re.escape(word) for word in ordered)
    flags = re.IGNORECASE if ignore_case else 0
    return re.compile(rf'\b({alternation})\b', flags)


def contains_any_word(text: str, words: Sequence[str], ignore_case: bool = False) -> bool:
    """True when any of ``words`` occurs in ``text`` as a whole word."""
    if not words:
        return False
    return _word_pattern(tuple(words), ignore_case).search(text) is not None


def match_first_keyword(text: str, table: Sequence[Tuple[T, Sequence[str]]],
                        ignore_case: bool = False) -> Optional[T]:
    """
    Return the value of the first ``(value, phrases)`` row whose phrases occur
    in ``text``. Row order is the precedence: callers list longer, more
    specific phrases before their substrings.
    """
    for value, phrases in table:
        if contains_any_word(text, phrases, ignore_case=ignore_case):
            return value
    return None


def find_number_with_digits(text: str, digits: int = BUILD_NUMBER_DIGITS) -> Optional[str]:
    """
    Find the first maximal run of exactly ``digits`` digits.

    ``"22000.1219"`` yields ``"22000"``; ``"123456"`` yields nothing because
    the run is longer than requested.
    """
    match = re.search(rf'(?<!\d)\d{{{digits}}}(?!\d)', text)
    return match.group(0) if match else None


def find_service_pack(text: str) -> Optional[str]:
    """Extract ``SP2``/``Service Pack 2`` style tags as ``SP2`` (``SP1a`` keeps its letter lower-case)."""
    match = _SERVICE_PACK_PATTERN.search(text)
    if not match:
        return None
    number, letter = match.group(1), match.group(2) or ''
    return f"SP{number}{letter.lower()}"

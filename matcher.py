"""Greedy longest-match vocabulary matching for generated Chinese text.

Given a run of text and the learner's known words, `match_vocabulary` walks the
text left to right and at every position consumes the longest vocabulary entry
that fits, falling back to a single unmatched character. `uncovered_characters`
is the order-independent companion check: which characters of the text do not
appear inside any entry at all.
"""
import unicodedata
from collections import defaultdict
from typing import Dict, Iterable, List

from log import get_logger

from models import MatchResult, Segment, TextAnalysis

logger = get_logger("ciku.matcher")


def _check_inputs(source_text, vocabulary) -> List[str]:
    if source_text is None:
        raise TypeError("source_text must not be None")
    if not isinstance(source_text, str):
        raise TypeError(f"source_text must be str, got {type(source_text).__name__}")
    if vocabulary is None:
        raise TypeError("vocabulary must not be None")
    if isinstance(vocabulary, str):
        raise TypeError("vocabulary must be a collection of words, not a single str")
    words = list(vocabulary)
    for word in words:
        if not isinstance(word, str):
            raise TypeError(f"vocabulary entries must be str, got {type(word).__name__}")
    return words


def _candidates_by_first_char(words: List[str]) -> Dict[str, List[str]]:
    # Stable sort: equal-length entries keep their input order.
    ordered = sorted((w for w in words if w), key=len, reverse=True)
    buckets: Dict[str, List[str]] = defaultdict(list)
    for word in ordered:
        buckets[word[0]].append(word)
    return buckets


def match_vocabulary(source_text: str, vocabulary: Iterable[str]) -> MatchResult:
    """Scan `source_text` and report which vocabulary entries it uses.

    Longer entries win over shorter ones at the same position ("高兴" beats
    "高"). Every entry is reported once, in order of first match; characters
    no entry could consume are reported once each in `unmatched`. Empty
    entries are ignored.

    Raises TypeError if either argument is None or of the wrong shape.
    """
    words = _check_inputs(source_text, vocabulary)
    candidates = _candidates_by_first_char(words)

    matched: List[str] = []
    unmatched: List[str] = []
    segments: List[Segment] = []
    seen_words = set()
    seen_chars = set()

    pos = 0
    end = len(source_text)
    while pos < end:
        for word in candidates.get(source_text[pos], ()):
            if source_text.startswith(word, pos):
                if word not in seen_words:
                    seen_words.add(word)
                    matched.append(word)
                segments.append(Segment(text=word, word=word))
                pos += len(word)
                break
        else:
            char = source_text[pos]
            if char not in seen_chars:
                seen_chars.add(char)
                unmatched.append(char)
            segments.append(Segment(text=char))
            pos += 1

    logger.debug("Vocabulary scan finished", extra={
        "component": "matcher",
        "count": len(segments),
        "matched": len(matched),
        "unmatched": len(unmatched),
    })
    return MatchResult(matched=matched, unmatched=unmatched, segments=segments)


def uncovered_characters(source_text: str, vocabulary: Iterable[str]) -> List[str]:
    """Distinct characters of `source_text` that occur in no vocabulary entry.

    Unlike the scan this ignores position and greediness: a character counts
    as covered if any entry contains it, even one that never matched.
    """
    words = _check_inputs(source_text, vocabulary)
    known = set("".join(words))
    result: List[str] = []
    for char in source_text:
        if char not in known and char not in result:
            result.append(char)
    return result


def is_punctuation_or_space(char: str) -> bool:
    return char.isspace() or unicodedata.category(char).startswith("P")


def strip_punctuation(text: str) -> str:
    """Drop whitespace and every Unicode punctuation character (，。！？ etc.)."""
    return "".join(c for c in text if not is_punctuation_or_space(c))


def extract_used_words(text: str, vocabulary: Iterable[str]) -> List[str]:
    """Vocabulary entries used by `text`, ignoring its punctuation."""
    if text is None:
        raise TypeError("text must not be None")
    return match_vocabulary(strip_punctuation(text), vocabulary).matched


def analyze_text(text: str, vocabulary: Iterable[str], strip: bool = True) -> TextAnalysis:
    """Run both the greedy scan and the coverage check over the same text."""
    words = _check_inputs(text, vocabulary)
    clean = strip_punctuation(text) if strip else text
    result = match_vocabulary(clean, words)
    return TextAnalysis(
        matched=result.matched,
        unmatched=result.unmatched,
        segments=result.segments,
        uncovered=uncovered_characters(clean, words),
    )

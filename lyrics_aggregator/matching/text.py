"""
Text normalization and string similarity primitives.

All functions here are pure and total: any string, including the empty
string, is a valid input.
"""

import re

from rapidfuzz.distance import Levenshtein


_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    """
    Lowercase, replace punctuation with spaces, collapse whitespace, trim.

    Examples:
        "Don't Stop  Me Now!" -> "don t stop me now"
        None -> ""
    """
    if not text:
        return ""
    text = _NON_WORD.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def ngrams(text: str, size: int = 2) -> set[str]:
    """Return the set of contiguous `size`-length substrings of `text`."""
    if not text or len(text) < size:
        return set()
    return {text[i:i + size] for i in range(len(text) - size + 1)}


def dice_coefficient(a: str, b: str) -> float:
    """
    Sørensen-Dice coefficient over character bigrams.

    Returns 1.0 when both strings are empty and 0.0 when exactly one is.
    Strings too short to have a bigram compare by equality.
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0

    bigrams_a = ngrams(a, 2)
    bigrams_b = ngrams(b, 2)

    if not bigrams_a or not bigrams_b:
        return 1.0 if a == b else 0.0

    return 2 * len(bigrams_a & bigrams_b) / (len(bigrams_a) + len(bigrams_b))


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insertions, deletions, substitutions cost 1)."""
    return Levenshtein.distance(a, b)


def levenshtein_similarity(a: str, b: str) -> float:
    """Edit distance scaled to [0, 1] by the longer string; 0.0 if both are empty."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return 1 - levenshtein(a, b) / longest

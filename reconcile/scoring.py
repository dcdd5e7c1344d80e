"""Name similarity scoring for rider identity matching."""

import re
import unicodedata

from rapidfuzz.distance import Levenshtein

from reconcile.nicknames import are_nickname_equivalent

_NON_LETTER_RE = re.compile(r'[^a-z]')


def levenshtein_distance(a: str, b: str) -> int:
    """Case-insensitive Levenshtein edit distance between two strings."""
    return Levenshtein.distance(a.lower(), b.lower())


def similarity_score(a: str, b: str) -> float:
    """Calculate an edit-distance similarity between 0.0 and 1.0.

    1.0 means identical (ignoring case), 0.0 completely different. Two
    empty strings are identical.

    Args:
        a: First string.
        b: Second string.

    Returns:
        ``1 - distance / max(len(a), len(b))``.
    """
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max_len


def normalize_for_comparison(text: str) -> str:
    """Normalize a name part for comparison.

    Trims, lowercases, removes accents/diacritics via NFD decomposition and
    strips everything that is not a letter a-z, so ``O'Callahan`` becomes
    ``ocallahan`` and ``José`` becomes ``jose``.

    Args:
        text: Raw name string.

    Returns:
        Normalized string for comparison.
    """
    decomposed = unicodedata.normalize('NFD', text.strip().lower())
    # Remove combining marks (category 'Mn')
    stripped = ''.join(ch for ch in decomposed if unicodedata.category(ch) != 'Mn')
    return _NON_LETTER_RE.sub('', stripped)


def _pair_score(query: str, candidate: str) -> float:
    if are_nickname_equivalent(query, candidate):
        return 1.0
    return similarity_score(query, candidate)


def fuzzy_name_score(
    query_first: str,
    query_last: str,
    candidate_first: str,
    candidate_last: str,
) -> float:
    """Score how likely two (first, last) names belong to the same rider.

    Handles:
    - punctuation and accents (O'Callahan vs Ocallahan)
    - common nicknames (Bob vs Robert), treated as full matches
    - minor typos (Levenshtein similarity per name part)
    - names entered in the wrong order (Smith John vs John Smith)

    Nickname and swap checks run before the edit distance fallback, which
    on its own scores short nicknames poorly.

    Args:
        query_first: First name being searched for.
        query_last: Last name being searched for.
        candidate_first: First name of the candidate record.
        candidate_last: Last name of the candidate record.

    Returns:
        Similarity between 0.0 and 1.0.
    """
    qf = normalize_for_comparison(query_first)
    ql = normalize_for_comparison(query_last)
    cf = normalize_for_comparison(candidate_first)
    cl = normalize_for_comparison(candidate_last)

    if qf == cf and ql == cl:
        return 1.0

    if are_nickname_equivalent(qf, cf) and are_nickname_equivalent(ql, cl):
        return 1.0

    direct = (_pair_score(qf, cf) + _pair_score(ql, cl)) / 2
    swapped = (_pair_score(qf, cl) + _pair_score(ql, cf)) / 2

    return max(direct, swapped)

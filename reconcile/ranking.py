"""Top-K fuzzy name search over arbitrary candidate records."""

from typing import Callable, Sequence, TypeVar

from reconcile import ScoredCandidate
from reconcile.scoring import fuzzy_name_score

T = TypeVar('T')

DEFAULT_THRESHOLD = 0.5
DEFAULT_MAX_RESULTS = 10


def find_fuzzy_name_matches(
    query_first: str,
    query_last: str,
    candidates: Sequence[T],
    get_first: Callable[[T], str],
    get_last: Callable[[T], str],
    threshold: float = DEFAULT_THRESHOLD,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[ScoredCandidate[T]]:
    """Find candidates whose name resembles the query, best first.

    Ties keep the candidates' input order (``sorted`` is stable).

    Args:
        query_first: First name to search for.
        query_last: Last name to search for.
        candidates: Records to search.
        get_first: Accessor returning a record's first name.
        get_last: Accessor returning a record's last name.
        threshold: Minimum score (0–1) for a candidate to be returned.
        max_results: Maximum number of candidates returned.

    Returns:
        Scored candidates, sorted by descending score.
    """
    scored = [
        ScoredCandidate(
            item=item,
            score=fuzzy_name_score(query_first, query_last, get_first(item), get_last(item)),
        )
        for item in candidates
    ]
    kept = [c for c in scored if c.score >= threshold]
    kept = sorted(kept, key=lambda c: c.score, reverse=True)
    return kept[:max(max_results, 0)]

"""Greedy one-to-one matching of source events and riders to database records."""

import logging
import re
from collections import Counter

from reconcile import DbEvent, DbResult, EventMatchResult, ParsedEvent, ParsedRiderResult, RiderMatch
from reconcile.ranking import find_fuzzy_name_matches
from reconcile.scoring import similarity_score

log = logging.getLogger(__name__)

# Date must match exactly; distance may differ by rounding/unit noise
EVENT_DISTANCE_TOLERANCE_KM = 10
EVENT_NAME_MATCH_THRESHOLD = 0.6
EVENT_NAME_CONTAINMENT_SCORE = 0.9
RIDER_MATCH_THRESHOLD = 0.85

_NON_ALNUM_RE = re.compile(r'[^a-z0-9]')


def event_name_similarity(name1: str, name2: str) -> float:
    """Similarity between two event names (0.0 – 1.0).

    Exact match after normalization scores 1.0, containment 0.9, anything
    else falls back to edit distance. The containment shortcut can overmatch
    very short names ("200" is contained in many route names), and an empty
    name is contained in every name.
    """
    n1 = _NON_ALNUM_RE.sub('', name1.lower())
    n2 = _NON_ALNUM_RE.sub('', name2.lower())

    if n1 == n2:
        return 1.0
    if n1 in n2 or n2 in n1:
        return EVENT_NAME_CONTAINMENT_SCORE
    return similarity_score(n1, n2)


def _find_best_db_event(
    source: ParsedEvent,
    db_events: list[DbEvent],
    claimed: set[int],
) -> tuple[int, float] | None:
    """Return (index, score) of the best unclaimed DB event, if any qualifies."""
    best: tuple[int, float] | None = None

    for idx, db_event in enumerate(db_events):
        if idx in claimed:
            continue
        if source.date != db_event.date:
            continue
        if abs(source.distance_km - db_event.distance_km) > EVENT_DISTANCE_TOLERANCE_KM:
            continue

        score = event_name_similarity(source.name, db_event.name)
        if score < EVENT_NAME_MATCH_THRESHOLD:
            continue
        # Strictly greater: the first-listed DB event wins ties
        if best is None or score > best[1]:
            best = (idx, score)

    return best


def match_events(
    source_events: list[ParsedEvent],
    db_events: list[DbEvent],
) -> list[EventMatchResult]:
    """Match source events to database events.

    Events are matched by exact date, distance within
    ``EVENT_DISTANCE_TOLERANCE_KM`` and name similarity of at least
    ``EVENT_NAME_MATCH_THRESHOLD``. Source events are processed in input
    order and each DB event can be claimed only once. This is greedy, not a
    globally optimal assignment.

    Args:
        source_events: Events extracted from the HTML source.
        db_events: Events from the database.

    Returns:
        One EventMatchResult per source event, in input order.
    """
    claimed: set[int] = set()
    results: list[EventMatchResult] = []

    for source in source_events:
        best = _find_best_db_event(source, db_events, claimed)
        if best is None:
            results.append(EventMatchResult(source_event=source, db_event=None, confidence=0.0))
            continue

        idx, score = best
        claimed.add(idx)
        results.append(EventMatchResult(
            source_event=source,
            db_event=db_events[idx],
            confidence=score,
        ))

    log.info(
        "Event matching: %d of %d source events matched (%d DB events)",
        len(claimed), len(source_events), len(db_events),
    )
    return results


def match_riders(
    source_riders: list[ParsedRiderResult],
    db_results: list[DbResult],
) -> list[RiderMatch]:
    """Match source riders to the results of an already matched event.

    Each source rider, in input order, takes the best unclaimed DB result
    scoring at least ``RIDER_MATCH_THRESHOLD``.

    Args:
        source_riders: Riders extracted from the HTML source.
        db_results: Result rows of the matched database event.

    Returns:
        One RiderMatch per source rider, in input order.
    """
    claimed: set[int] = set()
    results: list[RiderMatch] = []

    for rider in source_riders:
        available = [(idx, r) for idx, r in enumerate(db_results) if idx not in claimed]
        matches = find_fuzzy_name_matches(
            rider.first_name,
            rider.last_name,
            available,
            lambda pair: pair[1].rider_first_name,
            lambda pair: pair[1].rider_last_name,
            threshold=RIDER_MATCH_THRESHOLD,
            max_results=1,
        )

        if matches:
            idx, db_result = matches[0].item
            claimed.add(idx)
            results.append(RiderMatch(
                source_rider=rider,
                db_result=db_result,
                confidence=matches[0].score,
            ))
        else:
            results.append(RiderMatch(source_rider=rider, db_result=None, confidence=0.0))

    log.debug(
        "Rider matching: %d of %d source riders matched (%d DB results)",
        len(claimed), len(source_riders), len(db_results),
    )
    return results


def _unclaimed(claimed_items: list, records: list) -> list:
    """Drop one occurrence of every claimed record, keeping input order."""
    remaining = Counter(id(item) for item in claimed_items)
    unclaimed = []
    for record in records:
        if remaining[id(record)] > 0:
            remaining[id(record)] -= 1
            continue
        unclaimed.append(record)
    return unclaimed


def unmatched_db_results(
    rider_matches: list[RiderMatch],
    db_results: list[DbResult],
) -> list[DbResult]:
    """Return DB results not claimed by any source rider, in input order."""
    return _unclaimed([m.db_result for m in rider_matches if m.db_result is not None], db_results)


def unmatched_db_events(
    event_matches: list[EventMatchResult],
    db_events: list[DbEvent],
) -> list[DbEvent]:
    """Return DB events not claimed by any source event, in input order."""
    return _unclaimed([m.db_event for m in event_matches if m.db_event is not None], db_events)

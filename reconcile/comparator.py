"""Discrepancy classification between source pages and database records."""

import logging
import re
from typing import Optional

from reconcile import DbEvent, DbResult, Discrepancy, EventMatch, ParsedEvent, RiderMatch
from reconcile.matching import match_events, match_riders, unmatched_db_events, unmatched_db_results

log = logging.getLogger(__name__)

_TIME_RE = re.compile(r'^(\d+):(\d{2})$')
_STATUSES = ('finished', 'dnf', 'dns')
_NO_TIME = 'no time'


def normalize_time(value: str) -> str:
    """Normalize ``HH:MM`` to ``H:MM`` (no leading zero in hours).

    Values not in hours:minutes form are only stripped.
    """
    value = value.strip()
    match = _TIME_RE.match(value)
    if match:
        return f"{int(match.group(1))}:{match.group(2)}"
    return value


def times_match(source_time: Optional[str], db_time: Optional[str]) -> bool:
    """Check whether two finish times are equal after normalization.

    Both absent counts as equal, exactly one absent as a mismatch.
    """
    if not source_time and not db_time:
        return True
    if not source_time or not db_time:
        return False
    return normalize_time(source_time) == normalize_time(db_time)


def statuses_match(source_status: Optional[str], db_status: str) -> bool:
    """Case-insensitive exact comparison on finished/dnf/dns.

    A source without a status has nothing to contradict: it matches any DB
    status, including ``finished`` for a rider listed with a time.
    """
    if source_status is None:
        return True
    normalized = db_status.strip().lower()
    return source_status in _STATUSES and source_status == normalized


def _db_full_name(result: DbResult) -> str:
    return f"{result.rider_first_name} {result.rider_last_name}".strip()


def _rider_discrepancies(match: RiderMatch) -> list[Discrepancy]:
    """Classify the differences for one source rider."""
    rider = match.source_rider
    result = match.db_result

    if result is None:
        return [Discrepancy(
            type='missing_in_db',
            severity='error',
            description='Rider not found in database',
            source_value=f"{rider.full_name} - {rider.time or rider.status or _NO_TIME}",
            rider_name=rider.full_name,
        )]

    found: list[Discrepancy] = []

    if not times_match(rider.time, result.time):
        found.append(Discrepancy(
            type='time_mismatch',
            severity='warning',
            description='Time mismatch',
            source_value=rider.time or _NO_TIME,
            db_value=result.time or _NO_TIME,
            rider_name=rider.full_name,
        ))

    if not statuses_match(rider.status, result.status):
        found.append(Discrepancy(
            type='status_mismatch',
            severity='warning',
            description='Status mismatch',
            source_value=rider.status,
            db_value=result.status,
            rider_name=rider.full_name,
        ))

    if match.confidence < 1.0:
        found.append(Discrepancy(
            type='name_variation',
            severity='info',
            description=f"Name variation ({round(match.confidence * 100)}% match)",
            source_value=rider.full_name,
            db_value=_db_full_name(result),
            rider_name=rider.full_name,
        ))

    return found


def _compare_event(source: ParsedEvent, db_event: DbEvent) -> list[Discrepancy]:
    """Compare the riders of a matched event pair."""
    rider_matches = match_riders(source.riders, db_event.results)

    discrepancies: list[Discrepancy] = []
    for rider_match in rider_matches:
        discrepancies.extend(_rider_discrepancies(rider_match))

    for result in unmatched_db_results(rider_matches, db_event.results):
        name = _db_full_name(result)
        discrepancies.append(Discrepancy(
            type='missing_in_html',
            severity='warning',
            description='Rider in DB but not found in HTML',
            db_value=f"{name} - {result.time or result.status}",
            rider_name=name,
        ))

    return discrepancies


def _sort_date(match: EventMatch) -> str:
    if match.source_event.date:
        return match.source_event.date
    return match.db_event.date if match.db_event else ''


def compare_data(
    source_events: list[ParsedEvent],
    db_events: list[DbEvent],
) -> list[EventMatch]:
    """Compare source events and results with database events and results.

    Every source event yields one EventMatch; every DB event no source event
    claimed yields a synthetic EventMatch with an empty source shell.
    Ambiguity never raises, it is reported as discrepancies.

    Args:
        source_events: Events extracted from the HTML source.
        db_events: Events from the database.

    Returns:
        EventMatch list ordered by ascending ISO date.
    """
    event_matches = match_events(source_events, db_events)
    results: list[EventMatch] = []

    for event_match in event_matches:
        source = event_match.source_event
        db_event = event_match.db_event

        if db_event is None:
            results.append(EventMatch(
                source_event=source,
                db_event=None,
                match_confidence=0.0,
                discrepancies=[Discrepancy(
                    type='event_missing_in_db',
                    severity='error',
                    description='Event not found in database',
                    source_value=f"{source.name} on {source.date} ({len(source.riders)} riders)",
                )],
            ))
            continue

        results.append(EventMatch(
            source_event=source,
            db_event=db_event,
            match_confidence=event_match.confidence,
            discrepancies=_compare_event(source, db_event),
        ))

    for db_event in unmatched_db_events(event_matches, db_events):
        shell = ParsedEvent(
            date=db_event.date,
            name=db_event.name,
            distance_km=db_event.distance_km,
            riders=[],
        )
        results.append(EventMatch(
            source_event=shell,
            db_event=db_event,
            match_confidence=0.0,
            discrepancies=[Discrepancy(
                type='event_missing_in_html',
                severity='warning',
                description='Event in DB but not found in HTML source',
                db_value=f"{db_event.name} on {db_event.date} ({len(db_event.results)} results)",
            )],
        ))

    results.sort(key=_sort_date)

    log.info(
        "Comparison finished: %d events, %d discrepancies",
        len(results), sum(len(r.discrepancies) for r in results),
    )
    return results

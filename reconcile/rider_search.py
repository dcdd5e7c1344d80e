"""Registration-time search for returning riders without an email on file.

Historical rider records often have no email address, so a returning rider
registering with an email gets no exact match. This search proposes
name-based candidates; the registrant confirms or rejects them, nothing is
merged automatically.
"""

import logging
from typing import Optional, Protocol

from reconcile import RiderMatchCandidate
from reconcile.errors import DataStoreError
from reconcile.nicknames import name_variants
from reconcile.ranking import find_fuzzy_name_matches
from reconcile.store import DEFAULT_CANDIDATE_LIMIT, RiderRecord

log = logging.getLogger(__name__)

CANDIDATE_THRESHOLD = 0.4
MAX_CANDIDATES = 10


class RiderStore(Protocol):
    def find_riders_without_email(
        self, first_name_variants: list[str], limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> list[RiderRecord]:
        ...


def _participation_stats(record: RiderRecord) -> tuple[Optional[int], int]:
    """Earliest season on record and total number of result rows."""
    known = [s for s in record.seasons if s is not None]
    return (min(known) if known else None), len(record.seasons)


def search_rider_candidates(
    first_name: str,
    last_name: str,
    store: RiderStore,
) -> list[RiderMatchCandidate]:
    """Search for existing riders that may be the registrant.

    The first name is expanded into its nickname variants to pre-filter the
    store (riders without email only), then candidates are ranked with a
    looser threshold than event matching since a human reviews them.

    Args:
        first_name: First name from the registration form.
        last_name: Last name from the registration form.
        store: Rider/result store.

    Returns:
        Up to ``MAX_CANDIDATES`` candidates, best first. Empty when the
        query has no name text or the store query fails.
    """
    first = first_name.strip()
    last = last_name.strip()
    if not first and not last:
        return []

    # An empty first name matches every rider, bounded by the store limit
    variants = name_variants(first) if first else ['']
    try:
        records = store.find_riders_without_email(variants, limit=DEFAULT_CANDIDATE_LIMIT)
    except DataStoreError as exc:
        log.error("Rider candidate search failed for %s %s: %s", first, last, exc)
        return []

    if not records:
        return []

    matches = find_fuzzy_name_matches(
        first,
        last,
        records,
        lambda r: r.first_name,
        lambda r: r.last_name,
        threshold=CANDIDATE_THRESHOLD,
        max_results=MAX_CANDIDATES,
    )

    candidates: list[RiderMatchCandidate] = []
    for match in matches:
        record = match.item
        first_season, total = _participation_stats(record)
        candidates.append(RiderMatchCandidate(
            id=record.id,
            first_name=record.first_name,
            last_name=record.last_name,
            full_name=record.full_name or f"{record.first_name} {record.last_name}".strip(),
            first_season_seen=first_season,
            total_participations=total,
        ))

    log.info("Rider candidate search: %d candidates for %s %s", len(candidates), first, last)
    return candidates

"""Core module for rider-reconcile."""

from dataclasses import dataclass, field
from typing import Generic, Literal, Optional, TypeVar

T = TypeVar('T')

RiderStatus = Literal['finished', 'dnf', 'dns']
Severity = Literal['error', 'warning', 'info']
DiscrepancyType = Literal[
    'missing_in_db',
    'missing_in_html',
    'time_mismatch',
    'status_mismatch',
    'name_variation',
    'event_missing_in_db',
    'event_missing_in_html',
]


@dataclass(frozen=True)
class ParsedRiderResult:
    """One rider line extracted from a legacy HTML results page."""

    full_name: str
    first_name: str
    last_name: str
    time: Optional[str] = None              # "H:MM", None for DNF/DNS
    status: Optional[RiderStatus] = None


@dataclass(frozen=True)
class ParsedEvent:
    """One event's worth of data extracted from an HTML page."""

    date: str                               # ISO date, e.g. "2024-04-15"
    name: str
    distance_km: float
    riders: list[ParsedRiderResult] = field(default_factory=list)


@dataclass(frozen=True)
class DbResult:
    """A result row from the system of record, joined with its rider."""

    rider_id: str
    rider_first_name: str
    rider_last_name: str
    time: Optional[str]
    status: str


@dataclass(frozen=True)
class DbEvent:
    """An event from the system of record with its results."""

    id: str
    date: str
    name: str
    distance_km: float
    results: list[DbResult] = field(default_factory=list)


@dataclass(frozen=True)
class ScoredCandidate(Generic[T]):
    """A ranked candidate with its name similarity (0.0 – 1.0)."""

    item: T
    score: float


@dataclass(frozen=True)
class EventMatchResult:
    """Outcome of the event matching pass for one source event."""

    source_event: ParsedEvent
    db_event: Optional[DbEvent]
    confidence: float


@dataclass(frozen=True)
class RiderMatch:
    """Outcome of the rider matching pass for one source rider."""

    source_rider: ParsedRiderResult
    db_result: Optional[DbResult]
    confidence: float


@dataclass
class Discrepancy:
    """A classified, severity-tagged difference between source and database."""

    type: DiscrepancyType
    severity: Severity
    description: str
    source_value: Optional[str] = None
    db_value: Optional[str] = None
    rider_name: Optional[str] = None


@dataclass
class EventMatch:
    """A source event, its database counterpart (if any) and what differs."""

    source_event: ParsedEvent
    db_event: Optional[DbEvent]
    match_confidence: float
    discrepancies: list[Discrepancy] = field(default_factory=list)


@dataclass(frozen=True)
class RiderMatchCandidate:
    """A possible existing rider for a registrant, for a human to confirm."""

    id: str
    first_name: str
    last_name: str
    full_name: str
    first_season_seen: Optional[int]
    total_participations: int


@dataclass
class ValidationSummary:
    """Counts reported at the top of a validation report."""

    events_in_source: int
    events_in_db: int
    events_matched: int
    riders_validated: int
    errors_found: int
    warnings_found: int
    infos_found: int


@dataclass
class ValidationReport:
    """Everything a report renderer needs for one chapter and year."""

    chapter: str
    year: int
    url: str
    fetched_at: str
    from_cache: bool
    summary: ValidationSummary
    events: list[EventMatch] = field(default_factory=list)

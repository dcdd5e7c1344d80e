"""SQLite access to the canonical results database."""

import logging
import re
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from reconcile import DbEvent, DbResult
from reconcile.errors import DataStoreError

log = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / 'schema.sql'
PERMANENT_CHAPTER = 'permanent'
DEFAULT_CANDIDATE_LIMIT = 100

_HMS_RE = re.compile(r'^(\d+):(\d{2}):(\d{2})$')
_WORDS_RE = re.compile(r'(\d+)\s*hours?\s*(?:(\d+)\s*minutes?)?', re.IGNORECASE)
_HM_RE = re.compile(r'^(\d+):(\d{2})$')

_EVENT_COLUMNS = 'e.id, e.name, e.event_date, e.distance_km'


@dataclass(frozen=True)
class RiderRecord:
    """A rider row with the seasons of all its result rows."""

    id: str
    first_name: str
    last_name: str
    full_name: Optional[str]
    seasons: list[Optional[int]] = field(default_factory=list)


def format_interval_to_time(interval: Optional[str]) -> Optional[str]:
    """Convert a stored interval to ``H:MM``.

    Handles ``HH:MM:SS``, ``X hours Y minutes`` and ``H:MM``. Anything else
    yields None.
    """
    if not interval:
        return None
    interval = interval.strip()

    match = _HMS_RE.match(interval)
    if match:
        return f"{int(match.group(1))}:{match.group(2)}"

    match = _WORDS_RE.search(interval)
    if match:
        minutes = int(match.group(2)) if match.group(2) else 0
        return f"{int(match.group(1))}:{minutes:02d}"

    match = _HM_RE.match(interval)
    if match:
        return f"{int(match.group(1))}:{match.group(2)}"

    return None


def _escape_like(value: str) -> str:
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def init_db(db_path: Path | str) -> None:
    """Create the tables if they don't exist. Safe to call multiple times."""
    schema_sql = SCHEMA_PATH.read_text()
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(schema_sql)
        conn.commit()
    finally:
        conn.close()


class ResultsStore:
    """Read access to events, results and riders."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        """Open a read connection; sqlite errors become DataStoreError."""
        try:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True)
        except sqlite3.Error as exc:
            raise DataStoreError(f"Cannot open database {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as exc:
            raise DataStoreError(f"Database query failed: {exc}") from exc
        finally:
            conn.close()

    def fetch_db_events(self, chapter: str, year: int) -> list[DbEvent]:
        """Fetch a chapter's events and results for one calendar year.

        ``permanent`` selects permanent events of every chapter.

        Raises:
            DataStoreError: Unknown chapter or a failed query.
        """
        start_date = f"{year}-01-01"
        end_date = f"{year}-12-31"

        with self._connect() as conn:
            if chapter == PERMANENT_CHAPTER:
                events = conn.execute(
                    f"SELECT {_EVENT_COLUMNS} FROM events e "
                    "WHERE e.event_type = 'permanent' AND e.event_date BETWEEN ? AND ? "
                    "ORDER BY e.event_date, e.rowid",
                    (start_date, end_date),
                ).fetchall()
            else:
                row = conn.execute('SELECT id FROM chapters WHERE slug = ?', (chapter,)).fetchone()
                if row is None:
                    raise DataStoreError(f"Chapter not found: {chapter}")
                events = conn.execute(
                    f"SELECT {_EVENT_COLUMNS} FROM events e "
                    "WHERE e.chapter_id = ? AND e.event_date BETWEEN ? AND ? "
                    "ORDER BY e.event_date, e.rowid",
                    (row['id'], start_date, end_date),
                ).fetchall()

            db_events = [
                DbEvent(
                    id=str(e['id']),
                    date=e['event_date'],
                    name=e['name'],
                    distance_km=float(e['distance_km']),
                    results=self._fetch_results(conn, e['id']),
                )
                for e in events
            ]

        log.info("%d DB events for %s %d", len(db_events), chapter, year)
        return db_events

    @staticmethod
    def _fetch_results(conn: sqlite3.Connection, event_id: str) -> list[DbResult]:
        # Inner join: results without a rider row are skipped
        rows = conn.execute(
            "SELECT r.finish_time, r.status, p.id AS rider_id, p.first_name, p.last_name "
            "FROM results r JOIN riders p ON p.id = r.rider_id "
            "WHERE r.event_id = ? ORDER BY r.rowid",
            (event_id,),
        ).fetchall()
        return [
            DbResult(
                rider_id=str(row['rider_id']),
                rider_first_name=row['first_name'] or '',
                rider_last_name=row['last_name'] or '',
                time=format_interval_to_time(row['finish_time']),
                status=row['status'],
            )
            for row in rows
        ]

    def find_riders_without_email(
        self,
        first_name_variants: list[str],
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> list[RiderRecord]:
        """Riders with no email whose first name contains any of the variants.

        Matching is case-insensitive. Each record carries the season of
        every result row of the rider.

        Raises:
            DataStoreError: On a failed query.
        """
        variants = list(first_name_variants)
        if not variants:
            return []

        name_filter = ' OR '.join(["lower(first_name) LIKE ? ESCAPE '\\'"] * len(variants))
        params = [f"%{_escape_like(v.lower())}%" for v in variants]

        with self._connect() as conn:
            riders = conn.execute(
                "SELECT id, first_name, last_name, full_name FROM riders "
                f"WHERE (email IS NULL OR email = '') AND ({name_filter}) "
                "ORDER BY rowid LIMIT ?",
                (*params, limit),
            ).fetchall()
            if not riders:
                return []

            ids = [r['id'] for r in riders]
            placeholders = ', '.join('?' * len(ids))
            seasons: dict[str, list[Optional[int]]] = {str(i): [] for i in ids}
            for row in conn.execute(
                f"SELECT rider_id, season FROM results WHERE rider_id IN ({placeholders})",
                ids,
            ):
                seasons[str(row['rider_id'])].append(row['season'])

        return [
            RiderRecord(
                id=str(r['id']),
                first_name=r['first_name'] or '',
                last_name=r['last_name'] or '',
                full_name=r['full_name'],
                seasons=seasons[str(r['id'])],
            )
            for r in riders
        ]

"""Shared test fixtures."""

import sqlite3
from pathlib import Path

import pytest

from reconcile.store import ResultsStore, init_db


def _seed(conn: sqlite3.Connection) -> None:
    conn.executemany(
        'INSERT INTO chapters (id, slug, name) VALUES (?, ?, ?)',
        [('c1', 'toronto', 'Toronto'), ('c2', 'ottawa', 'Ottawa')],
    )
    conn.executemany(
        'INSERT INTO riders (id, first_name, last_name, full_name, email) VALUES (?, ?, ?, ?, ?)',
        [
            ('r1', 'Robert', 'Smith', None, None),
            ('r2', 'Bob', 'Smyth', 'Bob Smyth', ''),
            ('r3', 'Robert', 'Smith', 'Robert Smith', 'rsmith@example.com'),
            ('r4', 'Jane', 'Doe', 'Jane Doe', None),
        ],
    )
    conn.executemany(
        'INSERT INTO events (id, chapter_id, name, event_date, distance_km, event_type) '
        'VALUES (?, ?, ?, ?, ?, ?)',
        [
            ('e2', 'c1', 'Summer 300', '2024-06-01', 300, 'brevet'),
            ('e1', 'c1', 'Spring 200', '2024-04-15', 200, 'brevet'),
            ('e3', 'c1', 'Old 200', '2023-05-01', 200, 'brevet'),
            ('e4', None, 'Perm 200', '2024-07-01', 200, 'permanent'),
            ('e5', 'c2', 'Ottawa 200', '2024-04-15', 200, 'brevet'),
        ],
    )
    conn.executemany(
        'INSERT INTO results (id, event_id, rider_id, finish_time, status, season) '
        'VALUES (?, ?, ?, ?, ?, ?)',
        [
            ('x1', 'e1', 'r1', '10:30:00', 'finished', 2018),
            ('x2', 'e1', None, '11:00:00', 'finished', 2024),
            ('x3', 'e1', 'r4', '9 hours 5 minutes', 'finished', 2024),
            ('x4', 'e3', 'r1', '12:00:00', 'finished', 2015),
            ('x5', 'e2', 'r2', None, 'DNF', None),
            ('x6', 'e4', 'r4', '08:45:00', 'finished', 2024),
        ],
    )


@pytest.fixture
def results_db(tmp_path) -> Path:
    """A seeded results database file."""
    db_path = tmp_path / 'results.db'
    init_db(db_path)
    conn = sqlite3.connect(db_path)
    try:
        _seed(conn)
        conn.commit()
    finally:
        conn.close()
    return db_path


@pytest.fixture
def store(results_db) -> ResultsStore:
    return ResultsStore(results_db)

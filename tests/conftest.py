import sqlite3

import pytest

from webflame.profile import Location, Mapping, Profile, Sample, ValueType


def make_sample(frames, *values):
    """Build a sample from root-first frame names."""
    return Sample(tuple(Location.of(name) for name in reversed(frames)), tuple(values))


@pytest.fixture
def cpu_alloc_profile():
    return Profile(
        sample_types=[ValueType("cpu", "nanoseconds"), ValueType("alloc", "bytes")],
        samples=[
            make_sample(["main", "foo"], 10, 100),
            make_sample(["main", "bar"], 5, 7),
            make_sample(["main", "foo"], 3, 1),
        ],
        mappings=[Mapping("/usr/local/bin/server")],
        time_nanos=0,
        duration_nanos=2_500_000_000,
    )


SPAN_SCHEMA = """
CREATE TABLE otel_spans (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  trace_id TEXT NOT NULL,
  span_id TEXT NOT NULL,
  parent_span_id TEXT,
  name TEXT NOT NULL,
  start_time INTEGER NOT NULL,
  end_time INTEGER NOT NULL,
  attributes TEXT NOT NULL,
  status_code INTEGER NOT NULL,
  events TEXT NOT NULL
);
"""


def write_spans(db_path, rows):
    """rows: (trace_id, span_id, parent_span_id, name, start_us, end_us, attributes_json)"""
    conn = sqlite3.connect(str(db_path))
    conn.execute(SPAN_SCHEMA)
    conn.executemany(
        """
        INSERT INTO otel_spans
          (trace_id, span_id, parent_span_id, name,
           start_time, end_time, attributes, status_code, events)
        VALUES (?, ?, ?, ?, ?, ?, ?, 0, '[]')
        """,
        rows,
    )
    conn.commit()
    conn.close()


@pytest.fixture
def span_db(tmp_path):
    db_path = tmp_path / "svc" / "telemetry.db"
    db_path.parent.mkdir()
    write_spans(db_path, [
        ("old", "o1", None, "cli_invocation", 1_000, 2_000, "{}"),
        ("t1", "a", None, "cli_invocation", 10_000, 20_000, "{}"),
        ("t1", "b", "a", "load", 11_000, 14_000, "{}"),
        ("t1", "c", "a", "httpx.request", 14_000, 16_000, '{"http.url": "https://x/1"}'),
        ("t1", "d", "a", "httpx.request", 16_000, 19_000, '{"http.url": "https://x/2"}'),
    ])
    return db_path

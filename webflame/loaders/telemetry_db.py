"""
telemetry_db.py

Reads spans from a cli-telemetry SQLite database and turns one trace into a
profile. Every span becomes a sample whose stack is the chain of its
ancestors' display names, with two series:

  wall   microseconds spent in the span itself (children excluded)
  calls  one per span
"""

import json
import logging
import os
import sqlite3

from ..errors import ProfileLoadError
from ..profile import Location, Mapping, Profile, Sample, ValueType

logger = logging.getLogger(__name__)

SAMPLE_TYPES = [ValueType("wall", "microseconds"), ValueType("calls", "count")]

# Attribute appended to repeated span names to tell them apart.
ATTRIBUTE_KEY_MAP = {
    "subprocess.run": "subprocess.command",
    "httpx.request": "http.url",
}


def default_base_dir() -> str:
    xdg_data_home = os.environ.get("XDG_DATA_HOME", os.path.expanduser("~/.local/share"))
    return os.path.join(xdg_data_home, "cli-telemetry")


def find_databases(base_dir: str = None):
    """Return (service, path) for every <service>/telemetry.db under base_dir."""
    base_dir = base_dir or default_base_dir()
    if not os.path.isdir(base_dir):
        return []
    services = sorted(
        d for d in os.listdir(base_dir)
        if os.path.isdir(os.path.join(base_dir, d))
    )
    dbs = []
    for service in services:
        db_path = os.path.join(base_dir, service, "telemetry.db")
        if os.path.isfile(db_path):
            dbs.append((service, db_path))
    return dbs


def _connect(db_path: str):
    if not os.path.isfile(db_path):
        raise ProfileLoadError(f"telemetry database not found: {db_path}")
    try:
        return sqlite3.connect(db_path)
    except sqlite3.Error as exc:
        raise ProfileLoadError(f"cannot open {db_path}: {exc}") from exc


def list_traces(db_path: str, limit: int = None):
    """Return (trace_id, span_count, first_start_us) rows, newest first."""
    conn = _connect(db_path)
    try:
        cur = conn.cursor()
        query = """
            SELECT
              trace_id,
              COUNT(*)           AS span_count,
              MIN(start_time)    AS first_start_us
            FROM otel_spans
            GROUP BY trace_id
            ORDER BY first_start_us DESC
        """
        if limit:
            cur.execute(query + " LIMIT ?", (limit,))
        else:
            cur.execute(query)
        return cur.fetchall()
    except sqlite3.Error as exc:
        raise ProfileLoadError(f"cannot read traces from {db_path}: {exc}") from exc
    finally:
        conn.close()


def _display_suffix(raw_name: str, attrs_json: str):
    attr_key = ATTRIBUTE_KEY_MAP.get(raw_name)
    if not attr_key:
        return None
    try:
        attrs = json.loads(attrs_json)
    except (TypeError, ValueError):
        return None
    if not isinstance(attrs, dict) or attr_key not in attrs:
        return None
    val = attrs[attr_key]
    if isinstance(val, (list, tuple)):
        return " ".join(str(x) for x in val)
    return str(val)


def load_spans(db_path: str, trace_id: str):
    """
    Load spans for a given trace_id, annotating display names to dedupe and
    append a key attribute value for context.
    """
    conn = _connect(db_path)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT span_id, parent_span_id, name, start_time, end_time, attributes
              FROM otel_spans
             WHERE trace_id = ?
          ORDER BY start_time
        """,
            (trace_id,),
        )
        rows = cur.fetchall()
    except sqlite3.Error as exc:
        raise ProfileLoadError(f"cannot read spans from {db_path}: {exc}") from exc
    finally:
        conn.close()

    raw_counts = {}
    for _sid, _pid, raw_name, _s, _e, _attrs in rows:
        raw_counts[raw_name] = raw_counts.get(raw_name, 0) + 1
    seen_counts = {}
    spans = {}
    for span_id, parent_id, raw_name, start_us, end_us, attrs_json in rows:
        idx = seen_counts.get(raw_name, 0) + 1
        seen_counts[raw_name] = idx
        if raw_counts[raw_name] > 1:
            suffix = _display_suffix(raw_name, attrs_json)
            display_name = f"{raw_name} {suffix}" if suffix else f"{raw_name} [{idx}]"
        else:
            display_name = raw_name
        spans[span_id] = {
            "parent": parent_id,
            "name": display_name,
            "start": start_us,
            "end": end_us,
        }
    return spans


def build_path(span_id: str, spans: dict):
    """Names from the outermost ancestor down to span_id."""
    path = []
    seen = set()
    current_id = span_id
    while current_id in spans and current_id not in seen:
        seen.add(current_id)
        current = spans[current_id]
        path.append(current["name"])
        current_id = current["parent"]
    return list(reversed(path))


def spans_to_profile(spans: dict, source: str = "") -> Profile:
    child_time = {}
    for info in spans.values():
        parent = info["parent"]
        if parent in spans:
            duration = max(info["end"] - info["start"], 0)
            child_time[parent] = child_time.get(parent, 0) + duration

    samples = []
    for span_id, info in spans.items():
        duration = max(info["end"] - info["start"], 0)
        self_time = max(duration - child_time.get(span_id, 0), 0)
        path = build_path(span_id, spans)
        locations = tuple(Location.of(name) for name in reversed(path))
        samples.append(Sample(locations, (self_time, 1)))

    time_nanos = duration_nanos = 0
    if spans:
        first = min(info["start"] for info in spans.values())
        last = max(info["end"] for info in spans.values())
        time_nanos = first * 1_000
        duration_nanos = max(last - first, 0) * 1_000
    mappings = [Mapping(source)] if source else []
    return Profile(list(SAMPLE_TYPES), samples, mappings, time_nanos, duration_nanos)


def load_profile(db_path: str, trace_id: str = None) -> Profile:
    """Load one trace as a profile; the most recent trace if none is given."""
    if trace_id is None:
        traces = list_traces(db_path, limit=1)
        if not traces:
            raise ProfileLoadError(f"no traces found in {db_path}")
        trace_id = traces[0][0]
    spans = load_spans(db_path, trace_id)
    if not spans:
        raise ProfileLoadError(f"no spans found for trace {trace_id!r}")
    logger.info("loaded %d spans of trace %s from %s", len(spans), trace_id, db_path)
    return spans_to_profile(spans, source=db_path)

"""
folded.py

Read FlameGraph-style folded stacks into a profile:

    main;handler;parse 120
"""

import logging
import os

from ..errors import ProfileLoadError
from ..profile import Location, Mapping, Profile, Sample, ValueType

logger = logging.getLogger(__name__)

SAMPLE_TYPE = ValueType("samples", "count")


def parse_line(line: str):
    """Return (frames, count) for a folded line, or None if it is not one."""
    line = line.strip()
    if not line or " " not in line:
        return None
    stack_part, count_part = line.rsplit(" ", 1)
    try:
        count = int(count_part)
    except ValueError:
        return None
    frames = [frame for frame in stack_part.split(";") if frame]
    return frames, count


def load_folded(lines, source: str = "") -> Profile:
    samples = []
    for lineno, line in enumerate(lines, start=1):
        parsed = parse_line(line)
        if parsed is None:
            if line.strip():
                logger.debug("skipping malformed folded line %d: %r", lineno, line)
            continue
        frames, count = parsed
        # Folded stacks are written root first; samples keep the leaf first.
        locations = tuple(Location.of(frame) for frame in reversed(frames))
        samples.append(Sample(locations, (count,)))
    logger.info("loaded %d folded stacks from %s", len(samples), source or "input")
    mappings = [Mapping(source)] if source else []
    return Profile([SAMPLE_TYPE], samples, mappings)


def load_folded_file(path: str) -> Profile:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return load_folded(f, source=os.path.abspath(path))
    except OSError as exc:
        raise ProfileLoadError(f"cannot read {path}: {exc}") from exc

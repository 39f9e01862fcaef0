"""
html.py

Bind a profile to the flame graph page: pick the value series, build and
serialize the call tree, and hand it to the Jinja2 template together with
the legend.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from ..errors import UnknownSampleTypeError
from ..flamegraph import build_profile_tree, to_json

logger = logging.getLogger(__name__)

_env = Environment(
    loader=PackageLoader("webflame", "templates"),
    autoescape=select_autoescape(["html"]),
)


@dataclass
class FlameGraphConfig:
    """Settings the page binding reads instead of global UI state."""

    sample_index: Optional[str] = None
    base_url: str = "/flamegraph"


@dataclass
class FlameGraphPage:
    title: str
    base_url: str
    legend: List[str]
    unit: str
    sample_type: str
    sample_types: List[str]
    data: str
    errors: List[str] = field(default_factory=list)


def select_sample_index(profile, requested: Optional[str], config: FlameGraphConfig, errors=None) -> int:
    """
    Resolve the series to draw: the request parameter first, then the
    configured default, then the first series of the profile.
    """
    for source, name in (("requested", requested), ("configured", config.sample_index)):
        if not name:
            continue
        try:
            return profile.sample_index_by_name(name)
        except UnknownSampleTypeError as exc:
            logger.warning("ignoring %s sample type: %s", source, exc)
            if errors is not None:
                errors.append(str(exc))
    return 0


def format_time(time_nanos: int, tz=None) -> str:
    """Format like "Jan 2, 2006 at 3:04pm (MST)"."""
    dt = datetime.fromtimestamp(time_nanos / 1e9, tz=timezone.utc).astimezone(tz)
    hour = dt.hour % 12 or 12
    ampm = "am" if dt.hour < 12 else "pm"
    return f"{dt:%b} {dt.day}, {dt.year} at {hour}:{dt:%M}{ampm} ({dt.tzname()})"


def format_duration(duration_nanos: int) -> str:
    if duration_nanos > 1_000_000_000:
        return f"{duration_nanos / 1_000_000_000:f} s"
    return f"{duration_nanos} ns"


def profile_file(profile) -> str:
    if profile.mappings and profile.mappings[0].file:
        return os.path.basename(profile.mappings[0].file)
    return "unknown"


def build_legend(profile, index: int, tz=None) -> List[str]:
    sample_type = profile.sample_types[index]
    legend_unit = "seconds" if sample_type.unit == "nanoseconds" else sample_type.unit
    return [
        "File: " + profile_file(profile),
        "Type: " + sample_type.type,
        "Unit: " + legend_unit,
        "Time: " + format_time(profile.time_nanos, tz),
        "Duration: " + format_duration(profile.duration_nanos),
    ]


def render_flamegraph(profile, requested: Optional[str] = None, config: FlameGraphConfig = None, tz=None) -> FlameGraphPage:
    """
    Build the page payload for one request.

    Raises SerializationError if the tree cannot be encoded; no partial
    page is produced.
    """
    config = config or FlameGraphConfig()
    errors = []
    index = select_sample_index(profile, requested, config, errors)
    root = build_profile_tree(profile, index)
    logger.debug(
        "built flame graph for %s: %d samples, total %s",
        profile.sample_types[index].type, len(profile.samples), root.value,
    )
    data = to_json(root)
    sample_type = profile.sample_types[index]
    return FlameGraphPage(
        title=profile_file(profile),
        base_url=config.base_url,
        legend=build_legend(profile, index, tz),
        unit=sample_type.unit,
        sample_type=sample_type.type,
        sample_types=profile.sample_type_names(),
        data=data,
        errors=errors,
    )


def render_page(page: FlameGraphPage) -> str:
    return _env.get_template("flamegraph.html").render(page=page)

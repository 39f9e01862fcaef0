"""
Profile loaders for the supported input formats.
"""

from ..errors import ProfileLoadError
from . import folded, telemetry_db


def load(path: str, trace_id: str = None, stdin=None):
    """
    Load a profile from a telemetry database (``.db``) or a folded stacks
    file. ``-`` reads folded stacks from `stdin`.
    """
    if path == "-":
        if stdin is None:
            raise ProfileLoadError("no input stream to read folded stacks from")
        return folded.load_folded(stdin, source="")
    if path.endswith(".db"):
        return telemetry_db.load_profile(path, trace_id)
    return folded.load_folded_file(path)

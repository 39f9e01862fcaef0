"""
profile.py

Decoded profile model: samples, locations, lines, functions, sample types
and mappings, shaped like a pprof profile.

Sample locations are stored leaf first (the innermost frame at index 0) and
the lines of a location list the innermost inlined function first.
"""

from dataclasses import dataclass, field
from typing import List

from .errors import UnknownSampleTypeError


@dataclass(frozen=True)
class ValueType:
    type: str
    unit: str


@dataclass(frozen=True)
class Function:
    name: str
    filename: str = ""


@dataclass(frozen=True)
class Line:
    function: Function
    line: int = 0


@dataclass(frozen=True)
class Location:
    lines: tuple = ()

    @classmethod
    def of(cls, *names: str) -> "Location":
        """Build a location from function names, innermost inlined first."""
        return cls(tuple(Line(Function(name)) for name in names))


@dataclass(frozen=True)
class Mapping:
    file: str = ""


@dataclass(frozen=True)
class Sample:
    locations: tuple
    values: tuple

    def stack(self) -> List[str]:
        """Function names, leaf first, with inlined functions flattened."""
        names = []
        for location in self.locations:
            for line in location.lines:
                names.append(line.function.name)
        return names

    def frames(self) -> List[str]:
        """Function names ordered from the program entry to the leaf."""
        return list(reversed(self.stack()))


@dataclass
class Profile:
    sample_types: List[ValueType]
    samples: List[Sample] = field(default_factory=list)
    mappings: List[Mapping] = field(default_factory=list)
    time_nanos: int = 0
    duration_nanos: int = 0

    def sample_type_names(self) -> List[str]:
        return [st.type for st in self.sample_types]

    def sample_index_by_name(self, name: str) -> int:
        """
        Resolve a sample type to its index in the value vectors.

        An integer string selects that index directly. Otherwise the name is
        matched against the sample types, also accepting the legacy
        ``inuse_`` prefix.
        """
        try:
            index = int(name)
        except ValueError:
            pass
        else:
            if index < 0 or index >= len(self.sample_types):
                raise UnknownSampleTypeError(
                    f"sample_index {name} is outside the range "
                    f"[0..{len(self.sample_types) - 1}]"
                )
            return index

        no_inuse = name[len("inuse_"):] if name.startswith("inuse_") else name
        for index, sample_type in enumerate(self.sample_types):
            if sample_type.type in (name, no_inuse):
                return index
        raise UnknownSampleTypeError(
            f"sample_index {name!r} must be one of: {self.sample_type_names()}"
        )

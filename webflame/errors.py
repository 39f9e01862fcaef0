"""
Exception types raised by webflame.
"""


class WebflameError(Exception):
    """Base class for all webflame errors."""


class SerializationError(WebflameError):
    """A flame graph tree could not be encoded for the page."""


class ProfileLoadError(WebflameError):
    """A profile source could not be read."""


class UnknownSampleTypeError(WebflameError, LookupError):
    """A requested sample type does not match any series of the profile."""

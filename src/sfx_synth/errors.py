"""Exception types raised by the synthesis engine."""

from __future__ import annotations


class SynthError(Exception):
    """Base class for engine failures."""


class RenderError(SynthError, RuntimeError):
    """The signal chain could not be built or executed.

    Raised instead of returning a partial buffer.
    """


class EncodingError(SynthError, ValueError):
    """Malformed harmonics or parameter data met while encoding."""

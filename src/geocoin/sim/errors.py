from __future__ import annotations


class GeocoinError(ValueError):
    """Base class for state errors raised by the geocoin core."""


class CorruptStateError(GeocoinError):
    """A stored cache memento or save payload could not be decoded."""


class InvalidCellError(GeocoinError):
    """Cell coordinates or a cell key are malformed."""

"""Error types raised by the core record, store and rendering code."""

from __future__ import annotations


class WikiTreeLifelinesError(Exception):
    """Base class for all errors raised by this package."""


class InvalidRecord(WikiTreeLifelinesError):
    """A record is missing its identity or cannot be merged."""


class ConflictUnresolved(WikiTreeLifelinesError):
    """A merge conflict could not be decided."""

    def __init__(self, person_id: str, field: str, old: object, new: object):
        self.person_id = person_id
        self.field = field
        self.old = old
        self.new = new
        super().__init__(
            f"Conflict on {field!r} for {person_id} unresolved: {old!r} vs {new!r}"
        )


class DateFormatFault(WikiTreeLifelinesError):
    """A date value cannot be rendered as a GEDCOM date."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Malformed date: {value!r}")


class MalformedStoreLiteral(WikiTreeLifelinesError):
    """A persisted store literal cannot be loaded."""

"""
Crowd: a keyed collection of Persons.

Persons are keyed by their WikiTree Id and can also be looked up by their
simplified Name (e.g. 'Laurie474'). A Crowd only grows: caching a person
that is already present merges the new values into the stored record.

A Crowd can be saved as a JSON literal (a list of flat records) and loaded
back into an equivalent Crowd.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, Mapping

from wikitree_lifelines.core.errors import InvalidRecord, MalformedStoreLiteral
from wikitree_lifelines.core.merge import ConflictDecider, MergeResolver
from wikitree_lifelines.core.models import Person

if TYPE_CHECKING:
    from wikitree_lifelines.core.families import Family

logger = logging.getLogger(__name__)


class Crowd:
    """
    A store of Persons keyed by Id, with a secondary index on the
    simplified Name.

    Not safe for concurrent mutation; callers serialize calls to cache().
    """

    def __init__(
        self,
        persons: Mapping[str, Person] | None = None,
        resolver: MergeResolver | None = None,
        decider: ConflictDecider | None = None,
    ):
        self.resolver = resolver or MergeResolver(decider)
        self.persons: dict[str, Person] = {}
        self.simple: dict[str, Person] = {}
        self.seeds: list[str] = []

        # Family map, computed once by FamilyGrouper
        self._families: dict[str, Family] | None = None
        self._families_childless = False

        for person in (persons or {}).values():
            if not isinstance(person, Person):
                raise InvalidRecord(f"Non-person found in crowd: {person!r}")
            self._insert(person)

    def _insert(self, person: Person) -> None:
        self.persons[person.id] = person
        self.simple[person.simple] = person

    def cache(self, record: Mapping[str, Any] | Person) -> None:
        """Store record by Id, or merge it into the person already stored."""
        person = Person.from_raw(record)
        old = self.persons.get(person.id)
        if old is None:
            self._insert(person)
            logger.debug("Cached %s (%s)", person.id, person.simple)
        elif old is not person:
            self.resolver.merge(old, person)

    def get(self, key: str | int, default: Person | None = None) -> Person | None:
        """Look up by Id, then by simplified Name."""
        key = str(key)
        return self.persons.get(key) or self.simple.get(key) or default

    def __getitem__(self, key: str | int) -> Person:
        person = self.get(key)
        if person is None:
            raise KeyError(key)
        return person

    def __contains__(self, key: object) -> bool:
        return self.get(str(key)) is not None

    def __iter__(self) -> Iterator[Person]:
        return iter(list(self.persons.values()))

    def __len__(self) -> int:
        return len(self.persons)

    def __repr__(self) -> str:
        return f"Crowd({len(self)} persons)"

    def father(self, person: Person) -> Person | None:
        """The person's father, if stored."""
        return self.get(person.father) if person.father else None

    def mother(self, person: Person) -> Person | None:
        """The person's mother, if stored."""
        return self.get(person.mother) if person.mother else None

    def find(self, target: str, **fields: str) -> dict[str, Person]:
        """
        Persons whose refname matches the regex 'target', further
        filtered on field regexes, keyed by simplified Name.

        Use anchors for equality, e.g. find("Laurie", first_name="^Dirk$").
        """
        found: dict[str, Person] = {}
        for person in self:
            if not re.search(target, person.refname()):
                continue
            matches = True
            for field, pattern in fields.items():
                value = getattr(person, field, None)
                if not (isinstance(value, str) and re.search(pattern, value)):
                    matches = False
                    break
            if matches:
                found[person.simple] = person
        return found

    def families(self, childless: bool = False) -> dict[str, Family]:
        """Family map of this crowd; see FamilyGrouper for the caching caveat."""
        from wikitree_lifelines.core.families import FamilyGrouper

        return FamilyGrouper().group(self, synthesize_childless=childless)

    # =========================================
    # Persistence
    # =========================================

    def to_literal(self) -> str:
        """JSON literal: a list of flat records keyed by WikiTree field names."""
        return json.dumps(
            [person.to_literal() for person in self],
            indent=2,
            ensure_ascii=False,
        )

    @classmethod
    def from_literal(cls, text: str, **kwargs) -> Crowd:
        """Build a Crowd from a literal written by to_literal()."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedStoreLiteral(f"Failed to decode crowd literal: {e}") from e
        if not isinstance(data, list):
            raise MalformedStoreLiteral("Crowd literal must be a list of records")

        crowd = cls(**kwargs)
        for index, entry in enumerate(data):
            if not isinstance(entry, dict):
                raise MalformedStoreLiteral(f"Entry {index} is not a record")
            for field, value in entry.items():
                if not _is_flat(value):
                    raise MalformedStoreLiteral(
                        f"Entry {index}: can't handle field {field!r} of type "
                        f"{type(value).__name__}"
                    )
            if entry.get("Id") in (None, ""):
                raise MalformedStoreLiteral(f"Entry {index}: Person with no Id")
            try:
                crowd.cache(entry)
            except InvalidRecord as e:
                raise MalformedStoreLiteral(f"Entry {index}: {e}") from e
        return crowd

    def save(self, path: str | Path) -> None:
        """Write the crowd literal to path."""
        path = Path(path)
        path.write_text(self.to_literal(), encoding="utf-8")
        logger.info("Saved %d persons to %s", len(self), path)

    @classmethod
    def load(cls, path: str | Path, **kwargs) -> Crowd:
        """Read a crowd literal from path."""
        path = Path(path)
        return cls.from_literal(path.read_text(encoding="utf-8"), **kwargs)


def _is_flat(value: Any) -> bool:
    if isinstance(value, list):
        return all(_is_scalar(v) for v in value)
    return _is_scalar(value)


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))

"""
Ahnentafel ancestor trees.

The subject is number 1; the father of number k is 2k and the mother 2k+1.
WikiTree's getAncestors returns a flat list of profiles, each with its own
Father and Mother ids; the tree is rebuilt from that list generation by
generation.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Protocol

from wikitree_lifelines.core.crowd import Crowd
from wikitree_lifelines.core.errors import InvalidRecord
from wikitree_lifelines.core.models import Person

logger = logging.getLogger(__name__)


class AncestorFetcher(Protocol):
    """Fetches the flat ancestor list of one profile."""

    async def fetch_ancestors(self, key: str, depth: int) -> list[dict[str, Any]]: ...


class AncestorArray:
    """
    Persons indexed by Ahnentafel number.

    There may be holes: unknown ancestors read as None, at any index.
    'last' is the highest index filled, which is also len().
    """

    def __init__(self, subject: Person):
        self._slots: list[Person | None] = [None, subject]
        self.last = 1

    def __getitem__(self, index: int) -> Person | None:
        if index < 1:
            raise IndexError("Ahnentafel numbers start at 1")
        if index >= len(self._slots):
            return None
        return self._slots[index]

    def __len__(self) -> int:
        return self.last

    def __iter__(self) -> Iterator[Person | None]:
        for index in range(1, self.last + 1):
            yield self._slots[index]

    def fill(self, index: int, person: Person) -> None:
        """Place person at index."""
        if index >= len(self._slots):
            self._slots.extend([None] * (index + 1 - len(self._slots)))
        self._slots[index] = person
        self.last = max(self.last, index)

    @property
    def subject(self) -> Person:
        return self._slots[1]

    def items(self) -> Iterator[tuple[int, Person]]:
        """Filled (index, person) pairs in index order."""
        for index, person in enumerate(self._slots):
            if person is not None:
                yield index, person

    @staticmethod
    def generation(index: int) -> int:
        """Generation of an index: 1 for the subject, 2 for parents, ..."""
        return index.bit_length()


class AncestorTreeBuilder:
    """Builds an AncestorArray from a flat getAncestors result."""

    def __init__(self, fetcher: AncestorFetcher, crowd: Crowd | None = None):
        self.fetcher = fetcher
        self.crowd = crowd if crowd is not None else Crowd()

    async def build(self, subject_id: str | int, depth: int) -> AncestorArray:
        """
        Fetch ancestors of subject_id to the given depth and arrange them.

        Every fetched profile is also cached into the builder's crowd.
        """
        key = str(subject_id)
        records = await self.fetcher.fetch_ancestors(key, depth)
        if not records:
            raise InvalidRecord(f"No profile returned for {key}")

        lookup: dict[str, Person] = {}
        order: list[str] = []
        for raw in records:
            person = Person.from_raw(raw)
            self.crowd.cache(person)
            lookup[person.id] = self.crowd.persons[person.id]
            order.append(person.id)

        subject = self._find_subject(key, lookup, order)
        tree = AncestorArray(subject)

        # A real pedigree has no more generations than distinct persons,
        # which bounds the passes even if the data loops.
        n = 1
        for _ in range(len(lookup)):
            filled = False
            for m in range(n, 2 * n):
                person = tree[m]
                if person is None:
                    continue
                father = lookup.get(person.father) if person.father else None
                mother = lookup.get(person.mother) if person.mother else None
                if father is not None:
                    tree.fill(2 * m, father)
                    filled = True
                if mother is not None:
                    tree.fill(2 * m + 1, mother)
                    filled = True
            if not filled:
                break
            n *= 2

        logger.info(
            "Ancestors of %s: %d found, highest Ahnentafel number %d",
            subject.id, sum(1 for _ in tree.items()), tree.last,
        )
        return tree

    @staticmethod
    def _find_subject(key: str, lookup: dict[str, Person], order: list[str]) -> Person:
        if key in lookup:
            return lookup[key]
        for person in lookup.values():
            if person.name == key or person.simple == key:
                return person
        return lookup[order[0]]

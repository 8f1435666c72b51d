"""
Breadth-first collection of relatives from WikiTree.

Starting from one or more profiles, getRelatives is called once per round
for the whole frontier. Each returned profile and every relative embedded
in it is cached into a Crowd; relatives not yet fetched form the next
frontier.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Iterator, Mapping, Protocol

from wikitree_lifelines.core.crowd import Crowd
from wikitree_lifelines.core.errors import InvalidRecord
from wikitree_lifelines.core.models import ALL_RELATIONS, Person, Relation, relative_ids

logger = logging.getLogger(__name__)


class RelativeFetcher(Protocol):
    """Fetches profiles with their relatives embedded."""

    async def fetch_relatives(
        self, ids: Iterable[str], relations: Iterable[Relation]
    ) -> list[dict[str, Any]]: ...


def parse_keys(keys: str | int | Iterable[str | int]) -> list[str]:
    """Split 'Laurie-474, 123' or a list of keys into key strings."""
    if isinstance(keys, (str, int)):
        return re.findall(r"[^,\s]+", str(keys))
    return [str(key) for key in keys]


def embedded_relatives(record: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    """Relative profiles embedded in a raw record, for every relation."""
    for relation in Relation:
        value = record.get(relation.value)
        if isinstance(value, Mapping):
            stubs = value.values()
        elif isinstance(value, list):
            stubs = value
        else:
            continue
        for stub in stubs:
            if isinstance(stub, Mapping):
                yield stub


class RelativeGraphCrawler:
    """Collects everybody within a number of steps of the seed profiles."""

    def __init__(self, fetcher: RelativeFetcher, crowd: Crowd | None = None):
        self.fetcher = fetcher
        self.crowd = crowd if crowd is not None else Crowd()

    async def expand(
        self,
        seeds: str | int | Iterable[str | int],
        radius: int = 1,
        relations: Iterable[Relation] = ALL_RELATIONS,
    ) -> Crowd:
        """
        Collect all persons not more than 'radius' steps from the seeds.

        An empty set of relations fetches only the seeds themselves, with
        every field the API provides.
        """
        if radius < 1:
            raise ValueError(f"radius must be at least 1, got {radius}")
        relations = frozenset(relations)
        start = parse_keys(seeds)
        if not start:
            raise ValueError("No seed profiles given")

        visited: set[str] = set()
        frontier = list(start)
        for iteration in range(1, radius + 1):
            logger.info("Round %d: fetching %d profiles", iteration, len(frontier))
            records = await self.fetcher.fetch_relatives(frontier, relations)
            discovered: dict[str, None] = {}
            for record in records:
                if not isinstance(record, Mapping) or record.get("Id") is None:
                    raise InvalidRecord(f"Fetched record without Id: {record!r}")
                visited.add(str(record["Id"]))
                self.crowd.cache(record)
                self._include(record, discovered)

            frontier = [key for key in discovered if key not in visited]
            if not frontier:
                logger.info("No new relatives after round %d", iteration)
                break

        self._relink()
        self.crowd.seeds = start
        logger.info("Collected %d persons", len(self.crowd))
        return self.crowd

    def _include(self, record: Mapping[str, Any], discovered: dict[str, None]) -> None:
        """Cache every relative embedded in record, at any depth."""
        for stub in embedded_relatives(record):
            if stub.get("Id") is None:
                raise InvalidRecord(f"Relative without Id in {record.get('Id')}")
            self.crowd.cache(stub)
            discovered[str(stub["Id"])] = None
            self._include(stub, discovered)

    def _relink(self) -> None:
        """Rewrite relative lists as de-duplicated id lists."""
        for person in self.crowd:
            for relation in Relation:
                setattr(person, relation.attribute, relative_ids(person.relatives(relation)))

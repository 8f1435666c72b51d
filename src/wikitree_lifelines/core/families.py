"""
Family units derived from a Crowd.

WikiTree has no family records; a family is synthesized from the Father and
Mother of each person and keyed by "<father>x<mother>", with "0" standing
in for an unknown parent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from wikitree_lifelines.core.crowd import Crowd
from wikitree_lifelines.core.models import Person, date_text, family_key

logger = logging.getLogger(__name__)


@dataclass
class Family:
    """A couple and their children, ordered by birth date."""
    id: str
    husband: str | None = None
    wife: str | None = None
    children: list[Person] = field(default_factory=list)
    marriage_date: str | None = None
    marriage_place: str | None = None

    @property
    def child_ids(self) -> list[str]:
        return [child.id for child in self.children]


def _birth_order(person: Person) -> str:
    # Literal string order; partial dates like 1950-00-00 sort as written
    return date_text(person.birth_date) or ""


class FamilyGrouper:
    """
    Groups the persons of a Crowd into families.

    The result is memoized on the crowd and is not invalidated when more
    persons are cached later: a second call returns the same, possibly
    stale, map. The same holds for synthesize_childless: a different flag
    on a later call is logged as a warning and ignored. Pass refresh=True
    to rebuild it deliberately.
    """

    def group(
        self,
        crowd: Crowd,
        synthesize_childless: bool = False,
        refresh: bool = False,
    ) -> dict[str, Family]:
        if crowd._families is not None and not refresh:
            if synthesize_childless != crowd._families_childless:
                logger.warning(
                    "Family map was built with childless=%s; pass refresh=True "
                    "to rebuild it with childless=%s",
                    crowd._families_childless, synthesize_childless,
                )
            return crowd._families

        families: dict[str, Family] = {}
        crowd._families = families
        crowd._families_childless = synthesize_childless

        for person in crowd:
            key = family_key(person.father, person.mother)
            if key is None:
                continue
            family = families.get(key)
            if family is None:
                family = Family(id=key, husband=person.father, wife=person.mother)
                families[key] = family
            family.children.append(person)
            person.family_key = key

        for family in families.values():
            family.children.sort(key=_birth_order)

        if synthesize_childless:
            self._add_childless(crowd, families)

        self._link_spouses(crowd, families)
        logger.debug("Grouped %d persons into %d families", len(crowd), len(families))
        return families

    def _add_childless(self, crowd: Crowd, families: dict[str, Family]) -> None:
        """Add families for couples with no children in the crowd."""
        for person in crowd:
            for spouse_id in person.spouses:
                spouse = crowd.persons.get(spouse_id)
                if spouse is None:
                    continue
                father, mother = person.id, spouse.id
                if person.gender and spouse.gender:
                    if person.gender.startswith("F") and spouse.gender.startswith("M"):
                        father, mother = mother, father
                key = family_key(father, mother)
                if key not in families:
                    logger.debug("Creating childless family %s", key)
                    families[key] = Family(id=key, husband=father, wife=mother)

    def _link_spouses(self, crowd: Crowd, families: dict[str, Family]) -> None:
        """Record on each stored parent the families they head (FAMS)."""
        for family in families.values():
            for parent_id in (family.husband, family.wife):
                parent = crowd.persons.get(parent_id) if parent_id else None
                if parent is not None and family.id not in parent.spouse_families:
                    parent.spouse_families.append(family.id)

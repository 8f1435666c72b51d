"""
Person records using WikiTree field names.

A Person is one profile as returned by the WikiTree API, reduced to a fixed
set of fields. Relatives are always held as lists of profile ids, never as
nested records; the store resolves them.

LifeLines-style helpers (name, surname, birth, death) mirror the report
functions genealogists know from LifeLines.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from wikitree_lifelines.core.errors import InvalidRecord

logger = logging.getLogger(__name__)

# Placeholder for an unknown parent in a family key
UNKNOWN_PARENT = "0"

TRANSLITERATION = {
    "é": "EE", "ê": "ES", "ä": "AE", "ō": "OE",
    "ü": "UE", "ß": "SS", "ñ": "NI",
}

_IDENTIFIER = re.compile(r"[A-Za-z0-9_]+")


class Relation(str, Enum):
    """Relationship types that can be requested from getRelatives."""
    PARENTS = "Parents"
    CHILDREN = "Children"
    SIBLINGS = "Siblings"
    SPOUSES = "Spouses"

    @property
    def code(self) -> str:
        """One-letter code: '-' parents, '+' children, '=' siblings, 'x' spouses."""
        return RELATION_CODES[self]

    @property
    def attribute(self) -> str:
        """Attribute name on Person."""
        return self.value.lower()

    @classmethod
    def parse_mask(cls, code: str) -> frozenset[Relation]:
        """Parse a mask like '+-=x' into a set of relations."""
        by_code = {letter: relation for relation, letter in RELATION_CODES.items()}
        mask = set()
        for char in code:
            if char.isspace():
                continue
            if char not in by_code:
                raise ValueError(f"Unknown relation code {char!r} in {code!r}")
            mask.add(by_code[char])
        return frozenset(mask)


RELATION_CODES = {
    Relation.PARENTS: "-",
    Relation.CHILDREN: "+",
    Relation.SIBLINGS: "=",
    Relation.SPOUSES: "x",
}

ALL_RELATIONS = frozenset(Relation)


def nonblank(value: Any) -> str | None:
    """Return value if it is a string with a non-space character."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def date_text(value: str | date | None) -> str | None:
    """ISO text of a date value, or None."""
    if isinstance(value, date):
        return value.isoformat()
    return value


def nonzero(value: str | date | None) -> str | None:
    """Return the date text if it carries any non-zero digit."""
    text = date_text(value)
    if isinstance(text, str) and re.search(r"[1-9]", text):
        return text
    return None


def simplify(name: str | None) -> str | None:
    """
    Convert a WikiTree Name to a plain identifier if possible.

    Examples:
        "van der Merwe-25" -> "van_der_Merwe25"
        "Cronjé-10"        -> "CronjEE10"

    Names with characters outside the transliteration table are
    returned unchanged.
    """
    if not name:
        return None
    simplest = name.replace(" ", "_").replace("-", "")
    simple = simplest
    for char, replacement in TRANSLITERATION.items():
        simple = simple.replace(char, replacement)
    if _IDENTIFIER.fullmatch(simple):
        if simple != simplest:
            logger.debug("'%s' referred to as '%s'", simplest, simple)
        return simple
    return name


def family_key(father: str | None, mother: str | None) -> str | None:
    """Key of the family headed by father and mother, e.g. '1234x5678'."""
    if not father and not mother:
        return None
    return f"{father or UNKNOWN_PARENT}x{mother or UNKNOWN_PARENT}"


def relative_ids(value: Any) -> list[str]:
    """
    Reduce a relative list to profile ids.

    Accepts the API shape (mapping of id -> embedded profile), a list of
    embedded profiles, a list of Persons or a list of ids. Order is kept
    and duplicates are dropped.
    """
    if not value:
        return []
    ids: list[str] = []
    if isinstance(value, Mapping):
        for key, stub in value.items():
            if isinstance(stub, Mapping) and stub.get("Id") is not None:
                ids.append(str(stub["Id"]))
            else:
                ids.append(str(key))
    elif isinstance(value, (list, tuple, set, frozenset)):
        for item in value:
            if isinstance(item, Person):
                ids.append(item.id)
            elif isinstance(item, Mapping):
                if item.get("Id") is None:
                    raise ValueError("Relative without Id")
                ids.append(str(item["Id"]))
            else:
                ids.append(str(item))
    else:
        raise ValueError(f"Can't read relatives from a {type(value).__name__}")
    return list(dict.fromkeys(ids))


# Fields maintained locally, never taken from an incoming record
DERIVED_FIELDS = frozenset({"id", "family_key", "spouse_families"})

RELATION_FIELDS = frozenset(relation.attribute for relation in Relation)


class Person(BaseModel):
    """
    One WikiTree profile.

    Attribute names are snake_case; the WikiTree field names are aliases
    and both spellings are accepted on construction.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="Id", frozen=True)
    name: str | None = Field(None, alias="Name")  # e.g. Laurie-474

    # Names
    first_name: str | None = Field(None, alias="FirstName")
    middle_name: str | None = Field(None, alias="MiddleName")
    last_name_at_birth: str | None = Field(None, alias="LastNameAtBirth")
    last_name_current: str | None = Field(None, alias="LastNameCurrent")
    nicknames: str | None = Field(None, alias="Nicknames")
    prefix: str | None = Field(None, alias="Prefix")
    suffix: str | None = Field(None, alias="Suffix")
    real_name: str | None = Field(None, alias="RealName")
    birth_name: str | None = Field(None, alias="BirthName")
    birth_name_private: str | None = Field(None, alias="BirthNamePrivate")

    gender: str | None = Field(None, alias="Gender")

    # Vital events
    birth_date: str | date | None = Field(None, alias="BirthDate")
    death_date: str | date | None = Field(None, alias="DeathDate")
    birth_location: str | None = Field(None, alias="BirthLocation")
    death_location: str | None = Field(None, alias="DeathLocation")
    birth_decade: str | None = Field(None, alias="BirthDecade")
    death_decade: str | None = Field(None, alias="DeathDecade")

    is_living: bool | None = Field(None, alias="IsLiving")
    privacy: int | None = Field(None, alias="Privacy")
    touched: str | None = Field(None, alias="Touched")

    # Relatives, by id
    father: str | None = Field(None, alias="Father")
    mother: str | None = Field(None, alias="Mother")
    parents: list[str] = Field(default_factory=list, alias="Parents")
    children: list[str] = Field(default_factory=list, alias="Children")
    siblings: list[str] = Field(default_factory=list, alias="Siblings")
    spouses: list[str] = Field(default_factory=list, alias="Spouses")

    # Set by the family grouper
    family_key: str | None = Field(None, exclude=True)  # FAMC
    spouse_families: list[str] = Field(default_factory=list, exclude=True)  # FAMS

    _simple: str = PrivateAttr(default="")

    def model_post_init(self, __context: Any) -> None:
        self._simple = simplify(self.name) or self.id

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v):
        """WikiTree sends numeric ids; keep them as strings."""
        if v is None or v == "":
            raise ValueError("Id is required")
        return str(v)

    @field_validator("father", "mother", mode="before")
    @classmethod
    def validate_parent(cls, v):
        """0 is the API's marker for an unknown parent."""
        if v is None or v == "" or v == 0 or v == "0":
            return None
        return str(v)

    @field_validator("parents", "children", "siblings", "spouses", mode="before")
    @classmethod
    def validate_relatives(cls, v):
        return relative_ids(v)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | Person) -> Person:
        """Build a Person from an API record, raising InvalidRecord without Id."""
        if isinstance(raw, Person):
            return raw
        if not isinstance(raw, Mapping):
            raise InvalidRecord(f"Can't make a Person from a {type(raw).__name__}")
        if raw.get("Id") in (None, "") and raw.get("id") in (None, ""):
            raise InvalidRecord(
                "Trying to make a Person without field Id; has "
                + ",".join(sorted(str(k) for k in raw))
            )
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise InvalidRecord(f"Invalid record {raw.get('Id', raw.get('id'))}: {e}") from e

    @property
    def simple(self) -> str:
        """Simplified key, computed once from Name."""
        return self._simple

    @property
    def gedcom_name(self) -> str | None:
        """
        GEDCOM-formatted name: Given /Surname/

        Falls back to the profile's birth name when no surname is known.
        """
        given = " ".join(p for p in (self.first_name, self.middle_name) if nonblank(p))
        surname = nonblank(self.last_name_at_birth) or nonblank(self.last_name_current)
        if surname:
            return f"{given} /{surname}/".strip()
        return self.birth_name or self.birth_name_private or given or None

    def relatives(self, relation: Relation) -> list[str]:
        """Ids of relatives of one kind."""
        return getattr(self, relation.attribute)

    def birth(self) -> dict[str, Any]:
        """Birth as {date, place, decade}."""
        return {
            "date": self.birth_date,
            "place": self.birth_location,
            "decade": self.birth_decade,
        }

    def death(self) -> dict[str, Any]:
        """Death as {date, place, decade}."""
        return {
            "date": self.death_date,
            "place": self.death_location,
            "decade": self.death_decade,
        }

    def surname(self, upper: bool = False, both: bool = False) -> str | None:
        """
        Surname at birth, falling back to current surname.

        With both=True a differing current surname is appended as
        "LNAB x LNC".
        """
        lnab = nonblank(self.last_name_at_birth)
        lnc = nonblank(self.last_name_current)
        if upper:
            lnab = lnab.upper() if lnab else None
            lnc = lnc.upper() if lnc else None
        if lnab:
            if both and lnc and lnc != lnab:
                return f"{lnab} x {lnc}"
            return lnab
        return lnc

    def name_text(
        self,
        surname_upper: bool = False,
        surname_first: bool = False,
        with_dates: bool = False,
        both_names: bool = False,
    ) -> str:
        """Display name in the manner of LifeLines 'fullname'."""
        parts: list[str] = []

        def insert(item: str | None, fmt: str | None = None) -> None:
            if not nonblank(item):
                return
            parts.append(fmt.format(item) if fmt else item)

        surname = self.surname(surname_upper, both_names)
        if surname_first:
            insert(surname, "{},")
        insert(self.prefix)
        insert(self.first_name)
        insert(self.middle_name)
        if not surname_first:
            insert(surname)
        insert(self.suffix)
        if with_dates:
            insert(nonzero(self.birth_date), "* {}")
            insert(nonzero(self.death_date), "+ {}")
        return " ".join(parts)

    def refname(self) -> str:
        """Name with both surnames and dates, e.g. 'Dirk Pieter Laurie * 1946-01-05'."""
        return self.name_text(with_dates=True, both_names=True)

    def __str__(self) -> str:
        return self.refname() or self.id

    def to_literal(self) -> dict[str, Any]:
        """Flat field:value mapping using WikiTree field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

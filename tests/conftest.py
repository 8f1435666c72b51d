"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import copy
from typing import Any, Iterable

import pytest

from wikitree_lifelines.core.crowd import Crowd
from wikitree_lifelines.core.models import Relation


# =============================================================================
# Sample Data
# =============================================================================

PROFILES: dict[str, dict[str, Any]] = {
    "1": {
        "Id": 1, "Name": "Laurie-474", "FirstName": "Dirk", "MiddleName": "Pieter",
        "LastNameAtBirth": "Laurie", "Gender": "Male", "BirthDate": "1946-01-05",
        "BirthLocation": "Cape Town, South Africa", "Father": 2, "Mother": 3,
    },
    "2": {
        "Id": 2, "Name": "Laurie-478", "FirstName": "Pieter", "LastNameAtBirth": "Laurie",
        "Gender": "Male", "BirthDate": "1910-04-12", "DeathDate": "1980-00-00",
        "Father": 4, "Mother": 0,
    },
    "3": {
        "Id": 3, "Name": "Smit-12", "FirstName": "Maria", "LastNameAtBirth": "Smit",
        "LastNameCurrent": "Laurie", "Gender": "Female", "BirthDate": "1915-09-30",
        "Father": 0, "Mother": 0,
    },
    "4": {
        "Id": 4, "Name": "Laurie-500", "FirstName": "Jan", "LastNameAtBirth": "Laurie",
        "Gender": "Male", "BirthDate": "1880-00-00", "Father": 0, "Mother": 0,
    },
    "5": {
        "Id": 5, "Name": "Laurie-475", "FirstName": "Anna", "LastNameAtBirth": "Laurie",
        "Gender": "Female", "BirthDate": "1950-03-02", "Father": 2, "Mother": 3,
    },
    "10": {
        "Id": 10, "Name": "Cronjé-10", "FirstName": "Elsa", "LastNameAtBirth": "Cronjé",
        "LastNameCurrent": "Laurie", "Gender": "Female", "BirthDate": "1948-07-21",
        "Father": 0, "Mother": 0,
    },
    "11": {
        "Id": 11, "Name": "Laurie-600", "FirstName": "Jan", "LastNameAtBirth": "Laurie",
        "Gender": "Male", "BirthDate": "1970-01-01", "Father": 1, "Mother": 10,
    },
    "12": {
        "Id": 12, "Name": "Laurie-601", "FirstName": "Eva", "LastNameAtBirth": "Laurie",
        "Gender": "Female", "BirthDate": "1965-06-15", "Father": 1, "Mother": 10,
    },
}

LINKS: dict[str, dict[str, list[str]]] = {
    "1": {"Parents": ["2", "3"], "Siblings": ["5"], "Spouses": ["10"], "Children": ["11", "12"]},
    "2": {"Parents": ["4"], "Spouses": ["3"], "Children": ["1", "5"]},
    "3": {"Spouses": ["2"], "Children": ["1", "5"]},
    "4": {"Children": ["2"]},
    "5": {"Parents": ["2", "3"], "Siblings": ["1"]},
    "10": {"Spouses": ["1"], "Children": ["11", "12"]},
    "11": {"Parents": ["1", "10"], "Siblings": ["12"]},
    "12": {"Parents": ["1", "10"], "Siblings": ["11"]},
}


class FakeWikiTree:
    """
    In-memory stand-in for the WikiTree API.

    fetch_relatives embeds relatives the way getRelatives does: a mapping
    of id -> profile under each requested relation.
    """

    def __init__(self, profiles=None, links=None):
        self.profiles = copy.deepcopy(profiles if profiles is not None else PROFILES)
        self.links = copy.deepcopy(links if links is not None else LINKS)
        self.relative_calls: list[tuple[list[str], frozenset[Relation]]] = []
        self.ancestor_calls: list[tuple[str, int]] = []

    async def __aenter__(self) -> FakeWikiTree:
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    async def fetch_relatives(
        self, ids: Iterable[str], relations: Iterable[Relation]
    ) -> list[dict[str, Any]]:
        ids = list(ids)
        relations = frozenset(relations)
        self.relative_calls.append((ids, relations))
        records = []
        for key in ids:
            record = copy.deepcopy(self.profiles[key])
            for relation in Relation:
                if relation in relations:
                    record[relation.value] = {
                        rid: copy.deepcopy(self.profiles[rid])
                        for rid in self.links.get(key, {}).get(relation.value, [])
                    }
            records.append(record)
        return records

    async def fetch_ancestors(self, key: str, depth: int) -> list[dict[str, Any]]:
        self.ancestor_calls.append((key, depth))
        found: list[str] = []
        generation = [key]
        for _ in range(depth + 1):
            next_generation = []
            for pid in generation:
                if pid in self.profiles and pid not in found:
                    found.append(pid)
                    profile = self.profiles[pid]
                    for parent in (profile.get("Father"), profile.get("Mother")):
                        if parent:
                            next_generation.append(str(parent))
            generation = next_generation
        return [copy.deepcopy(self.profiles[pid]) for pid in found]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def profiles() -> dict[str, dict[str, Any]]:
    """Raw WikiTree profiles keyed by Id."""
    return copy.deepcopy(PROFILES)


@pytest.fixture
def wikitree() -> FakeWikiTree:
    """Fake WikiTree API over the sample family."""
    return FakeWikiTree()


@pytest.fixture
def crowd(profiles) -> Crowd:
    """Crowd holding every sample profile, with sibling and spouse links."""
    crowd = Crowd()
    for key, profile in profiles.items():
        record = dict(profile)
        for relation, ids in LINKS.get(key, {}).items():
            record[relation] = ids
        crowd.cache(record)
    return crowd


@pytest.fixture
def jane_record() -> dict[str, Any]:
    """A single profile for rendering tests."""
    return {
        "Id": 7,
        "Name": "Doe-7",
        "FirstName": "Jane",
        "LastNameAtBirth": "Doe",
        "Gender": "Female",
        "BirthDate": "1980-05-02",
        "BirthLocation": "Leeds, England",
    }

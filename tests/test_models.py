"""Tests for Person records."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from wikitree_lifelines.core.errors import InvalidRecord
from wikitree_lifelines.core.models import (
    ALL_RELATIONS,
    Person,
    Relation,
    family_key,
    relative_ids,
    simplify,
)


class TestSimplify:
    """Tests for simplified keys."""

    def test_spaces_and_hyphens(self):
        assert simplify("van der Merwe-25") == "van_der_Merwe25"

    def test_transliteration(self):
        assert simplify("Cronjé-10") == "CronjEE10"

    def test_untranslatable_name_unchanged(self):
        assert simplify("Øster-1") == "Øster-1"

    def test_no_name(self):
        assert simplify(None) is None


class TestPerson:
    """Tests for the Person model."""

    def test_from_raw_normalizes_ids(self, profiles):
        person = Person.from_raw(profiles["1"])
        assert person.id == "1"
        assert person.father == "2"
        assert person.mother == "3"
        assert person.simple == "Laurie474"

    def test_unknown_parent_is_none(self, profiles):
        person = Person.from_raw(profiles["2"])
        assert person.father == "4"
        assert person.mother is None

    def test_missing_id_is_invalid(self):
        with pytest.raises(InvalidRecord):
            Person.from_raw({"Name": "Nobody-1"})

    def test_non_mapping_is_invalid(self):
        with pytest.raises(InvalidRecord):
            Person.from_raw(["Id", 1])

    def test_simple_defaults_to_id(self):
        person = Person.from_raw({"Id": 99})
        assert person.simple == "99"

    def test_id_is_frozen(self):
        person = Person.from_raw({"Id": 1})
        with pytest.raises(ValidationError):
            person.id = "2"

    def test_snake_case_names_accepted(self):
        person = Person(id="5", first_name="Anna", birth_date=date(1950, 3, 2))
        assert person.first_name == "Anna"
        assert person.birth_date == date(1950, 3, 2)

    def test_embedded_relatives_become_ids(self, profiles):
        raw = dict(profiles["1"])
        raw["Parents"] = {"2": profiles["2"], "3": profiles["3"]}
        raw["Spouses"] = [profiles["10"]]
        person = Person.from_raw(raw)
        assert person.parents == ["2", "3"]
        assert person.spouses == ["10"]
        assert person.relatives(Relation.PARENTS) == ["2", "3"]

    def test_relative_ids_drops_duplicates(self):
        assert relative_ids(["3", 2, "3"]) == ["3", "2"]
        assert relative_ids(None) == []

    def test_literal_uses_wikitree_names(self, profiles):
        literal = Person.from_raw(profiles["1"]).to_literal()
        assert literal["Id"] == "1"
        assert literal["FirstName"] == "Dirk"
        assert literal["Parents"] == []
        assert "family_key" not in literal
        assert "Mother" in literal


class TestNames:
    """Tests for LifeLines-style name helpers."""

    def test_name_text(self, profiles):
        person = Person.from_raw(profiles["1"])
        assert person.name_text() == "Dirk Pieter Laurie"
        assert person.name_text(surname_upper=True, surname_first=True) == "LAURIE, Dirk Pieter"

    def test_refname_has_dates_and_both_surnames(self, profiles):
        person = Person.from_raw(profiles["3"])
        assert person.refname() == "Maria Smit x Laurie * 1915-09-30"
        assert str(person) == person.refname()

    def test_refname_skips_zero_dates(self):
        person = Person.from_raw({"Id": 1, "FirstName": "Jan", "BirthDate": "0000-00-00"})
        assert person.refname() == "Jan"

    def test_surname_falls_back_to_current(self):
        person = Person.from_raw({"Id": 1, "LastNameCurrent": "Laurie"})
        assert person.surname() == "Laurie"
        assert person.surname(upper=True) == "LAURIE"

    def test_gedcom_name(self, profiles):
        assert Person.from_raw(profiles["1"]).gedcom_name == "Dirk Pieter /Laurie/"
        person = Person.from_raw({"Id": 1, "BirthName": "Jan Laurie"})
        assert person.gedcom_name == "Jan Laurie"

    def test_birth_and_death(self, profiles):
        person = Person.from_raw(profiles["2"])
        assert person.birth()["date"] == "1910-04-12"
        assert person.death()["date"] == "1980-00-00"


class TestRelations:
    """Tests for relation masks and family keys."""

    def test_parse_mask(self):
        assert Relation.parse_mask("+-=x") == ALL_RELATIONS
        assert Relation.parse_mask("-") == {Relation.PARENTS}
        assert Relation.parse_mask("") == frozenset()

    def test_parse_mask_rejects_unknown_code(self):
        with pytest.raises(ValueError):
            Relation.parse_mask("-?")

    def test_codes(self):
        assert Relation.SPOUSES.code == "x"
        assert Relation.CHILDREN.attribute == "children"

    def test_family_key(self):
        assert family_key("1", "10") == "1x10"
        assert family_key("4", None) == "4x0"
        assert family_key(None, None) is None

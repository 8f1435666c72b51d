"""Tests for the breadth-first relative crawler."""

from __future__ import annotations

import pytest

from wikitree_lifelines.core.crawler import RelativeGraphCrawler, embedded_relatives, parse_keys
from wikitree_lifelines.core.crowd import Crowd
from wikitree_lifelines.core.errors import InvalidRecord
from wikitree_lifelines.core.models import ALL_RELATIONS, Relation


class TestHelpers:
    """Tests for key parsing and embedded relatives."""

    def test_parse_keys(self):
        assert parse_keys("Laurie-474, 5") == ["Laurie-474", "5"]
        assert parse_keys(1) == ["1"]
        assert parse_keys(["1", 2]) == ["1", "2"]
        assert parse_keys("") == []

    def test_embedded_relatives(self, profiles):
        record = {"Id": 1, "Parents": {"2": profiles["2"]}, "Spouses": [profiles["10"]],
                  "Children": ["11"]}
        assert [stub["Id"] for stub in embedded_relatives(record)] == [2, 10]


class TestExpand:
    """Tests for RelativeGraphCrawler.expand."""

    @pytest.mark.asyncio
    async def test_parents_one_step(self, wikitree):
        crawler = RelativeGraphCrawler(wikitree)
        crowd = await crawler.expand("1", radius=1, relations={Relation.PARENTS})

        assert set(crowd.persons) == {"1", "2", "3"}
        assert crowd["1"].parents == ["2", "3"]
        assert wikitree.relative_calls == [(["1"], frozenset({Relation.PARENTS}))]
        for person in crowd:
            for relation in Relation:
                assert all(isinstance(rid, str) for rid in person.relatives(relation))

    @pytest.mark.asyncio
    async def test_parents_two_steps(self, wikitree):
        crowd = await RelativeGraphCrawler(wikitree).expand(
            "1", radius=2, relations={Relation.PARENTS}
        )
        assert set(crowd.persons) == {"1", "2", "3", "4"}
        assert [call[0] for call in wikitree.relative_calls] == [["1"], ["2", "3"]]
        assert crowd["2"].parents == ["4"]

    @pytest.mark.asyncio
    async def test_stops_when_nothing_new(self, wikitree):
        crowd = await RelativeGraphCrawler(wikitree).expand(
            "1", radius=10, relations={Relation.PARENTS}
        )
        assert len(crowd) == 4
        assert [call[0] for call in wikitree.relative_calls] == [["1"], ["2", "3"], ["4"]]

    @pytest.mark.asyncio
    async def test_all_relations(self, wikitree):
        crowd = await RelativeGraphCrawler(wikitree).expand("1")
        assert set(crowd.persons) == {"1", "2", "3", "5", "10", "11", "12"}
        assert crowd["1"].children == ["11", "12"]
        assert crowd["1"].spouses == ["10"]
        assert wikitree.relative_calls[0][1] == ALL_RELATIONS

    @pytest.mark.asyncio
    async def test_empty_mask_fetches_seeds_only(self, wikitree):
        crowd = await RelativeGraphCrawler(wikitree).expand("1", radius=3, relations=())
        assert set(crowd.persons) == {"1"}
        assert len(wikitree.relative_calls) == 1

    @pytest.mark.asyncio
    async def test_seeds_recorded(self, wikitree):
        crowd = await RelativeGraphCrawler(wikitree).expand("1, 5", relations=())
        assert crowd.seeds == ["1", "5"]
        assert wikitree.relative_calls[0][0] == ["1", "5"]

    @pytest.mark.asyncio
    async def test_into_existing_crowd(self, wikitree, profiles):
        crowd = Crowd()
        crowd.cache(profiles["12"])
        result = await RelativeGraphCrawler(wikitree, crowd).expand("1", relations={Relation.PARENTS})
        assert result is crowd
        assert set(crowd.persons) == {"1", "2", "3", "12"}

    @pytest.mark.asyncio
    async def test_radius_must_be_positive(self, wikitree):
        with pytest.raises(ValueError):
            await RelativeGraphCrawler(wikitree).expand("1", radius=0)
        assert wikitree.relative_calls == []

    @pytest.mark.asyncio
    async def test_no_seeds(self, wikitree):
        with pytest.raises(ValueError):
            await RelativeGraphCrawler(wikitree).expand("")

    @pytest.mark.asyncio
    async def test_record_without_id(self):
        class BrokenFetcher:
            async def fetch_relatives(self, ids, relations):
                return [{"Name": "Laurie-1"}]

        with pytest.raises(InvalidRecord):
            await RelativeGraphCrawler(BrokenFetcher()).expand("1")

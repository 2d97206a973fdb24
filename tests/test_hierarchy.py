"""
Tests for the hierarchical aggregator.

Covers the round-trip bounds of each composition, child ordering, the
not-found sentinel and the degrade-on-failure policy for optional child
fetches.
"""

import pytest

from paddock_data.aggregation.batch import KEY_FIELD
from paddock_data.aggregation.hierarchy import SEASON_CHILD_TYPES, HierarchyAggregator, order_children
from paddock_data.core.types import EntityType, InvalidIdentifierError
from paddock_data.store.base import StoreUnavailableError, round_trip_scope


def _keys(records):
    return [record[KEY_FIELD] for record in records]


class TestOrderChildren:
    def test_regulations_sorted_with_missing_as_zero(self):
        records = [{"id": "b", "order": 2}, {"id": "c", "order": 3}, {"id": "a"}, {"id": "d", "order": 1}]
        ordered = order_children(EntityType.regulation, records)
        assert [r["id"] for r in ordered] == ["a", "d", "b", "c"]

    def test_ties_keep_resolution_order(self):
        records = [{"id": "x", "order": 1}, {"id": "y"}, {"id": "z", "order": 1}, {"id": "w", "order": None}]
        ordered = order_children(EntityType.regulation, records)
        assert [r["id"] for r in ordered] == ["y", "w", "x", "z"]

    def test_unordered_types_keep_resolution_order(self):
        records = [{"id": "2", "order": 9}, {"id": "1", "order": 1}]
        assert order_children(EntityType.stage, records) == records


class TestParentWithChildren:
    @pytest.mark.asyncio
    async def test_two_round_trips(self, seeded_store):
        result = await HierarchyAggregator(seeded_store).get_parent_with_children(
            EntityType.championship, "C1", EntityType.season
        )

        assert result.parent[KEY_FIELD] == "championship:C1"
        assert sorted(_keys(result.children)) == ["season:S1", "season:S2"]
        assert seeded_store.round_trips == 2

    @pytest.mark.asyncio
    async def test_empty_index_skips_child_fetch(self, store):
        store.add_record("championship:C9", name="Empty")

        result = await HierarchyAggregator(store).get_parent_with_children(
            EntityType.championship, "C9", EntityType.season
        )

        assert result.children == []
        assert store.round_trips == 1

    @pytest.mark.asyncio
    async def test_absent_parent_is_none_even_with_children(self, store):
        store.add_index("championship:GONE:seasons", "S1")
        store.add_record("season:S1", name="orphan")

        result = await HierarchyAggregator(store).get_parent_with_children(
            EntityType.championship, "GONE", EntityType.season
        )

        assert result is None
        assert store.round_trips == 1

    @pytest.mark.asyncio
    async def test_missing_children_are_dropped(self, store):
        store.add_record("championship:C2", name="Partial")
        store.add_index("championship:C2:seasons", "S1", "S404")
        store.add_record("season:S1", name="2024")

        result = await HierarchyAggregator(store).get_parent_with_children(
            EntityType.championship, "C2", EntityType.season
        )

        assert _keys(result.children) == ["season:S1"]

    @pytest.mark.asyncio
    async def test_mandatory_failure_propagates(self, seeded_store):
        seeded_store.fail_operations.add("get_field_map_with_sets")
        with pytest.raises(StoreUnavailableError):
            await HierarchyAggregator(seeded_store).get_championship_with_seasons("C1")


class TestParentWithMultipleChildTypes:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("members", [0, 1, 10_000])
    async def test_round_trips_independent_of_member_count(self, store, members):
        store.add_record("season:S1", name="2024")
        for i in range(members):
            store.add_record(f"stage:{i}", name=f"stage {i}")
        store.add_index("season:S1:stages", *[str(i) for i in range(members)])
        store.add_record("category:K1", name="Pro")
        store.add_index("season:S1:categories", "K1")

        with round_trip_scope() as tally:
            result = await HierarchyAggregator(store).get_parent_with_multiple_child_types(
                EntityType.season, "S1", SEASON_CHILD_TYPES
            )

        non_empty = 1 + (1 if members else 0)
        assert tally.count == 1 + non_empty
        assert len(result.children["stages"]) == members
        assert len(result.children["categories"]) == 1
        assert result.children["regulations"] == []

    @pytest.mark.asyncio
    async def test_all_empty_costs_one_round_trip(self, store):
        store.add_record("season:S1", name="2024")

        result = await HierarchyAggregator(store).get_parent_with_multiple_child_types(
            EntityType.season, "S1", SEASON_CHILD_TYPES
        )

        assert result.children == {"categories": [], "stages": [], "regulations": []}
        assert store.round_trips == 1

    @pytest.mark.asyncio
    async def test_duplicate_child_types_are_fetched_once(self, seeded_store):
        result = await HierarchyAggregator(seeded_store).get_parent_with_multiple_child_types(
            EntityType.season, "S1", [EntityType.stage, "stage"]
        )

        assert list(result.children) == ["stages"]
        assert seeded_store.round_trips == 2

    @pytest.mark.asyncio
    async def test_optional_child_failure_degrades(self, seeded_store, caplog):
        seeded_store.fail_key_prefixes.add("regulation:")

        season = await HierarchyAggregator(seeded_store).get_season_complete("S1")

        assert season["regulations"] == []
        assert len(season["stages"]) == 2
        assert len(season["categories"]) == 1
        assert "Degrading regulations of season:S1" in caplog.text


class TestSeasonComplete:
    @pytest.mark.asyncio
    async def test_shape_and_ordering(self, seeded_store):
        season = await HierarchyAggregator(seeded_store).get_season_complete("S1")

        assert season["name"] == "2024"
        assert season["year"] == 2024
        assert season["classification"] == [{"pilot": "P1", "points": 50}]
        assert sorted(_keys(season["stages"])) == ["stage:T1", "stage:T2"]
        assert [r["title"] for r in season["regulations"]] == ["Sporting", "Technical", "General"]
        assert seeded_store.round_trips == 4

    @pytest.mark.asyncio
    async def test_regulations_with_missing_order_first(self, store):
        store.add_record("season:S1", name="2024")
        store.add_record("regulation:A", title="two", order="2")
        store.add_record("regulation:B", title="none")
        store.add_record("regulation:C", title="three", order="3")
        store.add_record("regulation:D", title="one", order="1")
        store.add_index("season:S1:regulations", "A", "B", "C", "D")

        season = await HierarchyAggregator(store).get_season_complete("S1")

        assert [r.get("order") for r in season["regulations"]] == [None, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_absent_season(self, seeded_store):
        assert await HierarchyAggregator(seeded_store).get_season_complete("S404") is None


class TestChampionshipTree:
    @pytest.mark.asyncio
    async def test_round_trip_formula(self, store):
        store.add_record("championship:C1", name="Copa")
        store.add_index("championship:C1:seasons", "S1", "S2")
        store.add_record("season:S1", name="2024")
        store.add_record("season:S2", name="2025")
        store.add_record("stage:T1", name="one")
        store.add_record("stage:T2", name="two")
        store.add_index("season:S1:stages", "T1", "T2")

        with round_trip_scope() as tally:
            tree = await HierarchyAggregator(store).get_championship_tree("C1")

        seasons = {season[KEY_FIELD]: season for season in tree["seasons"]}
        assert len(seasons) == 2
        assert len(seasons["season:S1"]["stages"]) == 2
        assert seasons["season:S2"]["stages"] == []
        # 2 + (1 + 1) + (1 + 0)
        assert tally.count == 5

    @pytest.mark.asyncio
    async def test_full_tree(self, seeded_store):
        tree = await HierarchyAggregator(seeded_store).get_championship_tree("C1")

        assert tree["name"] == "Copa Paddock"
        assert tree["isActive"] is True
        assert tree["sponsors"] == ["Acme"]
        s1 = next(s for s in tree["seasons"] if s[KEY_FIELD] == "season:S1")
        assert [r["order"] for r in s1["regulations"]] == [1, 2, 3]
        assert s1["categories"][0]["maxPilots"] == 30
        # 2 + (1 + 3) + (1 + 0)
        assert seeded_store.round_trips == 7

    @pytest.mark.asyncio
    async def test_absent_championship(self, seeded_store):
        assert await HierarchyAggregator(seeded_store).get_championship_tree("nope") is None

    @pytest.mark.asyncio
    async def test_season_index_failure_propagates(self, seeded_store):
        seeded_store.fail_operations.add("get_set_members_many")
        with pytest.raises(StoreUnavailableError):
            await HierarchyAggregator(seeded_store).get_championship_tree("C1")


class TestClassifications:
    @pytest.mark.asyncio
    async def test_season_classification(self, seeded_store):
        result = await HierarchyAggregator(seeded_store).get_season_classification("S1")
        assert result.seasonId == "S1"
        assert result.seasonName == "2024"
        assert result.classification == [{"pilot": "P1", "points": 50}]

    @pytest.mark.asyncio
    async def test_season_without_classification(self, seeded_store):
        assert await HierarchyAggregator(seeded_store).get_season_classification("S2") is None

    @pytest.mark.asyncio
    async def test_championship_classification_skips_empty_seasons(self, seeded_store):
        result = await HierarchyAggregator(seeded_store).get_championship_classification("C1")

        assert result.championship["name"] == "Copa Paddock"
        assert [c.seasonId for c in result.classifications] == ["S1"]
        assert seeded_store.round_trips == 2


class TestFlatCollections:
    @pytest.mark.asyncio
    async def test_list_entities(self, seeded_store):
        seasons = await HierarchyAggregator(seeded_store).list_entities(EntityType.season)
        assert sorted(_keys(seasons)) == ["season:S1", "season:S2"]
        assert seeded_store.round_trips == 2

    @pytest.mark.asyncio
    async def test_list_entities_missing_index(self, store):
        assert await HierarchyAggregator(store).list_entities(EntityType.category) == []
        assert store.round_trips == 1

    @pytest.mark.asyncio
    async def test_active_race_tracks(self, seeded_store):
        tracks = await HierarchyAggregator(seeded_store).list_active_race_tracks()
        assert [t["name"] for t in tracks] == ["Interlagos"]
        assert tracks[0]["capacity"] == 60000

    @pytest.mark.asyncio
    async def test_stage_with_results(self, seeded_store):
        stage = await HierarchyAggregator(seeded_store).get_stage_with_results("T1")
        assert stage["results"] == [{"pilot": "P1", "position": 1}]
        assert stage["laps"] == 20

    @pytest.mark.asyncio
    async def test_get_many_single_round_trip(self, seeded_store):
        users = await HierarchyAggregator(seeded_store).get_many(EntityType.user, ["U1", "U404", "U2"])
        assert [u["name"] for u in users] == ["Ana", "Bruno"]
        assert users[1]["roles"] == []
        assert seeded_store.round_trips == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", ["", "a b", "user:1", "*", "x" * 129])
    async def test_invalid_ids_rejected_before_round_trip(self, store, bad_id):
        with pytest.raises(InvalidIdentifierError):
            await HierarchyAggregator(store).get_many(EntityType.user, ["U1", bad_id])
        assert store.round_trips == 0

    @pytest.mark.asyncio
    async def test_invalid_parent_id_rejected(self, store):
        with pytest.raises(InvalidIdentifierError):
            await HierarchyAggregator(store).get_championship_tree("C*")
        assert store.round_trips == 0

"""Tests for the object utility registry.

Validates:
- Queries return fresh non-zero offers in registration order, range-limited.
- Claims never exceed capacity, including under concurrent claimers.
- Stock consumption, cooldowns and regeneration.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from aviary.ai.actions import ActionKind
from aviary.environment import Season, Weather, WeatherState
from aviary.types import AgentId, DeltaTime, ObjectId
from aviary.world.smart_objects import get_definition
from tests.helpers import make_registry, place

ORIGIN = (0.0, 0.0)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def test_query_returns_offers_in_registration_order() -> None:
    registry = make_registry([("seed_feeder", 50.0, 0.0), ("lawn", 10.0, 0.0)])

    offers = registry.query(ORIGIN, "cardinal", 500.0)

    assert [o.object_id for o in offers] == [1, 1, 2, 2, 2]
    eat = offers[0]
    assert eat.action is ActionKind.EAT
    assert eat.effective_utility == pytest.approx(0.96)
    assert eat.distance == pytest.approx(50.0)


def test_query_respects_radius_and_detection_range() -> None:
    registry = make_registry(
        [
            ("seed_feeder", 100.0, 0.0),
            ("shrub", 190.0, 0.0),  # Beyond the shrub's own 180 detection range.
        ]
    )

    assert {o.object_id for o in registry.query(ORIGIN, "sparrow", 500.0)} == {1}
    assert registry.query(ORIGIN, "sparrow", 50.0) == []


def test_query_filters_by_action() -> None:
    registry = make_registry([("oak_tree", 10.0, 0.0)])

    offers = registry.query(ORIGIN, "blue_jay", 500.0, actions=[ActionKind.CACHE])

    assert [o.action for o in offers] == [ActionKind.CACHE]


def test_query_omits_zero_utility_offers() -> None:
    registry = make_registry([("seed_feeder", 10.0, 0.0)])
    registry.resolve(ObjectId(1)).stock = 0.0

    assert registry.query(ORIGIN, "cardinal", 500.0) == []


def test_query_reflects_weather_on_every_call() -> None:
    weather = WeatherState()
    registry = make_registry([("lawn", 10.0, 0.0)], weather=weather)
    calm = registry.query(ORIGIN, "robin", 500.0, actions=[ActionKind.EAT])

    weather.set_weather(Weather.STORMY)
    stormy = registry.query(ORIGIN, "robin", 500.0, actions=[ActionKind.EAT])

    assert stormy[0].effective_utility < calm[0].effective_utility


def test_query_uses_registry_season() -> None:
    registry = make_registry([("nectar_feeder", 10.0, 0.0)], season=Season.WINTER)
    (offer,) = registry.query(ORIGIN, "ruby_throated_hummingbird", 500.0)
    # 0.85 x 1.5, x 0.2 in winter.
    assert offer.effective_utility == pytest.approx(0.255)


def test_full_object_still_offered_to_its_occupant() -> None:
    registry = make_registry([("suet_feeder", 10.0, 0.0)])
    registry.resolve(ObjectId(1)).occupants.update({AgentId(1), AgentId(2)})

    assert registry.query(ORIGIN, "chickadee", 500.0, agent_id=AgentId(3)) == []
    assert registry.query(ORIGIN, "chickadee", 500.0, agent_id=AgentId(1))


def test_in_range_uses_detection_range() -> None:
    registry = make_registry([("shrub", 0.0, 0.0)])
    assert registry.in_range(ObjectId(1), (180.0, 0.0))
    assert not registry.in_range(ObjectId(1), (181.0, 0.0))
    assert not registry.in_range(ObjectId(7), ORIGIN)


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


def test_duplicate_id_is_rejected() -> None:
    registry = make_registry([("lawn", 0.0, 0.0)])
    with pytest.raises(ValueError):
        place(registry, "shrub", 5.0, 5.0, 1)


def test_removed_object_no_longer_resolves() -> None:
    registry = make_registry([("lawn", 0.0, 0.0), ("shrub", 5.0, 0.0)])

    removed = registry.remove(ObjectId(1))

    assert removed is not None
    assert registry.resolve(ObjectId(1)) is None
    assert ObjectId(1) not in registry
    assert [obj.object_id for obj in registry] == [2]
    assert registry.remove(ObjectId(1)) is None
    assert {o.object_id for o in registry.query(ORIGIN, "robin", 500.0)} == {2}


# ---------------------------------------------------------------------------
# Usage
# ---------------------------------------------------------------------------


def test_claims_stop_at_capacity() -> None:
    registry = make_registry([("suet_feeder", 0.0, 0.0)])
    suet = ObjectId(1)

    assert registry.claim(suet, AgentId(1))
    assert registry.claim(suet, AgentId(2))
    assert not registry.claim(suet, AgentId(3))
    # Re-claiming a held slot does not take a second one.
    assert registry.claim(suet, AgentId(1))
    assert registry.resolve(suet).occupants == {AgentId(1), AgentId(2)}


def test_concurrent_claims_never_exceed_capacity() -> None:
    registry = make_registry([("seed_feeder", 0.0, 0.0)])

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(
            pool.map(lambda i: registry.claim(ObjectId(1), AgentId(i)), range(1, 33))
        )

    assert sum(results) == 4
    assert len(registry.resolve(ObjectId(1)).occupants) == 4


def test_claim_fails_on_missing_or_exhausted_object() -> None:
    registry = make_registry([("seed_feeder", 0.0, 0.0)])
    registry.resolve(ObjectId(1)).stock = 0.0

    assert not registry.claim(ObjectId(1), AgentId(1))
    assert not registry.claim(ObjectId(2), AgentId(1))


def test_consume_takes_at_most_remaining_stock() -> None:
    registry = make_registry([("seed_feeder", 0.0, 0.0), ("oak_tree", 5.0, 0.0)])

    assert registry.consume(ObjectId(1), 4.0) == pytest.approx(4.0)
    assert registry.consume(ObjectId(1), 10.0) == pytest.approx(6.0)
    assert registry.resolve(ObjectId(1)).is_exhausted
    # Inexhaustible objects give whatever is asked.
    assert registry.consume(ObjectId(2), 3.0) == 3.0
    assert registry.consume(ObjectId(9), 3.0) == 0.0


def test_cooldown_blocks_claims_until_regenerated() -> None:
    registry = make_registry([("bird_bath", 0.0, 0.0)])
    bath = ObjectId(1)

    registry.start_cooldown(bath)
    assert not registry.claim(bath, AgentId(1))

    registry.regenerate(DeltaTime(2.0))
    assert registry.claim(bath, AgentId(1))


def test_regenerate_refills_stock() -> None:
    registry = make_registry([("lawn", 0.0, 0.0)])
    registry.resolve(ObjectId(1)).stock = 10.0

    registry.regenerate(DeltaTime(100.0))

    assert registry.resolve(ObjectId(1)).stock == pytest.approx(12.0)


def test_release_all_frees_every_slot() -> None:
    registry = make_registry([("lawn", 0.0, 0.0), ("shrub", 5.0, 0.0)])
    registry.claim(ObjectId(1), AgentId(4))
    registry.claim(ObjectId(2), AgentId(4))
    registry.claim(ObjectId(2), AgentId(5))

    registry.release_all(AgentId(4))

    assert registry.resolve(ObjectId(1)).occupants == set()
    assert registry.resolve(ObjectId(2)).occupants == {AgentId(5)}


def test_release_of_missing_object_is_ignored() -> None:
    registry = make_registry()
    registry.release(ObjectId(3), AgentId(1))
    registry.release(None, AgentId(1))


def test_definitions_are_shared_between_instances() -> None:
    registry = make_registry([("lawn", 0.0, 0.0), ("lawn", 300.0, 0.0)])
    first, second = registry
    assert first.definition is second.definition is get_definition("lawn")

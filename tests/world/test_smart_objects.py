"""Tests for smart object definitions and live availability."""

import pytest

from aviary.ai.actions import ActionKind
from aviary.environment import Season
from aviary.types import AgentId, ObjectId
from aviary.world.smart_objects import (
    OBJECT_DEFINITIONS,
    SmartObject,
    SmartObjectDefinition,
    get_definition,
)


def _feeder() -> SmartObject:
    return get_definition("seed_feeder").create(ObjectId(1), 0.0, 0.0)


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------


def test_empty_object_is_fully_available() -> None:
    assert _feeder().availability() == 1.0


def test_each_other_user_crowds_the_object() -> None:
    feeder = _feeder()
    feeder.occupants.update({AgentId(1), AgentId(2)})
    assert feeder.availability(AgentId(3)) == pytest.approx(0.6)


def test_own_slot_does_not_count_toward_crowding() -> None:
    feeder = _feeder()
    feeder.occupants.update({AgentId(1), AgentId(2)})
    assert feeder.availability(AgentId(1)) == pytest.approx(0.8)


def test_full_object_is_unavailable_to_outsiders_only() -> None:
    suet = get_definition("suet_feeder").create(ObjectId(1), 0.0, 0.0)
    suet.occupants.update({AgentId(1), AgentId(2)})
    assert suet.is_full
    assert suet.availability(AgentId(3)) == 0.0
    assert suet.availability(AgentId(1)) > 0.0


def test_exhausted_or_cooling_object_is_unavailable() -> None:
    feeder = _feeder()
    feeder.stock = 0.0
    assert feeder.availability() == 0.0

    bath = get_definition("bird_bath").create(ObjectId(2), 0.0, 0.0)
    bath.cooldown_remaining = 1.0
    assert bath.availability() == 0.0


# ---------------------------------------------------------------------------
# Effective utility
# ---------------------------------------------------------------------------


def test_effective_utility_combines_every_factor() -> None:
    feeder = _feeder()
    # 0.8 base x 1.2 cardinal x 0.9 summer
    assert feeder.effective_utility(
        ActionKind.EAT, "cardinal", Season.SUMMER, 0.0
    ) == pytest.approx(0.864)


def test_environmental_modifier_applies_season_and_exposure() -> None:
    feeder = _feeder()
    # Winter 1.3, exposure 0.7 at half weather fear.
    assert feeder.environmental_modifier(Season.WINTER, 0.5) == pytest.approx(0.845)


def test_effective_utility_is_clamped_to_one() -> None:
    feeder = _feeder()
    utility = feeder.effective_utility(ActionKind.EAT, "cardinal", Season.WINTER, 0.0)
    assert utility == 1.0


def test_action_not_offered_has_zero_utility() -> None:
    utility = _feeder().effective_utility(ActionKind.DRINK, "robin", Season.SPRING, 0.0)
    assert utility == 0.0


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


def test_definition_from_dict() -> None:
    definition = SmartObjectDefinition.from_dict(
        {
            "id": "pine_cone_feeder",
            "actions": ["eat", "Perch"],
            "base_utility": 0.5,
            "seasonal_multipliers": {"winter": 1.5},
            "species_multipliers": {"chickadee": 1.2},
            "capacity": 2,
            "max_stock": 3.0,
            "tags": ["feeder"],
        }
    )

    assert definition.actions == {ActionKind.EAT, ActionKind.PERCH}
    assert definition.seasonal_multipliers == {Season.WINTER: 1.5}
    assert definition.capacity == 2
    assert definition.detection_range == 200.0
    assert definition.create(ObjectId(9), 1.0, 2.0).stock == 3.0


def test_definition_rejects_unknown_action() -> None:
    with pytest.raises(ValueError):
        SmartObjectDefinition.from_dict(
            {"id": "x", "actions": ["juggle"], "base_utility": 0.5}
        )


def test_object_cannot_offer_self_directed_action() -> None:
    with pytest.raises(ValueError, match="self-directed"):
        SmartObjectDefinition("perch_of_fear", frozenset({ActionKind.FLEE}), 0.5)


def test_unknown_definition_id() -> None:
    with pytest.raises(ValueError):
        get_definition("trampoline")


def test_catalog_only_offers_object_actions() -> None:
    for definition in OBJECT_DEFINITIONS.values():
        assert definition.actions
        assert 0.0 < definition.base_utility <= 1.0


def test_regenerate_refills_stock_and_counts_down_cooldown() -> None:
    feeder = _feeder()
    feeder.stock = 9.99
    feeder.cooldown_remaining = 0.5

    feeder.regenerate(2.0)

    assert feeder.stock == 10.0
    assert feeder.cooldown_remaining == 0.0
    assert not feeder.on_cooldown

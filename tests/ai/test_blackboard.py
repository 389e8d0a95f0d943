"""Tests for per-agent state: needs, habituation, cache entries, movement."""

import pytest

from aviary import config
from aviary.ai.actions import ActionKind
from aviary.ai.blackboard import Blackboard, CacheEntry, Needs, Traits
from aviary.types import ObjectId, SimTime
from tests.helpers import make_agent

FEEDER = ObjectId(1)
OAK = ObjectId(2)


def _entry(site: ObjectId = OAK, food: float = 0.5, **kwargs: float) -> CacheEntry:
    return CacheEntry(site, (0.0, 0.0), food, SimTime(0.0), **kwargs)


# ---------------------------------------------------------------------------
# Needs
# ---------------------------------------------------------------------------


def test_needs_are_clamped() -> None:
    needs = Needs()
    needs.set("hunger", 1.5)
    assert needs.hunger == 1.0
    assert needs.adjust("thirst", -2.0) == 0.0


def test_fatigue_is_inverse_energy() -> None:
    needs = Needs(energy=0.25)
    assert needs.get("fatigue") == pytest.approx(0.75)
    assert needs.urgency("energy") == pytest.approx(0.75)
    assert needs.urgency("hunger") == needs.hunger


def test_unknown_need_raises() -> None:
    needs = Needs()
    with pytest.raises(KeyError):
        needs.get("boredom")
    with pytest.raises(KeyError):
        needs.set("fatigue", 0.5)


# ---------------------------------------------------------------------------
# Habituation
# ---------------------------------------------------------------------------


def test_habituation_recovers_over_cycles() -> None:
    board = Blackboard()
    board.habituate(FEEDER, ActionKind.EAT, 0.5)

    factors = []
    for _ in range(config.HABITUATION_CYCLES + 1):
        factors.append(board.habituation_factor(FEEDER, ActionKind.EAT))
        board.age_habituation()

    assert factors[0] == pytest.approx(0.5)
    assert all(a < b for a, b in zip(factors, factors[1:], strict=False))
    assert factors[-1] == 1.0
    assert not board.habituation


def test_habituation_is_per_object_and_kind() -> None:
    board = Blackboard()
    board.habituate(FEEDER, ActionKind.EAT, 0.5)
    assert board.habituation_factor(FEEDER, ActionKind.PERCH) == 1.0
    assert board.habituation_factor(OAK, ActionKind.EAT) == 1.0


def test_zero_penalty_records_nothing() -> None:
    board = Blackboard()
    board.habituate(FEEDER, ActionKind.REST, 0.0)
    assert not board.habituation


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


def test_store_respects_capacity() -> None:
    board = Blackboard(traits=Traits(max_cache_capacity=2))
    assert board.store_cache(_entry())
    assert board.store_cache(_entry())
    assert not board.store_cache(_entry())
    assert board.cache_free == 0


def test_birds_without_capacity_cannot_cache() -> None:
    board = Blackboard()
    assert board.cache_free == 0
    assert not board.store_cache(_entry())


def test_take_cache_removes_best_entry_at_site() -> None:
    board = Blackboard(traits=Traits(max_cache_capacity=4))
    stale = _entry(freshness=0.2)
    fresh = _entry(freshness=0.9)
    elsewhere = _entry(site=FEEDER, freshness=1.0)
    for entry in (stale, fresh, elsewhere):
        board.store_cache(entry)

    assert board.take_cache(OAK) is fresh
    assert board.cache_entries == [stale, elsewhere]
    assert board.take_cache(ObjectId(99)) is None


def test_cache_entry_spoils() -> None:
    entry = _entry(decay_rate=0.5)
    assert not entry.decay(1.0)
    assert entry.freshness == pytest.approx(0.5)
    assert entry.decay(1.0)
    assert entry.quality == 0.0


def test_retrieval_score_prefers_near_entries() -> None:
    entry = _entry()
    assert entry.retrieval_score(0.0) == pytest.approx(0.7)
    assert entry.retrieval_score(config.CACHE_DISTANCE_SCALE * 2) == pytest.approx(0.6)


def test_best_retrieval_score_is_measured_from_the_bird() -> None:
    board = Blackboard(traits=Traits(max_cache_capacity=3))
    assert board.best_retrieval_score((0.0, 0.0)) == 0.0

    board.store_cache(_entry(freshness=0.2))
    board.store_cache(_entry(food=config.CACHE_FOOD_AMOUNT))

    # A freshly stored entry nearby is worth going back for.
    assert board.best_retrieval_score((0.0, 0.0)) == pytest.approx(0.7)
    assert board.best_retrieval_score((1000.0, 0.0)) == pytest.approx(0.6)


# ---------------------------------------------------------------------------
# Agent movement
# ---------------------------------------------------------------------------


def test_move_toward_steps_and_arrives() -> None:
    agent = make_agent(x=0.0, y=0.0)
    assert not agent.move_toward((10.0, 0.0), 4.0)
    assert agent.position == (4.0, 0.0)
    assert agent.heading == (1.0, 0.0)
    assert agent.move_toward((10.0, 0.0), 20.0)
    assert agent.position == (10.0, 0.0)


def test_blackboard_exposes_commitment_target() -> None:
    agent = make_agent()
    assert agent.blackboard.target is None
    assert agent.blackboard.action is None

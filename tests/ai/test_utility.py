"""Tests for response curves and the per-agent decision context."""

import pytest

from aviary.ai.actions import ActionKind
from aviary.ai.blackboard import CandidateAction
from aviary.ai.utility import Consideration, ResponseCurve, ResponseCurveType
from aviary.environment import Season, WeatherState
from aviary.types import ObjectId, SimTime
from tests.helpers import make_agent, make_context, time_at


@pytest.mark.parametrize(
    ("curve", "value", "expected"),
    [
        (ResponseCurve(ResponseCurveType.LINEAR), 0.3, 0.3),
        (ResponseCurve(ResponseCurveType.INVERSE), 0.3, 0.7),
        (ResponseCurve(ResponseCurveType.EXPONENTIAL, exponent=2.0), 0.5, 0.25),
        (ResponseCurve(ResponseCurveType.STEP, threshold=0.5), 0.5, 1.0),
        (ResponseCurve(ResponseCurveType.STEP, threshold=0.5), 0.49, 0.0),
        (ResponseCurve(ResponseCurveType.BELL, peak=0.5, width=0.5), 0.75, 0.5),
        (ResponseCurve(ResponseCurveType.LINEAR), 1.5, 1.0),
    ],
)
def test_response_curves(curve: ResponseCurve, value: float, expected: float) -> None:
    assert curve.evaluate(value) == pytest.approx(expected)


def test_consideration_reads_context_inputs() -> None:
    agent = make_agent(hunger=0.6)
    context = make_context(agent)
    linear = ResponseCurve(ResponseCurveType.LINEAR)
    assert Consideration("hunger", linear).evaluate(context) == pytest.approx(0.6)
    assert Consideration("no_such_input", linear).evaluate(context) == 0.0


# ---------------------------------------------------------------------------
# DecisionContext.build
# ---------------------------------------------------------------------------


def test_larger_predator_is_a_threat() -> None:
    cardinal = make_agent("cardinal", 0.0, 0.0, agent_id=1)
    hawk = make_agent("red_tailed_hawk", 50.0, 0.0, agent_id=2)

    context = make_context(cardinal, others=[hawk])

    assert context.flag("predator_nearby")
    assert context.threat_position == (50.0, 0.0)
    assert not context.flag("prey_nearby")


def test_predator_sees_prey_but_not_itself_as_threat() -> None:
    hawk = make_agent("red_tailed_hawk", 0.0, 0.0, agent_id=1)
    sparrow = make_agent("sparrow", 0.0, 90.0, agent_id=2)

    context = make_context(hawk, others=[sparrow])

    assert context.flag("prey_nearby")
    assert context.prey_position == (0.0, 90.0)
    assert not context.flag("predator_nearby")


def test_songbirds_never_see_prey() -> None:
    cardinal = make_agent("cardinal", agent_id=1)
    sparrow = make_agent("sparrow", 10.0, 0.0, agent_id=2)
    assert not make_context(cardinal, others=[sparrow]).flag("prey_nearby")


def test_same_species_birds_form_a_flock() -> None:
    me = make_agent("chickadee", 0.0, 0.0, agent_id=1)
    mate = make_agent("chickadee", 40.0, 0.0, agent_id=2)
    far = make_agent("chickadee", 150.0, 0.0, agent_id=3)
    robin = make_agent("robin", 10.0, 0.0, agent_id=4)

    context = make_context(me, others=[mate, far, robin])

    assert context.flock_size == 1
    assert context.flock_center == (95.0, 0.0)
    assert context.flag("flockmates_nearby")
    assert context.flag("rival_nearby")
    assert context.rival_position == (40.0, 0.0)
    assert context.nearby_agents == 2  # mate and robin within signal radius


def test_lone_bird_has_no_social_anchors() -> None:
    context = make_context(make_agent())
    assert context.flock_center is None
    assert context.rival_position is None
    assert context.threat_position is None
    assert context.nearby_agents == 0


def test_season_flags() -> None:
    agent = make_agent()
    spring = make_context(agent, time=time_at(season=Season.SPRING))
    winter = make_context(agent, time=time_at(season=Season.WINTER))
    assert spring.flag("breeding_season")
    assert spring.flag("migration_period")
    assert not winter.flag("breeding_season")
    assert not winter.flag("migration_period")


def test_good_soaring_from_wind_or_thermals() -> None:
    agent = make_agent("red_tailed_hawk")
    calm = WeatherState(wind_strength=0.1, thermal_strength=0.2)
    thermals = WeatherState(wind_strength=0.1, thermal_strength=0.6)
    assert not make_context(agent, weather=calm).flag("good_soaring")
    assert make_context(agent, weather=thermals).flag("good_soaring")


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


def test_food_abundance_follows_best_food_candidate_and_season() -> None:
    agent = make_agent()
    agent.blackboard.candidates[ActionKind.EAT] = CandidateAction(
        ObjectId(1), 0.5, 10.0, SimTime(0.0)
    )
    spring = make_context(agent, time=time_at(season=Season.SPRING))
    winter = make_context(agent, time=time_at(season=Season.WINTER))
    assert spring.get_input("food_abundance") == pytest.approx(0.6)
    assert winter.get_input("food_abundance") == pytest.approx(0.35)


def test_wind_fear_only_for_small_birds() -> None:
    windy = WeatherState(wind_strength=0.9)
    sparrow = make_context(make_agent("sparrow"), weather=windy)
    jay = make_context(make_agent("blue_jay"), weather=windy)
    assert sparrow.get_input("wind_fear") == pytest.approx(0.54)
    assert jay.get_input("wind_fear") == 0.0


def test_dusk_proximity_peaks_at_dusk() -> None:
    agent = make_agent()
    assert make_context(agent, time=time_at(hour=19.0)).get_input(
        "dusk_proximity"
    ) == pytest.approx(1.0)
    noon = make_context(agent, time=time_at(hour=12.0))
    assert noon.get_input("dusk_proximity") == 0.0


def test_cache_inputs() -> None:
    jay = make_context(make_agent("blue_jay"))
    cardinal = make_context(make_agent("cardinal"))
    assert jay.get_input("cache_free") == 8.0
    assert jay.get_input("cache_space") == 1.0
    assert cardinal.get_input("cache_space") == 0.0
    assert jay.get_input("best_cache_quality") == 0.0


def test_derived_inputs() -> None:
    agent = make_agent(energy=0.3, fear=0.2)
    context = make_context(agent, weather=WeatherState(weather_fear=0.4))
    assert context.get_input("fatigue") == pytest.approx(0.7)
    assert context.get_input("combined_fear") == pytest.approx(0.6)
    assert context.get_input("unknown") is None

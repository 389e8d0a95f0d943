"""Default override rule families and per-species rule tables.

Each family is an ordered list of rules for one concern (weather panic,
critical needs, one species' quirks, social drives). A species profile
lists the families it uses in `rule_tags`; `rules_for_species` composes
them in that order. A later family that defines a rule with an existing
name replaces it in place.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from aviary.ai.actions import ActionKind, BirdState
from aviary.ai.rules import (
    ActionAvailable,
    ActionNotAvailable,
    AnyOf,
    CandidateTagged,
    Flag,
    FlockBelowPreferred,
    InputAbove,
    InputBelow,
    InternalStateAbove,
    InternalStateBelow,
    OverrideRule,
    PreferredFoodAvailable,
    RuleSet,
    SeasonIs,
    TimeRange,
    compose_rules,
)
from aviary.ai.species import SpeciesProfile
from aviary.environment import Season

logger = logging.getLogger(__name__)

# Weather severe enough to drop everything and bolt.
WEATHER_EMERGENCY: list[OverrideRule] = [
    OverrideRule(
        "weather_panic",
        (InputAbove("weather_fear", 0.8),),
        ActionKind.FLEE,
        needs_target=False,
        anchor="threat",
    ),
    OverrideRule(
        "fear_flight",
        (InputAbove("combined_fear", 0.7),),
        ActionKind.FLEE,
        needs_target=False,
        anchor="threat",
    ),
]

CRITICAL_NEEDS: list[OverrideRule] = [
    OverrideRule("starving", (InternalStateAbove("hunger", 0.9),), ActionKind.EAT),
    OverrideRule("parched", (InternalStateAbove("thirst", 0.9),), ActionKind.DRINK),
    OverrideRule(
        "exhausted",
        (InternalStateBelow("energy", 0.2),),
        ActionKind.REST,
        needs_target=False,
    ),
]

# Very high metabolism: refuel early and guard nectar.
HUMMINGBIRD: list[OverrideRule] = [
    OverrideRule(
        "nectar_refuel",
        (InternalStateBelow("energy", 0.4),),
        ActionKind.HOVER_FEED,
    ),
    OverrideRule(
        "emergency_feeding",
        (InternalStateBelow("energy", 0.4), ActionNotAvailable(ActionKind.HOVER_FEED)),
        ActionKind.EAT,
    ),
    OverrideRule(
        "defend_nectar",
        (
            InternalStateAbove("territorial_stress", 0.4),
            ActionAvailable(ActionKind.HOVER_FEED),
        ),
        ActionKind.CHALLENGE,
        needs_target=False,
        anchor="rival",
    ),
]

BLUE_JAY: list[OverrideRule] = [
    OverrideRule(
        "feeder_dominance",
        (InputAbove("dominance", 0.7), InputAbove("nearby_agents", 0)),
        ActionKind.EAT,
        signal="intimidate",
    ),
    OverrideRule(
        "fall_caching",
        (InputAbove("intelligence", 0.8), SeasonIs(frozenset({Season.FALL}))),
        ActionKind.CACHE,
    ),
    OverrideRule(
        "mob_predator",
        (Flag("predator_nearby"),),
        ActionKind.CHALLENGE,
        needs_target=False,
        signal="mobbing_call",
        anchor="threat",
    ),
]

CHICKADEE: list[OverrideRule] = [
    OverrideRule(
        "seek_flock",
        (
            InternalStateAbove("social_need", 0.3),
            InputBelow("flock_size", 2),
            Flag("flockmates_nearby"),
        ),
        ActionKind.FLOCK,
        needs_target=False,
        anchor="flock",
    ),
    OverrideRule(
        "acrobatic_suet",
        (InternalStateAbove("energy", 0.6), CandidateTagged(ActionKind.EAT, "suet")),
        ActionKind.EAT,
    ),
    OverrideRule(
        "winter_huddle",
        (
            SeasonIs(frozenset({Season.WINTER})),
            InputBelow("temperature", 0.3),
            InternalStateBelow("social_need", 0.8),
        ),
        ActionKind.FLOCK,
        needs_target=False,
        anchor="flock",
    ),
]

HAWK: list[OverrideRule] = [
    OverrideRule(
        "hunt_prey",
        (
            InternalStateAbove("hunger", 0.6),
            InternalStateAbove("energy", 0.5),
            Flag("prey_nearby"),
        ),
        ActionKind.HUNT,
        needs_target=False,
        anchor="prey",
    ),
    OverrideRule(
        "soar_search",
        (
            InternalStateAbove("energy", 0.4),
            InternalStateAbove("hunger", 0.3),
            Flag("good_soaring"),
        ),
        ActionKind.SOAR,
        needs_target=False,
    ),
    OverrideRule(
        "defend_hunting_ground",
        (Flag("rival_nearby"),),
        ActionKind.CHALLENGE,
        needs_target=False,
        anchor="rival",
    ),
]

OWL: list[OverrideRule] = [
    OverrideRule(
        "night_hunt",
        (
            TimeRange(20.0, 6.0),
            InternalStateAbove("hunger", 0.5),
            InternalStateAbove("energy", 0.4),
            Flag("prey_nearby"),
        ),
        ActionKind.HUNT,
        needs_target=False,
        anchor="prey",
    ),
    OverrideRule(
        "silent_patrol",
        (TimeRange(20.0, 6.0), InternalStateAbove("energy", 0.6)),
        ActionKind.PATROL,
        needs_target=False,
    ),
    OverrideRule(
        "day_roost",
        (TimeRange(6.0, 20.0), InternalStateBelow("energy", 0.8)),
        ActionKind.ROOST,
        needs_target=False,
        state=BirdState.ROOSTING,
    ),
]

# Everyone without a dedicated family.
GENERALIST: list[OverrideRule] = [
    OverrideRule(
        "preferred_food",
        (PreferredFoodAvailable(), InternalStateAbove("hunger", 0.3)),
        ActionKind.EAT,
    ),
    OverrideRule(
        "grow_flock",
        (
            InputAbove("sociability", 0.7),
            FlockBelowPreferred(),
            Flag("flockmates_nearby"),
        ),
        ActionKind.FLOCK,
        needs_target=False,
        anchor="flock",
    ),
]

BASIC_NEEDS: list[OverrideRule] = [
    OverrideRule("evening_roost", (TimeRange(18.0, 20.0),), ActionKind.ROOST),
    OverrideRule("hungry", (InternalStateAbove("hunger", 0.6),), ActionKind.EAT),
    OverrideRule("thirsty", (InternalStateAbove("thirst", 0.5),), ActionKind.DRINK),
]

WEATHER_SHELTER: list[OverrideRule] = [
    OverrideRule(
        "storm_shelter", (InputAbove("shelter_urgency", 0.6),), ActionKind.SHELTER
    ),
    OverrideRule(
        "tired_shelter",
        (InputAbove("shelter_urgency", 0.3), InternalStateBelow("energy", 0.7)),
        ActionKind.SHELTER,
    ),
    OverrideRule("wind_shelter", (InputAbove("wind_fear", 0.4),), ActionKind.SHELTER),
]

FORAGING: list[OverrideRule] = [
    OverrideRule(
        "cache_surplus",
        (
            InputAbove("intelligence", 0.6),
            InternalStateBelow("hunger", 0.3),
            InternalStateAbove("energy", 0.6),
            InputAbove("cache_free", 0),
            InputAbove("food_abundance", 0.7),
        ),
        ActionKind.CACHE,
    ),
    OverrideRule(
        "retrieve_cache",
        (
            InputAbove("intelligence", 0.6),
            InternalStateAbove("hunger", 0.6),
            InputAbove("cache_count", 0),
            ActionNotAvailable(ActionKind.EAT),
            InputAbove("best_cache_quality", 0.5),
        ),
        ActionKind.RETRIEVE,
    ),
    OverrideRule(
        "ground_forage",
        (
            InternalStateAbove("hunger", 0.4),
            ActionNotAvailable(ActionKind.EAT),
            InputAbove("ground_preference", 0.3),
        ),
        ActionKind.FORAGE,
        needs_target=False,
    ),
    OverrideRule(
        "opportunistic_feeding",
        (
            InternalStateAbove("energy", 0.8),
            InternalStateBelow("hunger", 0.3),
            Flag("abundant_feeder"),
        ),
        ActionKind.EAT,
    ),
]

SOCIAL: list[OverrideRule] = [
    OverrideRule(
        "challenge_rival",
        (InternalStateAbove("territorial_stress", 0.7), Flag("rival_nearby")),
        ActionKind.CHALLENGE,
        needs_target=False,
        anchor="rival",
    ),
    OverrideRule(
        "courtship",
        (
            Flag("breeding_season"),
            InternalStateAbove("social_need", 0.6),
            InternalStateAbove("energy", 0.6),
        ),
        ActionKind.COURT,
    ),
    OverrideRule(
        "social_flocking",
        (
            InputAbove("sociability", 0.5),
            InternalStateAbove("social_need", 0.4),
            Flag("flockmates_nearby"),
        ),
        ActionKind.FLOCK,
        needs_target=False,
        anchor="flock",
    ),
    OverrideRule(
        "follow_companion",
        (
            InternalStateAbove("social_need", 0.3),
            InternalStateBelow("fear", 0.4),
            InternalStateAbove("energy", 0.4),
            Flag("flockmates_nearby"),
        ),
        ActionKind.FOLLOW,
        needs_target=False,
        anchor="flock",
    ),
    OverrideRule(
        "seasonal_flocking",
        (
            AnyOf((SeasonIs(frozenset({Season.WINTER})), Flag("migration_period"))),
            InternalStateAbove("social_need", 0.2),
            Flag("flockmates_nearby"),
        ),
        ActionKind.FLOCK,
        needs_target=False,
        anchor="flock",
    ),
]

RULE_FAMILIES: dict[str, list[OverrideRule]] = {
    "weather_emergency": WEATHER_EMERGENCY,
    "critical_needs": CRITICAL_NEEDS,
    "hummingbird": HUMMINGBIRD,
    "blue_jay": BLUE_JAY,
    "chickadee": CHICKADEE,
    "hawk": HAWK,
    "owl": OWL,
    "generalist": GENERALIST,
    "basic_needs": BASIC_NEEDS,
    "weather_shelter": WEATHER_SHELTER,
    "foraging": FORAGING,
    "social": SOCIAL,
}

_cache: dict[tuple[str, ...], RuleSet] = {}


def compose_families(tags: Sequence[str]) -> RuleSet:
    """Compose the default families named by ``tags``, in order."""
    key = tuple(tags)
    rule_set = _cache.get(key)
    if rule_set is None:
        rule_set = compose_rules(RULE_FAMILIES, key)
        _cache[key] = rule_set
        logger.debug(f"Composed {len(rule_set)} rules for tags {key}")
    return rule_set


def rules_for_species(species: SpeciesProfile) -> RuleSet:
    return compose_families(species.rule_tags)

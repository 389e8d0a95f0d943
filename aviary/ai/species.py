"""Species archetypes.

A `SpeciesProfile` holds everything that differs between species but not
between individuals: perception range, movement speed, which action kinds
it looks for, which rule families drive its override table, and the
distributions individual traits are sampled from at spawn.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias

from aviary.ai.actions import ActionKind
from aviary.ai.blackboard import Agent, Blackboard, Needs, Traits

if TYPE_CHECKING:
    from aviary.types import AgentId
    from aviary.util.rng import RNG


@dataclass(frozen=True)
class TraitDistribution:
    """Normal distribution for a [0, 1] trait, clamped to range."""

    mean: float = 0.5
    std_dev: float = 0.1
    min_val: float = 0.0
    max_val: float = 1.0

    def sample(self, random_stream: RNG) -> float:
        sampled = random_stream.gauss(self.mean, self.std_dev)
        return max(self.min_val, min(self.max_val, sampled))


# Semantic alias for species behaviour tags ("diurnal", "predator", ...).
SpeciesTag: TypeAlias = str

# Object actions every songbird looks for.
_SONGBIRD_ACTIONS = frozenset(
    {
        ActionKind.EAT,
        ActionKind.DRINK,
        ActionKind.BATHE,
        ActionKind.PERCH,
        ActionKind.PLAY,
        ActionKind.EXPLORE,
        ActionKind.NEST,
        ActionKind.ROOST,
        ActionKind.SHELTER,
        ActionKind.COURT,
    }
)

_RAPTOR_ACTIONS = frozenset(
    {
        ActionKind.PERCH,
        ActionKind.ROOST,
        ActionKind.SHELTER,
        ActionKind.DRINK,
        ActionKind.NEST,
    }
)


@dataclass(eq=False)
class SpeciesProfile:
    """Defines a species archetype and creates agents from it."""

    id: str
    rule_tags: tuple[str, ...]
    size: int
    tags: tuple[SpeciesTag, ...] = ("diurnal",)
    display_name: str = ""
    perception_range: float = 200.0
    speed_multiplier: float = 1.0
    allowed_actions: frozenset[ActionKind] = _SONGBIRD_ACTIONS
    preferred_food: str | None = None
    preferred_flock_size: int = 1
    max_cache_capacity: int = 0
    intelligence_dist: TraitDistribution = field(default_factory=TraitDistribution)
    dominance_dist: TraitDistribution = field(default_factory=TraitDistribution)
    sociability_dist: TraitDistribution = field(default_factory=TraitDistribution)
    hunting_dist: TraitDistribution = field(
        default_factory=lambda: TraitDistribution(0.0, 0.0)
    )
    ground_preference_dist: TraitDistribution = field(
        default_factory=lambda: TraitDistribution(0.3, 0.1)
    )

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.id.replace("_", " ").title()

    @property
    def name(self) -> str:
        return self.id

    @property
    def is_nocturnal(self) -> bool:
        return "nocturnal" in self.tags

    @property
    def is_predator(self) -> bool:
        return "predator" in self.tags

    def sample_traits(self, random_stream: RNG) -> Traits:
        return Traits(
            intelligence=self.intelligence_dist.sample(random_stream),
            dominance=self.dominance_dist.sample(random_stream),
            sociability=self.sociability_dist.sample(random_stream),
            size=self.size,
            max_cache_capacity=self.max_cache_capacity,
            hunting_success_rate=self.hunting_dist.sample(random_stream),
            ground_preference=self.ground_preference_dist.sample(random_stream),
        )

    def sample_needs(self, random_stream: RNG) -> Needs:
        return Needs(
            hunger=random_stream.uniform(0.2, 0.5),
            thirst=random_stream.uniform(0.2, 0.5),
            energy=random_stream.uniform(0.6, 0.9),
            social_need=random_stream.uniform(0.1, 0.4),
        )

    def create(
        self,
        agent_id: AgentId,
        x: float,
        y: float,
        random_stream: RNG,
    ) -> Agent:
        """Create an agent with needs and traits sampled from this profile."""
        blackboard = Blackboard(
            needs=self.sample_needs(random_stream),
            traits=self.sample_traits(random_stream),
        )
        return Agent(agent_id=agent_id, species=self, x=x, y=y, blackboard=blackboard)


_SONGBIRD_RULES = (
    "weather_emergency",
    "critical_needs",
    "generalist",
    "basic_needs",
    "weather_shelter",
    "foraging",
    "social",
)

CARDINAL = SpeciesProfile(
    id="cardinal",
    rule_tags=_SONGBIRD_RULES,
    size=2,
    preferred_food="seed",
    preferred_flock_size=2,
    dominance_dist=TraitDistribution(0.6, 0.1),
    sociability_dist=TraitDistribution(0.4, 0.1),
    ground_preference_dist=TraitDistribution(0.5, 0.1),
)

# Bold and clever. Caches acorns in fall and mobs predators.
BLUE_JAY = SpeciesProfile(
    id="blue_jay",
    rule_tags=(
        "weather_emergency",
        "critical_needs",
        "blue_jay",
        "generalist",
        "basic_needs",
        "weather_shelter",
        "foraging",
        "social",
    ),
    size=3,
    perception_range=260.0,
    allowed_actions=_SONGBIRD_ACTIONS | {ActionKind.CACHE},
    preferred_food="nut",
    preferred_flock_size=3,
    max_cache_capacity=8,
    intelligence_dist=TraitDistribution(0.85, 0.05),
    dominance_dist=TraitDistribution(0.75, 0.1),
    sociability_dist=TraitDistribution(0.6, 0.1),
)

ROBIN = SpeciesProfile(
    id="robin",
    rule_tags=_SONGBIRD_RULES,
    size=2,
    preferred_food="worm",
    preferred_flock_size=4,
    sociability_dist=TraitDistribution(0.6, 0.1),
    ground_preference_dist=TraitDistribution(0.85, 0.05),
)

SPARROW = SpeciesProfile(
    id="sparrow",
    rule_tags=_SONGBIRD_RULES,
    size=1,
    perception_range=160.0,
    preferred_food="seed",
    preferred_flock_size=6,
    dominance_dist=TraitDistribution(0.3, 0.1),
    sociability_dist=TraitDistribution(0.8, 0.1),
    ground_preference_dist=TraitDistribution(0.7, 0.1),
)

# Small, social, clever. Hoards seeds in bark and huddles in winter flocks.
CHICKADEE = SpeciesProfile(
    id="chickadee",
    rule_tags=(
        "weather_emergency",
        "critical_needs",
        "chickadee",
        "generalist",
        "basic_needs",
        "weather_shelter",
        "foraging",
        "social",
    ),
    size=1,
    allowed_actions=_SONGBIRD_ACTIONS | {ActionKind.CACHE},
    preferred_food="suet",
    preferred_flock_size=5,
    max_cache_capacity=12,
    intelligence_dist=TraitDistribution(0.75, 0.05),
    dominance_dist=TraitDistribution(0.3, 0.1),
    sociability_dist=TraitDistribution(0.85, 0.05),
)

RUBY_THROATED_HUMMINGBIRD = SpeciesProfile(
    id="ruby_throated_hummingbird",
    rule_tags=(
        "weather_emergency",
        "critical_needs",
        "hummingbird",
        "basic_needs",
        "weather_shelter",
        "social",
    ),
    size=1,
    perception_range=180.0,
    speed_multiplier=1.4,
    allowed_actions=frozenset(
        {
            ActionKind.HOVER_FEED,
            ActionKind.EAT,
            ActionKind.DRINK,
            ActionKind.BATHE,
            ActionKind.PERCH,
            ActionKind.ROOST,
            ActionKind.SHELTER,
            ActionKind.NEST,
        }
    ),
    preferred_food="nectar",
    dominance_dist=TraitDistribution(0.7, 0.1),
    sociability_dist=TraitDistribution(0.15, 0.05),
    ground_preference_dist=TraitDistribution(0.0, 0.0),
)

RED_TAILED_HAWK = SpeciesProfile(
    id="red_tailed_hawk",
    rule_tags=(
        "weather_emergency",
        "critical_needs",
        "hawk",
        "basic_needs",
        "weather_shelter",
        "social",
    ),
    size=5,
    tags=("diurnal", "predator"),
    perception_range=400.0,
    speed_multiplier=1.2,
    allowed_actions=_RAPTOR_ACTIONS,
    dominance_dist=TraitDistribution(0.9, 0.05),
    sociability_dist=TraitDistribution(0.1, 0.05),
    hunting_dist=TraitDistribution(0.4, 0.1),
    ground_preference_dist=TraitDistribution(0.1, 0.05),
)

GREAT_HORNED_OWL = SpeciesProfile(
    id="great_horned_owl",
    rule_tags=(
        "weather_emergency",
        "critical_needs",
        "owl",
        "weather_shelter",
        "social",
    ),
    size=5,
    tags=("nocturnal", "predator"),
    perception_range=320.0,
    allowed_actions=_RAPTOR_ACTIONS,
    dominance_dist=TraitDistribution(0.85, 0.05),
    sociability_dist=TraitDistribution(0.1, 0.05),
    hunting_dist=TraitDistribution(0.5, 0.1),
    ground_preference_dist=TraitDistribution(0.2, 0.05),
)

SPECIES: dict[str, SpeciesProfile] = {
    profile.id: profile
    for profile in (
        CARDINAL,
        BLUE_JAY,
        ROBIN,
        SPARROW,
        CHICKADEE,
        RUBY_THROATED_HUMMINGBIRD,
        RED_TAILED_HAWK,
        GREAT_HORNED_OWL,
    )
}


def get_species(species_id: str) -> SpeciesProfile:
    """Look up a species profile by id.

    Raises:
        ValueError: If no species has that id.
    """
    profile = SPECIES.get(species_id)
    if profile is None:
        raise ValueError(f"Unknown species: {species_id!r}")
    return profile

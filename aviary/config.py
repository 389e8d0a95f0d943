"""
Configuration constants.

Centralizes all magic numbers and configuration values used throughout the
decision core. Organized by functional area for easy maintenance.
"""

# =============================================================================
# GENERAL
# =============================================================================

# RANDOM_SEED = None
RANDOM_SEED = "backyard1"

# Master switch for autonomous decision making. When False, agents keep
# executing their current commitment but never pick a new one.
BIRD_AI_ENABLED = True

# =============================================================================
# SCHEDULING
# =============================================================================

# Fixed simulation step used by Simulation.run(). Execution runs every tick.
FIXED_TIMESTEP = 1.0 / 30.0

# Discovery refreshes candidate caches on this period (sim seconds).
DISCOVERY_PERIOD = 1.0

# Arbitration re-evaluates commitments on this period (sim seconds).
ARBITRATION_PERIOD = 2.0

# Worker threads used to process agents within a phase. 1 = sequential.
PHASE_WORKERS = 1

# =============================================================================
# TIME OF DAY & SEASONS
# =============================================================================

START_HOUR = 8.0  # Start at 8 AM
START_DAY_OF_YEAR = 120  # Late spring
SECONDS_PER_GAME_HOUR = 60.0  # 1 minute real time = 1 hour game time

DUSK_HOUR = 19.0
# Hours either side of dusk over which the urge to roost ramps up.
ROOST_WINDOW_HOURS = 3.0

# =============================================================================
# NEEDS
# =============================================================================

# Per-second drift applied to every agent's needs during Execution.
# Positive values grow the need, negative values relax it.
HUNGER_GROWTH_RATE = 0.01
THIRST_GROWTH_RATE = 0.012
ENERGY_DRAIN_RATE = 0.005
SOCIAL_NEED_GROWTH_RATE = 0.004
TERRITORIAL_STRESS_RELAX_RATE = 0.01

# Fraction of current fear shed per second.
FEAR_RELAX_RATE = 0.5

# =============================================================================
# MOVEMENT
# =============================================================================

WANDER_SPEED = 30.0
MOVE_TO_TARGET_SPEED = 80.0
FLEE_SPEED = 120.0
PATROL_SPEED = 45.0
SOAR_SPEED = 60.0

# Radians per second the wander heading rotates.
WANDER_TURN_RATE = 0.5

# Distance at which a moving agent counts as arrived at its target.
INTERACTION_RANGE = 25.0

# =============================================================================
# ARBITRATION
# =============================================================================

# Candidates scoring at or below this fall back to the default state.
ARBITRATION_SCORE_FLOOR = 0.05

# Persistence bonus for continuing the current commitment. The minimum keeps
# a fresh commitment from tying with the candidate that created it; the
# weight scales with how far through the commitment the agent is.
PERSISTENCE_MINIMUM = 0.01
PERSISTENCE_WEIGHT = 0.3

# Activity multiplier applied outside an agent's active period
# (night for diurnal species, day for nocturnal ones).
OFF_PERIOD_ACTIVITY = 0.1
TWILIGHT_ACTIVITY = 0.6

# =============================================================================
# REGISTRY
# =============================================================================

SPATIAL_CELL_SIZE = 64

# Each current user of an object reduces its appeal by this fraction.
CROWDING_PENALTY_PER_USER = 0.2
CROWDING_MIN_FACTOR = 0.1

# Number of discovery passes a completed interaction's utility decay lasts.
HABITUATION_CYCLES = 3

# =============================================================================
# CACHING
# =============================================================================

CACHE_FOOD_AMOUNT = 0.5
CACHE_FRESHNESS_DECAY_RATE = 0.002  # freshness lost per second
RETRIEVE_HUNGER_RELIEF = 0.6

# Normalizes cache distance when scoring retrieval candidates.
CACHE_DISTANCE_SCALE = 500.0

# =============================================================================
# SOCIAL SIGNALS
# =============================================================================

SIGNAL_RADIUS = 120.0
INTIMIDATION_FEAR = 0.3
MOBBING_STRESS = 0.25
FLOCK_RADIUS = 80.0

from __future__ import annotations

from typing import NewType, TypeAlias

# =============================================================================
# SPATIAL TYPES
# =============================================================================

# World positions are continuous. Units are garden "pixels", the same scale
# detection ranges and movement speeds are expressed in.
WorldCoord: TypeAlias = float
WorldPos: TypeAlias = tuple[WorldCoord, WorldCoord]  # Example: (150.0, 100.0)

# Continuous unit-ish direction vector used for wandering/fleeing drift.
Heading: TypeAlias = tuple[float, float]  # Example: (1.0, 0.3)

# =============================================================================
# TIME-RELATED TYPES
# =============================================================================

# Simulated seconds elapsed during one scheduler tick. Execution runs once per
# tick; Discovery and Arbitration accumulate these until their period elapses.
DeltaTime = NewType("DeltaTime", float)

# Absolute simulated time in seconds since the simulation started.
SimTime = NewType("SimTime", float)

# Hour of day in [0.0, 24.0).
HourOfDay: TypeAlias = float

# =============================================================================
# IDENTITY TYPES
# =============================================================================

# Unique identifier for a simulated bird. Assigned sequentially at spawn and
# used as the key for agent lookup, event payloads and deterministic ordering.
AgentId = NewType("AgentId", int)

# Unique identifier for a smart object in the registry. Agents only ever hold
# ObjectIds (never the object itself), so a despawned object cannot be kept
# alive or mutated through a stale reference.
ObjectId = NewType("ObjectId", int)

# Random seed for deterministic runs. Can be an int for numeric seeds or a
# descriptive string like "backyard1".
RandomSeed: TypeAlias = int | str | None

# =============================================================================
# UTILITY TYPES
# =============================================================================

# Generic min/max float range (e.g., interaction duration ranges)
FloatRange: TypeAlias = tuple[float, float]

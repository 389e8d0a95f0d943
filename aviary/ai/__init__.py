"""
Decision core for autonomous bird behavior.

Each simulated bird runs three passes over its own blackboard: Discovery
refreshes the candidate cache from the object registry, Arbitration picks a
commitment (species override rules first, generic utility scoring second),
and Execution drives the committed state every tick.

Package structure:
    actions       - ActionKind, BirdState and per-kind ActionPolicy tuning.
    blackboard    - Agent, Blackboard, Needs, Traits, cache entries.
    commitment    - Commitment, CommitmentStatus, CommitmentPhase.
    utility       - ResponseCurve, Consideration, DecisionContext.
    rules         - Override rule conditions, RuleSet and the dict/JSON loader.
    species       - SpeciesProfile archetypes and trait distributions.
    species_rules - Default rule families and per-species composition.
    discovery     - Utility Discovery Pass.
    arbitration   - BehaviorArbiter and generic scoring.
    execution     - StateExecutor.

Modules import each other directly (the world registry depends on
`actions`), so nothing is re-exported here.
"""

"""AI package exports and the strategy registry."""

from __future__ import annotations

from typing import Sequence

from .probability import (
    HUNT_WEIGHT_EXPONENT,
    PLACEMENT_HIT_WEIGHT,
    ImprovedProbabilisticStrategy,
    ProbabilisticStrategy,
    placement_scores,
)
from .targeting import (
    HuntTargetStrategy,
    ImprovedHuntTargetStrategy,
    ParitySubset,
    RandomInt,
    RandomStrategy,
    Skills,
    TargetingStrategy,
    default_random_int,
)

STRATEGIES: dict[Skills, type[TargetingStrategy]] = {
    strategy.skills: strategy
    for strategy in (
        RandomStrategy,
        HuntTargetStrategy,
        ImprovedHuntTargetStrategy,
        ProbabilisticStrategy,
        ImprovedProbabilisticStrategy,
    )
}


def create_strategy(
    skills: Skills | str,
    n_cols: int,
    n_rows: int,
    ship_sizes: Sequence[int],
    rand_int: RandomInt | None = None,
) -> TargetingStrategy:
    """Build the targeting strategy named by ``skills`` for an opponent board."""
    return STRATEGIES[Skills(skills)](n_cols, n_rows, ship_sizes, rand_int)


__all__ = [
    "HUNT_WEIGHT_EXPONENT",
    "PLACEMENT_HIT_WEIGHT",
    "STRATEGIES",
    "HuntTargetStrategy",
    "ImprovedHuntTargetStrategy",
    "ImprovedProbabilisticStrategy",
    "ParitySubset",
    "ProbabilisticStrategy",
    "RandomInt",
    "RandomStrategy",
    "Skills",
    "TargetingStrategy",
    "create_strategy",
    "default_random_int",
    "placement_scores",
]

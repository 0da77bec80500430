"""Placement-density targeting.

Each remaining cell is scored by the number of ways the unsunk opponent ships
could cover it, given what earlier attacks revealed. Placements covering cells
that were hit but not yet sunk are strongly favoured.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
import numpy.typing as npt
from numpy.lib.stride_tricks import sliding_window_view

from salvo.engine.outcome import AttackResult
from salvo.engine.ship import Coordinate

from .targeting import ParitySubset, RandomInt, Skills, TargetingStrategy

ScoreMap = npt.NDArray[np.float64]

PLACEMENT_HIT_WEIGHT = 100
"""A placement covering ``k`` unsunk hits counts ``PLACEMENT_HIT_WEIGHT ** k`` times."""

HUNT_WEIGHT_EXPONENT = 2
"""Hunt-mode draws are proportional to ``score ** HUNT_WEIGHT_EXPONENT``."""


def placement_scores(
    available: npt.NDArray[np.bool_],
    hits: npt.NDArray[np.bool_],
    ship_sizes: Iterable[int],
) -> ScoreMap:
    """Score every cell of a ``(n_cols, n_rows)`` grid.

    ``available`` marks cells a ship may still occupy (unattacked or hit but
    unsunk), ``hits`` the unsunk hits. A placement is counted once per ship
    length and axis for every cell it covers.
    Scores are floats, so long runs of hits grow large instead of wrapping.
    """
    scores = np.zeros(available.shape, dtype=np.float64)
    hit_counts = hits.astype(np.int64)
    base = float(PLACEMENT_HIT_WEIGHT)
    for length in ship_sizes:
        for axis in (0, 1):
            if length > available.shape[axis]:
                continue
            fits = sliding_window_view(available, length, axis=axis).all(axis=-1)
            covered = sliding_window_view(hit_counts, length, axis=axis).sum(axis=-1)
            weights = np.where(fits, np.power(base, covered), 0.0)
            starts = fits.shape[axis]
            for k in range(length):
                if axis == 0:
                    scores[k : k + starts, :] += weights
                else:
                    scores[:, k : k + starts] += weights
    return scores


class ProbabilisticStrategy(TargetingStrategy):
    """Attack the cell covered by the most consistent opponent placements."""

    skills = Skills.PROBABILISTIC

    def __init__(
        self,
        n_cols: int,
        n_rows: int,
        ship_sizes: Sequence[int],
        rand_int: RandomInt | None = None,
    ) -> None:
        super().__init__(n_cols, n_rows, ship_sizes, rand_int)
        self.hit_targets: dict[Coordinate, None] = {}

    def score_map(self) -> ScoreMap:
        available = np.zeros((self.n_cols, self.n_rows), dtype=bool)
        hits = np.zeros((self.n_cols, self.n_rows), dtype=bool)
        for coords in self.possible_targets:
            available[coords.col, coords.row] = True
        for coords in self.hit_targets:
            available[coords.col, coords.row] = True
            hits[coords.col, coords.row] = True
        return placement_scores(available, hits, self.opponent_ship_sizes)

    def select_target(self) -> Coordinate:
        candidates = list(self.possible_targets)
        if not candidates:
            return self._choose(candidates)
        scores = self.score_map()
        values = [float(scores[c.col, c.row]) for c in candidates]
        best = max(values)
        return self._choose([c for c, value in zip(candidates, values) if value == best])

    def record_outcome(self, result: AttackResult) -> None:
        self.possible_targets.pop(result.coords, None)
        if result.is_hit:
            self.hit_targets[result.coords] = None
        if result.is_sunk:
            for coords in result.sunk_ship_coords:
                self.hit_targets.pop(coords, None)
            self._forget_sunk_ship(result)


class ImprovedProbabilisticStrategy(ProbabilisticStrategy):
    """Probabilistic targeting with a weighted parity search while nothing is hit."""

    skills = Skills.IMPROVED_PROBABILISTIC

    def __init__(
        self,
        n_cols: int,
        n_rows: int,
        ship_sizes: Sequence[int],
        rand_int: RandomInt | None = None,
    ) -> None:
        super().__init__(n_cols, n_rows, ship_sizes, rand_int)
        self.parity = ParitySubset()
        self._min_ship_size_changed()

    def select_target(self) -> Coordinate:
        if self.hit_targets:
            return super().select_target()
        candidates = list(self.parity.cells) or list(self.possible_targets)
        if not candidates:
            return self._choose(candidates)
        scores = self.score_map()
        weights = np.array(
            [int(scores[c.col, c.row]) ** HUNT_WEIGHT_EXPONENT for c in candidates],
            dtype=np.int64,
        )
        return self._weighted_choice(candidates, weights)

    def record_outcome(self, result: AttackResult) -> None:
        self.parity.discard(result.coords)
        super().record_outcome(result)

    def _weighted_choice(
        self, candidates: Sequence[Coordinate], weights: npt.NDArray[np.int64]
    ) -> Coordinate:
        cumulative = np.cumsum(weights)
        total = int(cumulative[-1])
        if total <= 0:
            return self._choose(candidates)
        draw = self._rand_int(0, total - 1)
        return candidates[int(np.searchsorted(cumulative, draw, side="right"))]

    def _min_ship_size_changed(self) -> None:
        self.parity.rebuild(self.possible_targets, self.min_ship_size or 1, self._rand_int)

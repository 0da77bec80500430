"""Tests for placement-density scoring and the probabilistic strategies."""

import numpy as np

from salvo.ai import (
    PLACEMENT_HIT_WEIGHT,
    ImprovedProbabilisticStrategy,
    ProbabilisticStrategy,
    placement_scores,
)
from salvo.engine.outcome import AttackOutcome, AttackResult
from salvo.engine.ship import Coordinate


def lowest(low: int, high: int) -> int:
    return low


def highest(low: int, high: int) -> int:
    return high


def test_scores_count_covering_placements() -> None:
    available = np.ones((3, 1), dtype=bool)
    hits = np.zeros((3, 1), dtype=bool)
    scores = placement_scores(available, hits, [2])
    assert scores[:, 0].tolist() == [1, 2, 1]


def test_scores_on_square_board_use_both_axes() -> None:
    available = np.ones((3, 3), dtype=bool)
    hits = np.zeros((3, 3), dtype=bool)
    scores = placement_scores(available, hits, [3])
    assert (scores == 2).all()


def test_unavailable_cells_block_placements() -> None:
    available = np.array([[True], [False], [True]])
    hits = np.zeros((3, 1), dtype=bool)
    assert not placement_scores(available, hits, [2]).any()


def test_placements_through_hits_are_favoured() -> None:
    available = np.ones((3, 1), dtype=bool)
    hits = np.array([[True], [False], [False]])
    scores = placement_scores(available, hits, [2])
    assert scores[:, 0].tolist() == [PLACEMENT_HIT_WEIGHT, PLACEMENT_HIT_WEIGHT + 1, 1]


def test_long_runs_of_hits_do_not_overflow() -> None:
    available = np.ones((12, 1), dtype=bool)
    hits = np.ones((12, 1), dtype=bool)
    scores = placement_scores(available, hits, [10])
    single = float(PLACEMENT_HIT_WEIGHT) ** 10
    assert (scores > 0).all()
    assert scores[0, 0] == single
    assert scores[5, 0] == 3 * single
    assert scores[5, 0] > scores[1, 0] > scores[0, 0]


def test_ships_longer_than_the_board_score_nothing() -> None:
    available = np.ones((2, 2), dtype=bool)
    hits = np.zeros((2, 2), dtype=bool)
    assert not placement_scores(available, hits, [3]).any()


def test_probabilistic_targets_densest_cell() -> None:
    strategy = ProbabilisticStrategy(3, 3, [2], rand_int=lowest)
    assert int(strategy.score_map()[1, 1]) == 4
    assert strategy.select_target() == Coordinate(1, 1)


def test_probabilistic_follows_up_a_hit() -> None:
    strategy = ProbabilisticStrategy(3, 3, [2], rand_int=lowest)
    strategy.record_outcome(AttackResult(Coordinate(1, 1), AttackOutcome.HIT))
    assert list(strategy.hit_targets) == [Coordinate(1, 1)]
    # The four neighbours tie; the first in column order wins.
    assert strategy.select_target() == Coordinate(0, 1)
    assert strategy.select_target() in set(Coordinate(1, 1).neighbours())


def test_sinking_clears_hits_and_ship_size() -> None:
    strategy = ProbabilisticStrategy(5, 5, [2, 3], rand_int=lowest)
    strategy.record_outcome(AttackResult(Coordinate(2, 2), AttackOutcome.HIT))
    strategy.record_outcome(AttackResult(Coordinate(3, 3), AttackOutcome.HIT))
    strategy.record_outcome(
        AttackResult(
            Coordinate(2, 3),
            AttackOutcome.SUNK,
            sunk_ship="Destroyer",
            sunk_ship_coords=(Coordinate(2, 2), Coordinate(2, 3)),
        )
    )
    assert list(strategy.hit_targets) == [Coordinate(3, 3)]
    assert strategy.opponent_ship_sizes == [3]
    assert Coordinate(2, 3) not in strategy.possible_targets


def test_improved_probabilistic_draws_from_parity_cells() -> None:
    low = ImprovedProbabilisticStrategy(3, 3, [2], rand_int=lowest)
    high = ImprovedProbabilisticStrategy(3, 3, [2], rand_int=highest)
    assert list(low.parity.cells) == [
        Coordinate(0, 1),
        Coordinate(1, 0),
        Coordinate(1, 2),
        Coordinate(2, 1),
    ]
    # Equal weights split the draw range into equal slices.
    assert low.select_target() == Coordinate(0, 1)
    assert high.select_target() == Coordinate(2, 1)


def test_improved_probabilistic_weights_by_squared_score() -> None:
    draws: list[tuple[int, int]] = []

    def record(low: int, high: int) -> int:
        draws.append((low, high))
        return low

    strategy = ImprovedProbabilisticStrategy(3, 3, [2], rand_int=record)
    draws.clear()
    strategy.select_target()
    # Four parity cells, each covered by three placements.
    assert draws == [(0, 4 * 3**2 - 1)]


def test_improved_probabilistic_switches_to_density_after_a_hit() -> None:
    strategy = ImprovedProbabilisticStrategy(3, 3, [2], rand_int=lowest)
    strategy.record_outcome(AttackResult(Coordinate(0, 1), AttackOutcome.HIT))
    assert Coordinate(0, 1) not in strategy.parity
    assert strategy.select_target() == Coordinate(1, 1)


def test_improved_probabilistic_sinks_a_whole_fleet() -> None:
    ships = {
        "Cruiser": (Coordinate(1, 1), Coordinate(1, 2), Coordinate(1, 3)),
        "Destroyer": (Coordinate(4, 4), Coordinate(5, 4)),
    }
    afloat = {name: set(cells) for name, cells in ships.items()}
    strategy = ImprovedProbabilisticStrategy(6, 6, [3, 2])

    for shots in range(1, 37):
        coords = strategy.select_target()
        owner = next((name for name, cells in ships.items() if coords in cells), None)
        if owner is None:
            strategy.record_outcome(AttackResult(coords, AttackOutcome.MISS))
            continue
        afloat[owner].discard(coords)
        if afloat[owner]:
            strategy.record_outcome(AttackResult(coords, AttackOutcome.HIT))
            continue
        strategy.record_outcome(
            AttackResult(
                coords, AttackOutcome.SUNK, sunk_ship=owner, sunk_ship_coords=ships[owner]
            )
        )
        if not any(afloat.values()):
            break
    assert not any(afloat.values())
    assert shots <= 36
    assert not strategy.hit_targets

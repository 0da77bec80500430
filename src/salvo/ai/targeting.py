"""Targeting strategies that pick opponent cells from attack outcomes only.

A strategy never sees the opponent's fleet: it starts from every cell of a
board of known size and a known list of ship lengths, and narrows its belief
with each :class:`~salvo.engine.outcome.AttackResult` it is fed.
"""

from __future__ import annotations

import random
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, ClassVar, Iterable, Sequence

from salvo.engine.outcome import AttackResult
from salvo.engine.ship import Coordinate
from salvo.errors import NoTargetsAvailableError

RandomInt = Callable[[int, int], int]
"""Returns an integer in the inclusive range ``[low, high]``."""


def default_random_int(seed: int | None = None) -> RandomInt:
    return random.Random(seed).randint


class Skills(Enum):
    """Available AI targeting strategies."""

    RANDOM = "random"
    HUNT_TARGET = "hunt_target"
    IMPROVED_HUNT_TARGET = "improved_hunt_target"
    PROBABILISTIC = "probabilistic"
    IMPROVED_PROBABILISTIC = "improved_probabilistic"

    @classmethod
    def _missing_(cls, value: object) -> Skills | None:
        # Accept "huntTarget" and "hunt-target" spellings.
        if isinstance(value, str):
            normalized = re.sub(r"(?<=[a-z])(?=[A-Z])", "_", value.strip())
            normalized = normalized.replace("-", "_").lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class ParitySubset:
    """Smallest ``(col + row) % m`` class of the remaining cells.

    Every placement of a ship of length ``m`` crosses each residue class, so
    searching one class is enough to find the smallest remaining ship.
    """

    def __init__(self) -> None:
        self.modulus = 1
        self.residue = 0
        self.cells: dict[Coordinate, None] = {}

    def rebuild(self, remaining: Iterable[Coordinate], modulus: int, rand_int: RandomInt) -> None:
        classes: list[list[Coordinate]] = [[] for _ in range(modulus)]
        for coords in remaining:
            classes[(coords.col + coords.row) % modulus].append(coords)

        populated = [i for i, members in enumerate(classes) if members]
        self.modulus = modulus
        if not populated:
            self.residue = 0
            self.cells = {}
            return
        smallest = min(len(classes[i]) for i in populated)
        tied = [i for i in populated if len(classes[i]) == smallest]
        self.residue = tied[rand_int(0, len(tied) - 1)]
        self.cells = dict.fromkeys(classes[self.residue])

    def discard(self, coords: Coordinate) -> None:
        self.cells.pop(coords, None)

    def __contains__(self, coords: object) -> bool:
        return coords in self.cells

    def __len__(self) -> int:
        return len(self.cells)


class TargetingStrategy(ABC):
    """Interface shared by every AI targeting strategy."""

    skills: ClassVar[Skills]

    def __init__(
        self,
        n_cols: int,
        n_rows: int,
        ship_sizes: Sequence[int],
        rand_int: RandomInt | None = None,
    ) -> None:
        self.n_cols = n_cols
        self.n_rows = n_rows
        self.possible_targets: dict[Coordinate, None] = {
            Coordinate(c, r): None for c in range(n_cols) for r in range(n_rows)
        }
        self.opponent_ship_sizes: list[int] = sorted(ship_sizes)
        self._rand_int: RandomInt = rand_int or default_random_int()

    @abstractmethod
    def select_target(self) -> Coordinate:
        """Return the next opponent cell to attack."""

    @abstractmethod
    def record_outcome(self, result: AttackResult) -> None:
        """Update the strategy's belief with an attack result."""

    @property
    def min_ship_size(self) -> int | None:
        return self.opponent_ship_sizes[0] if self.opponent_ship_sizes else None

    def _choose(self, candidates: Sequence[Coordinate]) -> Coordinate:
        if not candidates:
            raise NoTargetsAvailableError("No target cells are left to choose from.")
        return candidates[self._rand_int(0, len(candidates) - 1)]

    def _forget_sunk_ship(self, result: AttackResult) -> None:
        length = result.sunk_ship_length
        if not length or not self.opponent_ship_sizes:
            return
        previous_min = self.min_ship_size
        if length in self.opponent_ship_sizes:
            self.opponent_ship_sizes.remove(length)
        else:
            self.opponent_ship_sizes.pop()
        if self.min_ship_size != previous_min:
            self._min_ship_size_changed()

    def _min_ship_size_changed(self) -> None:
        """Hook for strategies depending on the smallest unsunk ship."""


class RandomStrategy(TargetingStrategy):
    """Uniform choice among all unattacked cells."""

    skills = Skills.RANDOM

    def select_target(self) -> Coordinate:
        return self._choose(list(self.possible_targets))

    def record_outcome(self, result: AttackResult) -> None:
        self.possible_targets.pop(result.coords, None)


class HuntTargetStrategy(RandomStrategy):
    """Random hunting, then the neighbours of every hit until they run out."""

    skills = Skills.HUNT_TARGET

    def __init__(
        self,
        n_cols: int,
        n_rows: int,
        ship_sizes: Sequence[int],
        rand_int: RandomInt | None = None,
    ) -> None:
        super().__init__(n_cols, n_rows, ship_sizes, rand_int)
        self.high_priority_targets: dict[Coordinate, None] = {}

    def select_target(self) -> Coordinate:
        if self.high_priority_targets:
            return self._choose(list(self.high_priority_targets))
        return self._choose(self._hunt_candidates())

    def record_outcome(self, result: AttackResult) -> None:
        super().record_outcome(result)
        self.high_priority_targets.pop(result.coords, None)
        if result.is_hit:
            for neighbour in result.coords.neighbours():
                if neighbour in self.possible_targets:
                    self.high_priority_targets[neighbour] = None

    def _hunt_candidates(self) -> list[Coordinate]:
        return list(self.possible_targets)


class ImprovedHuntTargetStrategy(HuntTargetStrategy):
    """Hunt target whose hunt mode only searches the parity subset."""

    skills = Skills.IMPROVED_HUNT_TARGET

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

    def record_outcome(self, result: AttackResult) -> None:
        super().record_outcome(result)
        self.parity.discard(result.coords)
        if result.is_sunk:
            self._forget_sunk_ship(result)

    def _hunt_candidates(self) -> list[Coordinate]:
        return list(self.parity.cells) or list(self.possible_targets)

    def _min_ship_size_changed(self) -> None:
        self.parity.rebuild(self.possible_targets, self.min_ship_size or 1, self._rand_int)

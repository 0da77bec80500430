"""Ship domain model for the Battleship engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from salvo.errors import AlreadySunkError


@dataclass(frozen=True, order=True)
class Coordinate:
    """Immutable board coordinate, column first."""

    col: int
    row: int

    def shifted(self, dcol: int, drow: int, steps: int = 1) -> Coordinate:
        """Return the coordinate moved ``steps`` times along ``(dcol, drow)``."""
        return Coordinate(self.col + dcol * steps, self.row + drow * steps)

    def offset_from(self, other: Coordinate) -> tuple[int, int]:
        """Vector pointing from ``other`` to this coordinate."""
        return self.col - other.col, self.row - other.row

    def neighbours(self) -> list[Coordinate]:
        """Orthogonal neighbours in N, E, S, W order (may lie off-grid)."""
        return [self.shifted(*direction.displacement) for direction in Direction]


class Direction(Enum):
    """Placement direction, from the stern towards the bow."""

    N = (0, -1)
    E = (1, 0)
    S = (0, 1)
    W = (-1, 0)

    @property
    def displacement(self) -> tuple[int, int]:
        return self.value

    def next(self) -> Direction:
        """Following direction in the N→E→S→W→N cycle."""
        members = list(Direction)
        return members[(members.index(self) + 1) % len(members)]


@dataclass
class Ship:
    """A sinkable unit with a length and a hit counter."""

    name: str
    length: int
    hits: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if isinstance(self.length, bool) or not isinstance(self.length, int) or self.length < 1:
            raise ValueError(f"Ship length must be a positive integer, got {self.length!r}.")

    def hit(self) -> None:
        """Register one hit; a sunk ship cannot be hit again."""
        if self.is_sunk():
            raise AlreadySunkError(f"Ship {self.name!r} is already sunk.")
        self.hits += 1

    def is_sunk(self) -> bool:
        return self.hits == self.length

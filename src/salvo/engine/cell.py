"""Single board location."""

from __future__ import annotations

from dataclasses import dataclass, field

from salvo.errors import AlreadyAttackedError

from .ship import Coordinate


@dataclass
class Cell:
    """A board cell holding at most one ship handle and its attack status."""

    coords: Coordinate
    ship: str | None = field(default=None, init=False)
    attacked: bool = field(default=False, init=False)

    @property
    def col(self) -> int:
        return self.coords.col

    @property
    def row(self) -> int:
        return self.coords.row

    def place_ship(self, name: str) -> None:
        self.ship = name

    def remove_ship(self) -> None:
        self.ship = None

    def has_ship(self) -> bool:
        return self.ship is not None

    def receive_attack(self) -> str | None:
        """Mark the cell attacked and return the name of the ship hit, if any."""
        if self.attacked:
            raise AlreadyAttackedError(
                f"Cell ({self.col}, {self.row}) has already been attacked."
            )
        self.attacked = True
        return self.ship

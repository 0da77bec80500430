"""Attack outcome codes and the result record shared by engine and AI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .ship import Coordinate


class AttackOutcome(IntEnum):
    """Outcome code returned by an attack."""

    MISS = 0
    HIT = 1
    SUNK = 2


@dataclass(frozen=True)
class AttackResult:
    """Everything the attacker learns from one attack."""

    coords: Coordinate
    outcome: AttackOutcome
    is_win: bool = False
    sunk_ship: str | None = None
    sunk_ship_coords: tuple[Coordinate, ...] = ()

    def __post_init__(self) -> None:
        # Accept raw 0/1/2 codes as well as enum members.
        object.__setattr__(self, "outcome", AttackOutcome(self.outcome))

    @property
    def is_hit(self) -> bool:
        return self.outcome is not AttackOutcome.MISS

    @property
    def is_sunk(self) -> bool:
        return self.outcome is AttackOutcome.SUNK

    @property
    def sunk_ship_length(self) -> int | None:
        """Length of the sunk ship, revealed by its coordinates."""
        if not self.is_sunk:
            return None
        return len(self.sunk_ship_coords)

"""Players own a gameboard; AI players also carry a targeting strategy."""

from __future__ import annotations

import logging
from typing import Iterable

from salvo.ai import RandomInt, Skills, TargetingStrategy, create_strategy, default_random_int
from salvo.errors import IllegalPlacementError
from salvo.telemetry import get_meter, get_tracer

from .board import Gameboard
from .outcome import AttackResult
from .ship import Coordinate

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.player")
meter = get_meter("salvo.engine.player")

TARGET_COUNTER = meter.create_counter(
    "salvo_ai_targets_selected",
    unit="1",
    description="Target cells chosen by AI players",
)

DEFAULT_BOARD_SIZE = 10
DEFAULT_FLEET: tuple[tuple[str, int], ...] = (
    ("Carrier", 5),
    ("Battleship", 4),
    ("Cruiser", 3),
    ("Submarine", 3),
    ("Destroyer", 2),
)


class Player:
    """A named player with an exclusively owned gameboard."""

    def __init__(
        self,
        name: str,
        fleet: Iterable[tuple[str, int]] = DEFAULT_FLEET,
        n_cols: int = DEFAULT_BOARD_SIZE,
        n_rows: int | None = None,
        skills: Skills | str | None = None,
        rand_int: RandomInt | None = None,
    ) -> None:
        self._name = name
        self._gameboard = Gameboard(n_cols, n_rows, owner=name)
        self._rand_int = rand_int or default_random_int()
        for ship_name, length in fleet:
            self._gameboard.add_ship(ship_name, length)

        self._targeting: TargetingStrategy | None = None
        if skills is not None:
            # The opponent is assumed to play on an identical board with the same fleet.
            self._targeting = create_strategy(
                skills,
                self._gameboard.n_cols,
                self._gameboard.n_rows,
                [ship.length for ship in self._gameboard.not_deployed_ships],
                self._rand_int,
            )

    @property
    def name(self) -> str:
        return self._name

    @property
    def gameboard(self) -> Gameboard:
        return self._gameboard

    @property
    def targeting(self) -> TargetingStrategy | None:
        return self._targeting

    @property
    def is_ai(self) -> bool:
        return self._targeting is not None

    @property
    def skills(self) -> Skills | None:
        return self._targeting.skills if self._targeting is not None else None

    def random_ships_placement(self) -> None:
        """Place every not deployed ship uniformly among its legal positions."""
        board = self._gameboard
        with tracer.start_as_current_span("player.random_ships_placement") as span:
            span.set_attribute("player.name", self._name)
            for name in board.not_deployed_fleet:
                placements = board.legal_placements(name)
                if not placements:
                    logger.error(
                        "random_placement_exhausted", extra={"owner": self._name, "ship": name}
                    )
                    raise IllegalPlacementError(f"Ship {name!r} has no room left on the board.")
                stern, direction = placements[self._rand_int(0, len(placements) - 1)]
                board.place_ship(name, stern, direction)
            logger.debug(
                "random_placement_complete",
                extra={"owner": self._name, "ships": len(board.deployed_fleet)},
            )

    def repeat_random_ships_placement(self) -> None:
        """Lift every deployed ship and roll a new random layout."""
        for name in self._gameboard.deployed_fleet:
            self._gameboard.reset_ship(name)
        self.random_ships_placement()

    def get_opponent_target_cell_coords(self) -> Coordinate:
        """Ask the targeting strategy for the next opponent cell to attack."""
        targeting = self._require_targeting()
        with tracer.start_as_current_span("player.select_target") as span:
            span.set_attribute("player.name", self._name)
            span.set_attribute("ai.skills", targeting.skills.value)
            coords = targeting.select_target()
            span.set_attribute("target.col", coords.col)
            span.set_attribute("target.row", coords.row)
        TARGET_COUNTER.add(1, attributes={"skills": targeting.skills.value})
        return coords

    def apply_post_attack_actions(self, result: AttackResult) -> None:
        """Feed the outcome of this player's last attack to its strategy."""
        self._require_targeting().record_outcome(result)

    def _require_targeting(self) -> TargetingStrategy:
        if self._targeting is None:
            raise RuntimeError(f"Player {self._name!r} is not AI-controlled.")
        return self._targeting

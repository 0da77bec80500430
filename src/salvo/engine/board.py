"""Gameboard state machine: fleet bookkeeping, placement editing and attacks.

By convention a ship is placed by giving the coordinates of its stern (the back
of the ship) and the direction it points to. The remaining ``length - 1``
cells follow the direction's displacement, the last one being the bow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from salvo.errors import (
    AlreadyAttackedError,
    DuplicateShipError,
    IllegalPlacementError,
    MoveInProgressError,
    NoMoveInProgressError,
    OutOfBoundsError,
    ShipNotDeployedError,
    UnknownShipError,
)
from salvo.telemetry import get_meter, get_tracer

from .cell import Cell
from .outcome import AttackOutcome
from .ship import Coordinate, Direction, Ship

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.board")
meter = get_meter("salvo.engine.board")

PLACEMENT_COUNTER = meter.create_counter(
    "salvo_engine_ship_placements",
    unit="1",
    description="Ship placements attempted on a gameboard",
)

EDIT_COUNTER = meter.create_counter(
    "salvo_engine_ship_edits",
    unit="1",
    description="Rotate and move operations performed during deployment",
)

ATTACK_COUNTER = meter.create_counter(
    "salvo_engine_attacks",
    unit="1",
    description="Attacks received by a gameboard",
)


@dataclass(frozen=True)
class ShipPosition:
    """Ordered cells occupied by a ship (stern first) and its direction."""

    cells: tuple[Coordinate, ...]
    direction: Direction

    @property
    def stern(self) -> Coordinate:
        return self.cells[0]

    @property
    def bow(self) -> Coordinate:
        return self.cells[-1]


@dataclass(frozen=True)
class MoveSession:
    """State of a ship lifted from the board while it is being moved.

    ``offset`` is the vector from the stern to the grabbed cell; any candidate
    cell is assumed to carry the same offset.
    """

    name: str
    stern: Coordinate
    direction: Direction
    offset: tuple[int, int]

    def stern_for(self, relative: Coordinate) -> Coordinate:
        """Stern implied by placing the grabbed cell at ``relative``."""
        return relative.shifted(-self.offset[0], -self.offset[1])


def ship_cells(stern: Coordinate, direction: Direction, length: int) -> tuple[Coordinate, ...]:
    """Cells covered by a ship of ``length`` starting at ``stern``."""
    dcol, drow = direction.displacement
    return tuple(stern.shifted(dcol, drow, i) for i in range(length))


class Gameboard:
    """A grid of cells with a fleet split into not deployed, deployed and sunk ships."""

    def __init__(self, n_cols: int, n_rows: int | None = None, owner: str = "unknown") -> None:
        n_rows = n_cols if n_rows is None else n_rows
        if n_cols < 1 or n_rows < 1:
            raise ValueError("A gameboard needs at least one column and one row.")
        self._n_cols = n_cols
        self._n_rows = n_rows
        self.owner = owner
        self._cells: list[list[Cell]] = [
            [Cell(Coordinate(c, r)) for r in range(n_rows)] for c in range(n_cols)
        ]
        self._not_deployed: dict[str, Ship] = {}
        self._deployed: dict[str, Ship] = {}
        self._sunk: dict[str, Ship] = {}
        self._positions: dict[str, ShipPosition | None] = {}
        self._move_session: MoveSession | None = None

    # Size and cells

    @property
    def n_cols(self) -> int:
        return self._n_cols

    @property
    def n_rows(self) -> int:
        return self._n_rows

    @property
    def size(self) -> tuple[int, int]:
        return self._n_cols, self._n_rows

    def is_valid_cell(self, coords: Coordinate) -> bool:
        return 0 <= coords.col < self._n_cols and 0 <= coords.row < self._n_rows

    def get_cell(self, coords: Coordinate) -> Cell:
        if not self.is_valid_cell(coords):
            raise OutOfBoundsError(f"Cell ({coords.col}, {coords.row}) is out of bounds.")
        return self._cells[coords.col][coords.row]

    def cells(self) -> list[Cell]:
        """All cells, column by column."""
        return [cell for column in self._cells for cell in column]

    def is_attacked(self, coords: Coordinate) -> bool:
        return self.get_cell(coords).attacked

    # Fleet queries

    @property
    def deployed_fleet(self) -> list[str]:
        return list(self._deployed)

    @property
    def not_deployed_fleet(self) -> list[str]:
        return list(self._not_deployed)

    @property
    def sunk_fleet(self) -> list[str]:
        return list(self._sunk)

    @property
    def fleet(self) -> list[str]:
        return [*self._deployed, *self._not_deployed, *self._sunk]

    @property
    def deployed_ships(self) -> list[Ship]:
        return list(self._deployed.values())

    @property
    def not_deployed_ships(self) -> list[Ship]:
        return list(self._not_deployed.values())

    @property
    def sunk_ships(self) -> list[Ship]:
        return list(self._sunk.values())

    def has_deployed_ship(self, name: str) -> bool:
        return name in self._deployed

    def has_not_deployed_ship(self, name: str) -> bool:
        return name in self._not_deployed

    def has_sunk_ship(self, name: str) -> bool:
        return name in self._sunk

    def has_ship(self, name: str) -> bool:
        return name in self._positions

    def has_deployed_ships(self) -> bool:
        return bool(self._deployed)

    def has_not_deployed_ships(self) -> bool:
        return bool(self._not_deployed)

    def get_ship(self, name: str) -> Ship:
        for partition in (self._deployed, self._not_deployed, self._sunk):
            if name in partition:
                return partition[name]
        raise UnknownShipError(f"Ship {name!r} is not part of this fleet.")

    def get_ship_position(self, name: str) -> ShipPosition | None:
        """Position of a placed (deployed or sunk) ship, None when not deployed."""
        self._require_known(name)
        return self._positions[name]

    # Fleet construction and placement

    def add_ship(self, name: str, length: int) -> Ship:
        """Add a ship to the not deployed fleet."""
        if self.has_ship(name):
            raise DuplicateShipError(f"Ship {name!r} is already in the fleet.")
        ship = Ship(name, length)
        self._not_deployed[name] = ship
        self._positions[name] = None
        logger.debug("ship_added", extra={"owner": self.owner, "ship": name, "length": length})
        return ship

    def can_place_ship(self, name: str, stern: Coordinate, direction: Direction) -> bool:
        """Check that a not deployed ship fits on free cells at the given position."""
        ship = self._not_deployed.get(name)
        if ship is None:
            return False
        cells = ship_cells(stern, direction, ship.length)
        if not self.is_valid_cell(cells[0]) or not self.is_valid_cell(cells[-1]):
            return False
        return not any(self._cells[c.col][c.row].has_ship() for c in cells)

    def place_ship(self, name: str, stern: Coordinate, direction: Direction) -> ShipPosition:
        """Deploy a ship; its cells are recorded stern first."""
        with tracer.start_as_current_span("board.place_ship") as span:
            span.set_attribute("board.owner", self.owner)
            span.set_attribute("ship.name", name)
            span.set_attribute("ship.stern.col", stern.col)
            span.set_attribute("ship.stern.row", stern.row)
            span.set_attribute("ship.direction", direction.name)
            self._require_no_move_in_progress()
            self._require_known(name)
            if not self.can_place_ship(name, stern, direction):
                PLACEMENT_COUNTER.add(1, attributes={"result": "failed", "owner": self.owner})
                logger.warning(
                    "ship_placement_rejected",
                    extra={
                        "owner": self.owner,
                        "ship": name,
                        "col": stern.col,
                        "row": stern.row,
                        "direction": direction.name,
                    },
                )
                raise IllegalPlacementError(
                    f"Ship {name!r} cannot be placed at ({stern.col}, {stern.row}) "
                    f"facing {direction.name}."
                )

            ship = self._not_deployed.pop(name)
            position = ShipPosition(ship_cells(stern, direction, ship.length), direction)
            for coords in position.cells:
                self._cells[coords.col][coords.row].place_ship(name)
            self._deployed[name] = ship
            self._positions[name] = position
            PLACEMENT_COUNTER.add(1, attributes={"result": "success", "owner": self.owner})
            logger.info(
                "ship_placed",
                extra={
                    "owner": self.owner,
                    "ship": name,
                    "col": stern.col,
                    "row": stern.row,
                    "direction": direction.name,
                },
            )
            return position

    def reset_ship(self, name: str) -> None:
        """Lift a deployed ship off the board, back into the not deployed fleet."""
        self._require_no_move_in_progress()
        self._require_known(name)
        if name not in self._deployed:
            raise ShipNotDeployedError(f"Ship {name!r} is not deployed.")
        position = self._positions[name]
        assert position is not None
        for coords in position.cells:
            self._cells[coords.col][coords.row].remove_ship()
        self._not_deployed[name] = self._deployed.pop(name)
        self._positions[name] = None
        logger.debug("ship_reset", extra={"owner": self.owner, "ship": name})

    def legal_placements(self, name: str) -> list[tuple[Coordinate, Direction]]:
        """Every stern and direction where the not deployed ship could go."""
        return [
            (Coordinate(c, r), direction)
            for c in range(self._n_cols)
            for r in range(self._n_rows)
            for direction in Direction
            if self.can_place_ship(name, Coordinate(c, r), direction)
        ]

    # Editing protocol

    def rotate_ship(self, name: str, center: Coordinate | None = None) -> ShipPosition:
        """Rotate a deployed ship around one of its cells (the stern by default).

        Directions are tried clockwise starting after the current one; the
        original direction always fits once the ship is lifted, so at most four
        candidates are evaluated.
        """
        self._require_no_move_in_progress()
        position = self._require_deployed(name)
        center = position.stern if center is None else center
        if center not in position.cells:
            raise IllegalPlacementError(
                f"Cell ({center.col}, {center.row}) is not occupied by ship {name!r}."
            )
        offset = position.cells.index(center)

        self.reset_ship(name)
        direction = position.direction
        while True:
            direction = direction.next()
            dcol, drow = direction.displacement
            stern = center.shifted(dcol, drow, -offset)
            if self.can_place_ship(name, stern, direction):
                break

        new_position = self.place_ship(name, stern, direction)
        EDIT_COUNTER.add(1, attributes={"operation": "rotate", "owner": self.owner})
        logger.info(
            "ship_rotated",
            extra={
                "owner": self.owner,
                "ship": name,
                "from": position.direction.name,
                "to": direction.name,
            },
        )
        return new_position

    def start_move_ship(self, name: str, relative: Coordinate | None = None) -> MoveSession:
        """Lift a deployed ship so it can be probed and dropped elsewhere.

        ``relative`` is the grabbed cell of the ship (the stern by default).
        """
        if self._move_session is not None:
            raise MoveInProgressError(
                f"Ship {self._move_session.name!r} is already being moved."
            )
        position = self._require_deployed(name)
        relative = position.stern if relative is None else relative
        if relative not in position.cells:
            raise IllegalPlacementError(
                f"Cell ({relative.col}, {relative.row}) is not occupied by ship {name!r}."
            )
        session = MoveSession(
            name=name,
            stern=position.stern,
            direction=position.direction,
            offset=relative.offset_from(position.stern),
        )
        self.reset_ship(name)
        self._move_session = session
        logger.debug("ship_move_started", extra={"owner": self.owner, "ship": name})
        return session

    def can_place_ship_on_move(self, session: MoveSession | None, relative: Coordinate) -> bool:
        """Probe whether the lifted ship fits with its grabbed cell at ``relative``."""
        session = self._require_session(session)
        return self.can_place_ship(session.name, session.stern_for(relative), session.direction)

    def end_move_ship(
        self, session: MoveSession | None, relative: Coordinate | None = None
    ) -> bool:
        """Drop the lifted ship, falling back to its original place when illegal.

        Returns True when the ship ended up on a different stern.
        """
        session = self._require_session(session)
        stern = session.stern
        if relative is not None:
            candidate = session.stern_for(relative)
            if self.can_place_ship(session.name, candidate, session.direction):
                stern = candidate

        self._move_session = None
        self.place_ship(session.name, stern, session.direction)
        moved = stern != session.stern
        EDIT_COUNTER.add(
            1, attributes={"operation": "move", "moved": moved, "owner": self.owner}
        )
        logger.info(
            "ship_move_ended",
            extra={
                "owner": self.owner,
                "ship": session.name,
                "moved": moved,
                "col": stern.col,
                "row": stern.row,
            },
        )
        return moved

    @property
    def move_session(self) -> MoveSession | None:
        return self._move_session

    # Attacks

    def receive_attack(self, coords: Coordinate) -> AttackOutcome:
        """Resolve an attack: 0 miss, 1 hit, 2 hit and sunk."""
        with tracer.start_as_current_span("board.receive_attack") as span:
            span.set_attribute("board.owner", self.owner)
            span.set_attribute("attack.col", coords.col)
            span.set_attribute("attack.row", coords.row)
            if not self.is_valid_cell(coords):
                logger.error(
                    "attack_out_of_bounds",
                    extra={"col": coords.col, "row": coords.row, "owner": self.owner},
                )
                raise OutOfBoundsError(
                    f"Attack at ({coords.col}, {coords.row}) is out of bounds."
                )
            cell = self._cells[coords.col][coords.row]
            if cell.attacked:
                logger.error(
                    "attack_duplicate",
                    extra={"col": coords.col, "row": coords.row, "owner": self.owner},
                )
                raise AlreadyAttackedError(
                    f"Cell ({coords.col}, {coords.row}) has already been attacked."
                )

            name = cell.receive_attack()
            if name is None:
                outcome = AttackOutcome.MISS
            else:
                ship = self._deployed[name]
                ship.hit()
                outcome = AttackOutcome.HIT
                if ship.is_sunk():
                    self._sunk[name] = self._deployed.pop(name)
                    outcome = AttackOutcome.SUNK

            span.set_attribute("attack.outcome", outcome.name.lower())
            ATTACK_COUNTER.add(1, attributes={"outcome": outcome.name.lower(), "owner": self.owner})
            logger.info(
                "attack_received",
                extra={
                    "col": coords.col,
                    "row": coords.row,
                    "outcome": outcome.name.lower(),
                    "ship": name,
                    "owner": self.owner,
                },
            )
            return outcome

    # Helpers

    def _require_known(self, name: str) -> None:
        if not self.has_ship(name):
            raise UnknownShipError(f"Ship {name!r} is not part of this fleet.")

    def _require_deployed(self, name: str) -> ShipPosition:
        self._require_known(name)
        position = self._positions[name]
        if name not in self._deployed or position is None:
            raise ShipNotDeployedError(f"Ship {name!r} is not deployed.")
        return position

    def _require_no_move_in_progress(self) -> None:
        if self._move_session is not None:
            raise MoveInProgressError(
                f"Ship {self._move_session.name!r} is being moved; finish the move first."
            )

    def _require_session(self, session: MoveSession | None) -> MoveSession:
        if session is None or session is not self._move_session:
            raise NoMoveInProgressError("No ship move is in progress for this session.")
        return session

"""Tests for gameboard placement, attacks and fleet bookkeeping."""

import pytest

from salvo.engine.board import Gameboard
from salvo.engine.outcome import AttackOutcome
from salvo.engine.ship import Coordinate, Direction
from salvo.errors import (
    AlreadyAttackedError,
    DuplicateShipError,
    IllegalPlacementError,
    OutOfBoundsError,
    ShipNotDeployedError,
    UnknownShipError,
)


def occupancy(board: Gameboard) -> dict[Coordinate, str]:
    return {cell.coords: cell.ship for cell in board.cells() if cell.has_ship()}


def test_board_has_size_and_cells() -> None:
    board = Gameboard(5, 10)
    assert board.size == (5, 10)
    assert board.get_cell(Coordinate(4, 9)).coords == Coordinate(4, 9)
    assert board.is_valid_cell(Coordinate(0, 0))
    assert not board.is_valid_cell(Coordinate(5, 0))
    assert not board.is_valid_cell(Coordinate(0, -1))
    with pytest.raises(OutOfBoundsError):
        board.get_cell(Coordinate(5, 10))


def test_square_board_by_default() -> None:
    assert Gameboard(7).size == (7, 7)


def test_add_ship_rejects_duplicates() -> None:
    board = Gameboard(5)
    board.add_ship("Destroyer", 2)
    assert board.fleet == ["Destroyer"]
    assert board.not_deployed_fleet == ["Destroyer"]
    with pytest.raises(DuplicateShipError):
        board.add_ship("Destroyer", 3)


def test_vertical_placement_and_overlap() -> None:
    board = Gameboard(5, 10)
    board.add_ship("Battleship", 4)
    board.add_ship("Cruiser", 3)

    position = board.place_ship("Battleship", Coordinate(1, 3), Direction.N)
    expected = (Coordinate(1, 3), Coordinate(1, 2), Coordinate(1, 1), Coordinate(1, 0))
    assert position.cells == expected
    assert position.direction is Direction.N
    assert board.get_ship_position("Battleship") == position
    assert set(occupancy(board)) == set(expected)

    assert not board.can_place_ship("Cruiser", Coordinate(0, 2), Direction.E)
    with pytest.raises(IllegalPlacementError):
        board.place_ship("Cruiser", Coordinate(0, 2), Direction.E)
    assert board.has_not_deployed_ship("Cruiser")
    assert set(occupancy(board)) == set(expected)


@pytest.mark.parametrize(
    ("stern", "direction"),
    [
        (Coordinate(-1, 0), Direction.E),
        (Coordinate(0, 0), Direction.N),
        (Coordinate(0, 0), Direction.W),
        (Coordinate(4, 4), Direction.E),
        (Coordinate(3, 4), Direction.S),
    ],
)
def test_can_place_ship_rejects_out_of_bounds(stern: Coordinate, direction: Direction) -> None:
    board = Gameboard(5)
    board.add_ship("Cruiser", 3)
    assert not board.can_place_ship("Cruiser", stern, direction)
    with pytest.raises(IllegalPlacementError):
        board.place_ship("Cruiser", stern, direction)


def test_cannot_place_ship_twice_or_unknown_ship() -> None:
    board = Gameboard(5)
    board.add_ship("Destroyer", 2)
    board.place_ship("Destroyer", Coordinate(0, 0), Direction.E)
    assert not board.can_place_ship("Destroyer", Coordinate(0, 3), Direction.E)
    with pytest.raises(IllegalPlacementError):
        board.place_ship("Destroyer", Coordinate(0, 3), Direction.E)
    assert not board.can_place_ship("Ghost", Coordinate(0, 3), Direction.E)
    with pytest.raises(UnknownShipError):
        board.place_ship("Ghost", Coordinate(0, 3), Direction.E)


def test_place_then_reset_restores_occupancy() -> None:
    board = Gameboard(6)
    board.add_ship("Carrier", 5)
    board.add_ship("Destroyer", 2)
    board.place_ship("Carrier", Coordinate(0, 0), Direction.S)
    before = occupancy(board)

    board.place_ship("Destroyer", Coordinate(3, 3), Direction.W)
    board.reset_ship("Destroyer")

    assert occupancy(board) == before
    assert board.get_ship_position("Destroyer") is None
    assert board.not_deployed_fleet == ["Destroyer"]
    assert board.deployed_fleet == ["Carrier"]


def test_reset_requires_deployed_ship() -> None:
    board = Gameboard(5)
    board.add_ship("Destroyer", 2)
    with pytest.raises(ShipNotDeployedError):
        board.reset_ship("Destroyer")
    with pytest.raises(UnknownShipError):
        board.reset_ship("Ghost")


def test_get_ship_position_of_unknown_ship_fails() -> None:
    with pytest.raises(UnknownShipError):
        Gameboard(5).get_ship_position("Ghost")


def test_attack_hit_then_sunk() -> None:
    board = Gameboard(5)
    board.add_ship("Destroyer", 2)
    board.place_ship("Destroyer", Coordinate(0, 0), Direction.E)

    assert board.receive_attack(Coordinate(0, 0)) == 1
    assert board.deployed_fleet == ["Destroyer"]
    assert board.get_ship("Destroyer").hits == 1

    assert board.receive_attack(Coordinate(1, 0)) is AttackOutcome.SUNK
    assert board.deployed_fleet == []
    assert board.sunk_fleet == ["Destroyer"]
    assert board.sunk_ships[0].is_sunk()
    assert board.get_ship_position("Destroyer").cells == (Coordinate(0, 0), Coordinate(1, 0))
    assert not board.has_deployed_ships()


def test_attack_miss_repeat_and_out_of_bounds() -> None:
    board = Gameboard(5)
    board.add_ship("Destroyer", 2)
    board.place_ship("Destroyer", Coordinate(0, 0), Direction.E)

    assert board.receive_attack(Coordinate(3, 3)) == AttackOutcome.MISS
    assert board.is_attacked(Coordinate(3, 3))
    with pytest.raises(AlreadyAttackedError):
        board.receive_attack(Coordinate(3, 3))
    with pytest.raises(OutOfBoundsError):
        board.receive_attack(Coordinate(5, 5))
    assert board.has_deployed_ships()


def test_fleet_partitions_are_exclusive() -> None:
    board = Gameboard(5)
    board.add_ship("A", 2)
    board.add_ship("B", 2)
    board.add_ship("C", 1)
    board.place_ship("B", Coordinate(0, 0), Direction.S)
    board.place_ship("C", Coordinate(4, 4), Direction.N)
    board.receive_attack(Coordinate(4, 4))

    assert board.not_deployed_fleet == ["A"]
    assert board.deployed_fleet == ["B"]
    assert board.sunk_fleet == ["C"]
    assert sorted(board.fleet) == ["A", "B", "C"]
    assert [ship.name for ship in board.deployed_ships] == ["B"]
    assert [ship.name for ship in board.not_deployed_ships] == ["A"]
    assert board.has_ship("C") and board.has_sunk_ship("C")
    assert not board.has_deployed_ship("A")


def test_legal_placements_cover_every_fitting_position() -> None:
    board = Gameboard(3)
    board.add_ship("Cruiser", 3)
    placements = board.legal_placements("Cruiser")
    # Three columns and three rows, each fitting in two directions.
    assert len(placements) == 12
    assert all(board.can_place_ship("Cruiser", stern, d) for stern, d in placements)

"""Rule violations raised by the Battleship engine and AI."""

from __future__ import annotations


class GameRuleError(ValueError):
    """Base class for every precondition violation in the game core."""


class OutOfBoundsError(GameRuleError):
    """Coordinates fall outside the board grid."""


class DuplicateShipError(GameRuleError):
    """A ship with the same name already belongs to the board."""


class IllegalPlacementError(GameRuleError):
    """A placement leaves the grid, overlaps another ship or targets a placed ship."""


class UnknownShipError(GameRuleError):
    """The ship name is not part of any fleet partition of the board."""


class ShipNotDeployedError(GameRuleError):
    """The operation needs a ship currently deployed on the board."""


class AlreadyAttackedError(GameRuleError):
    """The cell has already received an attack."""


class AlreadySunkError(GameRuleError):
    """A hit was applied to a ship that is already sunk."""


class NoTargetsAvailableError(GameRuleError):
    """The targeting strategy has no candidate cells left."""


class NoMoveInProgressError(GameRuleError):
    """A move probe or completion was requested without an open move session."""


class MoveInProgressError(GameRuleError):
    """A move session is already open on the board."""

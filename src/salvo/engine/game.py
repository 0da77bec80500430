"""Two-player Battleship game controller."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from salvo.ai import RandomInt, default_random_int
from salvo.errors import AlreadyAttackedError, OutOfBoundsError
from salvo.settings import GameSettings
from salvo.telemetry import get_meter, get_tracer

from .outcome import AttackOutcome, AttackResult
from .player import Player
from .ship import Coordinate

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.game")
meter = get_meter("salvo.engine.game")

TURN_COUNTER = meter.create_counter(
    "salvo_engine_turns",
    unit="1",
    description="Attacks resolved by the game controller",
)


class GamePhase(Enum):
    """Lifecycle of a match."""

    DEPLOYING_P1 = "deploying_p1"
    DEPLOYING_P2 = "deploying_p2"
    SELECTING_FIRST_PLAYER = "selecting_first_player"
    AIMING = "aiming"
    RESOLVING = "resolving"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class GameEvent:
    """Notification sent to subscribers, e.g. a user interface."""

    kind: str
    payload: dict[str, Any] = field(default_factory=dict)


GameListener = Callable[[GameEvent], None]


class GameController:
    """Orchestrates deployment, turn order and attack resolution."""

    def __init__(
        self,
        player1_name: str,
        player2_name: str,
        versus_ai: bool = True,
        settings: GameSettings | None = None,
        rand_int: RandomInt | None = None,
    ) -> None:
        self.settings = settings or GameSettings()
        self.versus_ai = versus_ai
        self._rand_int = rand_int or default_random_int()
        self.player1 = self._init_player(player1_name, is_ai=False)
        self.player2 = self._init_player(player2_name, is_ai=versus_ai)
        self.phase = GamePhase.DEPLOYING_P1
        self.current_player = self.player1
        self.opponent_player = self.player2
        self.winner: Player | None = None
        self._pending_coords: Coordinate | None = None
        self._last_result: AttackResult | None = None
        self._listeners: list[GameListener] = []

    def _init_player(self, name: str, is_ai: bool) -> Player:
        return Player(
            name,
            fleet=self.settings.fleet_items,
            n_cols=self.settings.board_cols,
            n_rows=self.settings.rows,
            skills=self.settings.ai_skills if is_ai else None,
            rand_int=self._rand_int,
        )

    # Events

    def subscribe(self, listener: GameListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: GameListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self, kind: str, **payload: Any) -> None:
        event = GameEvent(kind, payload)
        for listener in tuple(self._listeners):
            listener(event)

    # Deployment

    @property
    def deploying_player(self) -> Player | None:
        if self.phase is GamePhase.DEPLOYING_P1:
            return self.player1
        if self.phase is GamePhase.DEPLOYING_P2:
            return self.player2
        return None

    def fleet_deployed(self) -> None:
        """Signal that the deploying player's fleet is ready.

        AI players deploy at random when they get their turn to deploy.
        """
        player = self.deploying_player
        if player is None:
            raise RuntimeError(f"No fleet is being deployed during {self.phase.value}.")
        if player.is_ai and player.gameboard.has_not_deployed_ships():
            player.random_ships_placement()
        if player.gameboard.has_not_deployed_ships():
            logger.error(
                "fleet_not_ready",
                extra={"player": player.name, "missing": player.gameboard.not_deployed_fleet},
            )
            raise RuntimeError(
                f"{player.name} still has ships to deploy: "
                f"{', '.join(player.gameboard.not_deployed_fleet)}."
            )

        logger.info("fleet_deployed", extra={"player": player.name, "phase": self.phase.value})
        self._publish("fleet_deployed", player=player)
        if self.phase is GamePhase.DEPLOYING_P1:
            self.phase = GamePhase.DEPLOYING_P2
            if self.player2.is_ai:
                self.fleet_deployed()
        else:
            self.phase = GamePhase.SELECTING_FIRST_PLAYER
            self.select_first_player()

    def select_first_player(self) -> Player:
        self._require_phase(GamePhase.SELECTING_FIRST_PLAYER)
        players = (self.player1, self.player2)
        first = self._rand_int(0, 1)
        self.current_player = players[first]
        self.opponent_player = players[1 - first]
        self.phase = GamePhase.AIMING
        logger.info("first_player_selected", extra={"player": self.current_player.name})
        self._publish("first_player_selected", player=self.current_player)
        return self.current_player

    # Turns

    def acquire_attack_coords(self, coords: Coordinate | None = None) -> Coordinate:
        """Fix the target of the current turn.

        AI players pick their own target; humans must name an unattacked cell of
        the opponent board. A rejected target leaves the phase unchanged.
        """
        self._require_phase(GamePhase.AIMING)
        if self.current_player.is_ai:
            coords = self.current_player.get_opponent_target_cell_coords()
        elif coords is None:
            raise ValueError(f"{self.current_player.name} must choose a target cell.")
        else:
            board = self.opponent_player.gameboard
            if not board.is_valid_cell(coords):
                raise OutOfBoundsError(f"Cell ({coords.col}, {coords.row}) is out of bounds.")
            if board.is_attacked(coords):
                raise AlreadyAttackedError(
                    f"Cell ({coords.col}, {coords.row}) has already been attacked."
                )
        self._pending_coords = coords
        self.phase = GamePhase.RESOLVING
        return coords

    def resolve_attack(self) -> AttackResult:
        """Apply the pending attack to the opponent board."""
        self._require_phase(GamePhase.RESOLVING)
        if self._last_result is not None and self._last_result.coords == self._pending_coords:
            return self._last_result
        coords = self._pending_coords
        assert coords is not None
        attacker, defender = self.current_player, self.opponent_player

        with tracer.start_as_current_span("game.resolve_attack") as span:
            span.set_attribute("attacker", attacker.name)
            span.set_attribute("col", coords.col)
            span.set_attribute("row", coords.row)
            board = defender.gameboard
            outcome = board.receive_attack(coords)

            sunk_ship = None
            sunk_coords: tuple[Coordinate, ...] = ()
            if outcome is AttackOutcome.SUNK:
                sunk_ship = board.get_cell(coords).ship
                assert sunk_ship is not None
                position = board.get_ship_position(sunk_ship)
                assert position is not None
                sunk_coords = position.cells

            result = AttackResult(
                coords=coords,
                outcome=outcome,
                is_win=not board.has_deployed_ships(),
                sunk_ship=sunk_ship,
                sunk_ship_coords=sunk_coords,
            )
            if attacker.is_ai:
                attacker.apply_post_attack_actions(result)

            span.set_attribute("outcome", outcome.name.lower())
            span.set_attribute("win", result.is_win)
            TURN_COUNTER.add(
                1, attributes={"outcome": outcome.name.lower(), "ai": attacker.is_ai}
            )
            logger.info(
                "attack_resolved",
                extra={
                    "attacker": attacker.name,
                    "col": coords.col,
                    "row": coords.row,
                    "outcome": outcome.name.lower(),
                    "sunk_ship": sunk_ship,
                    "win": result.is_win,
                },
            )

        self._last_result = result
        self._publish("attack_resolved", attacker=attacker, defender=defender, result=result)
        return result

    def attack_outcome_shown(self) -> None:
        """Close the turn: end the game on a win, otherwise swap players."""
        self._require_phase(GamePhase.RESOLVING)
        result = self._last_result
        if result is None or result.coords != self._pending_coords:
            raise RuntimeError("The pending attack has not been resolved yet.")

        self._pending_coords = None
        self._last_result = None
        if result.is_win:
            self.winner = self.current_player
            self.phase = GamePhase.GAME_OVER
            logger.info(
                "game_over",
                extra={"winner": self.winner.name, "defeated": self.opponent_player.name},
            )
            self._publish("game_over", winner=self.winner, defeated=self.opponent_player)
            return

        self.current_player, self.opponent_player = self.opponent_player, self.current_player
        self.phase = GamePhase.AIMING

    def play_turn(self, coords: Coordinate | None = None) -> AttackResult:
        """Aim, resolve and close one turn."""
        self.acquire_attack_coords(coords)
        result = self.resolve_attack()
        self.attack_outcome_shown()
        return result

    @property
    def is_over(self) -> bool:
        return self.phase is GamePhase.GAME_OVER

    def _require_phase(self, phase: GamePhase) -> None:
        if self.phase is not phase:
            logger.error(
                "phase_violation", extra={"expected": phase.value, "actual": self.phase.value}
            )
            raise RuntimeError(
                f"Expected phase {phase.value}, the game is in {self.phase.value}."
            )

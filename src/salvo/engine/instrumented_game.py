"""Game controller emitting match-level spans and metrics."""

from __future__ import annotations

import time
from typing import Any

from salvo.engine.game import GameController
from salvo.engine.outcome import AttackResult
from salvo.engine.player import Player
from salvo.engine.ship import Coordinate
from salvo.errors import GameRuleError
from salvo.telemetry import get_logger, get_tracer, record_game_histogram, record_game_metric


class InstrumentedGameController(GameController):
    """GameController with a span per match plus turn and result metrics."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("salvo.engine")
        self._tracer = get_tracer("salvo.engine")
        self._match_span_cm: Any = None
        self._match_started: float | None = None
        self.turns = 0

    def select_first_player(self) -> Player:
        self._open_match_span()
        first = super().select_first_player()
        record_game_metric(
            "salvo_game_started_total", 1, {"versus_ai": self.versus_ai, "first": first.name}
        )
        return first

    def acquire_attack_coords(self, coords: Coordinate | None = None) -> Coordinate:
        try:
            return super().acquire_attack_coords(coords)
        except GameRuleError as exc:
            record_game_metric(
                "salvo_game_rejected_targets_total",
                1,
                {"player": self.current_player.name, "reason": type(exc).__name__},
            )
            self._logger.warning("Rejected target from %s: %s", self.current_player.name, exc)
            raise

    def resolve_attack(self) -> AttackResult:
        cached = self._last_result
        result = super().resolve_attack()
        if result is cached:
            return result
        self.turns += 1
        attrs = {"player": self.current_player.name, "ai": self.current_player.is_ai}
        record_game_metric("salvo_shots_total", 1, attrs)
        record_game_metric(
            "salvo_shots_by_outcome_total", 1, {**attrs, "outcome": result.outcome.name.lower()}
        )
        return result

    def attack_outcome_shown(self) -> None:
        super().attack_outcome_shown()
        if self.is_over:
            self._finish_match()

    def _open_match_span(self) -> None:
        self._close_match_span()
        self._match_started = time.perf_counter()
        self.turns = 0
        self._match_span_cm = self._tracer.start_as_current_span("salvo.engine.match")
        span = self._match_span_cm.__enter__()
        span.set_attribute("player1", self.player1.name)
        span.set_attribute("player2", self.player2.name)
        span.set_attribute("versus_ai", self.versus_ai)

    def _finish_match(self) -> None:
        started = self._match_started
        duration = time.perf_counter() - started if started is not None else 0.0
        winner = self.winner.name if self.winner else "unknown"
        skills = self.winner.skills.value if self.winner and self.winner.skills else "human"

        record_game_metric("salvo_game_completed_total", 1, {"winner": winner, "skills": skills})
        record_game_histogram(
            "salvo_game_duration_seconds", duration, {"skills": skills}, unit="s"
        )
        record_game_histogram("salvo_game_turns", self.turns, {"skills": skills})
        self._logger.info(
            "Game finished. winner=%s turns=%d duration_s=%.3f", winner, self.turns, duration
        )
        self._close_match_span()

    def _close_match_span(self) -> None:
        if self._match_span_cm is not None:
            self._match_span_cm.__exit__(None, None, None)
            self._match_span_cm = None

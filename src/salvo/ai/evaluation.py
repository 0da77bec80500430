"""Measure how many shots each targeting strategy needs to sink a fleet."""

from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass, field
from typing import Any, Sequence

import numpy as np

from salvo.engine.outcome import AttackOutcome, AttackResult
from salvo.engine.player import DEFAULT_BOARD_SIZE, DEFAULT_FLEET, Player
from salvo.telemetry import get_meter, get_tracer

from . import Skills, create_strategy

logger = logging.getLogger(__name__)


@dataclass
class EvaluationConfig:
    skills: list[Skills] = field(default_factory=lambda: list(Skills))
    games: int = 100
    n_cols: int = DEFAULT_BOARD_SIZE
    n_rows: int | None = None
    fleet: Sequence[tuple[str, int]] = DEFAULT_FLEET
    seed: int | None = None


@dataclass(frozen=True)
class EvaluationReport:
    skills: Skills
    games: int
    mean_shots: float
    std_shots: float
    min_shots: int
    max_shots: int

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["skills"] = self.skills.value
        return data


def play_solo_game(
    skills: Skills,
    n_cols: int,
    n_rows: int,
    fleet: Sequence[tuple[str, int]],
    rng: random.Random,
) -> int:
    """Sink a randomly deployed fleet with one strategy and return the shots fired."""
    target = Player("target", fleet=fleet, n_cols=n_cols, n_rows=n_rows, rand_int=rng.randint)
    target.random_ships_placement()
    board = target.gameboard
    strategy = create_strategy(skills, n_cols, n_rows, [length for _, length in fleet], rng.randint)

    shots = 0
    while board.has_deployed_ships():
        coords = strategy.select_target()
        outcome = board.receive_attack(coords)
        shots += 1
        sunk_ship = board.get_cell(coords).ship if outcome is AttackOutcome.SUNK else None
        position = board.get_ship_position(sunk_ship) if sunk_ship else None
        strategy.record_outcome(
            AttackResult(
                coords=coords,
                outcome=outcome,
                is_win=not board.has_deployed_ships(),
                sunk_ship=sunk_ship,
                sunk_ship_coords=position.cells if position else (),
            )
        )
    return shots


class StrategyEvaluator:
    """Plays each configured strategy against freshly deployed fleets."""

    def __init__(self, config: EvaluationConfig) -> None:
        self.config = config
        self.tracer = get_tracer("salvo.ai.evaluation")
        self.shots_hist = get_meter("salvo.ai.evaluation").create_histogram(
            "salvo_ai_shots_per_game",
            unit="1",
            description="Shots a targeting strategy needed to sink the whole fleet",
        )
        self.history: list[EvaluationReport] = []

    def evaluate(self, skills: Skills) -> EvaluationReport:
        config = self.config
        n_rows = config.n_rows if config.n_rows is not None else config.n_cols
        rng = random.Random(config.seed)
        with self.tracer.start_as_current_span("evaluate_strategy") as span:
            span.set_attribute("ai.skills", skills.value)
            span.set_attribute("games", config.games)
            shots = np.array(
                [
                    play_solo_game(skills, config.n_cols, n_rows, config.fleet, rng)
                    for _ in range(config.games)
                ],
                dtype=np.int64,
            )
            for value in shots:
                self.shots_hist.record(int(value), attributes={"skills": skills.value})

            report = EvaluationReport(
                skills=skills,
                games=config.games,
                mean_shots=float(shots.mean()) if shots.size else 0.0,
                std_shots=float(shots.std()) if shots.size else 0.0,
                min_shots=int(shots.min()) if shots.size else 0,
                max_shots=int(shots.max()) if shots.size else 0,
            )
            span.set_attribute("eval.mean_shots", report.mean_shots)
            logger.info("evaluate_strategy", extra=report.as_dict())

        self.history.append(report)
        return report

    def run(self) -> list[EvaluationReport]:
        return [self.evaluate(skills) for skills in self.config.skills]

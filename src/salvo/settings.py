"""Game settings: board size, fleet composition, AI skills and pacing."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, Field, PositiveInt, field_validator, model_validator

from salvo.ai import Skills
from salvo.engine import player


class ShipSpec(BaseModel):
    """A ship every player adds to their fleet."""

    name: str = Field(min_length=1)
    length: PositiveInt


DEFAULT_FLEET: tuple[ShipSpec, ...] = tuple(
    ShipSpec(name=name, length=length) for name, length in player.DEFAULT_FLEET
)

# Rows are labelled A to Z.
MAX_BOARD_ROWS = 26

# env variable -> settings field
_ENV_FIELDS = {
    "SALVO_BOARD_COLS": "board_cols",
    "SALVO_BOARD_ROWS": "board_rows",
    "SALVO_AI_SKILLS": "ai_skills",
    "SALVO_AI_MOVE_DELAY_MS": "ai_move_delay_ms",
    "SALVO_AI_DEPLOY_FLEET_DELAY_MS": "ai_deploy_fleet_delay_ms",
    "SALVO_END_GAME_DELAY_MS": "end_game_delay_ms",
}


def parse_fleet(text: str) -> list[ShipSpec]:
    """Parse ``"Carrier:5,Destroyer:2"`` into ship specs."""
    fleet = []
    for item in text.split(","):
        if not item.strip():
            continue
        name, sep, length = item.partition(":")
        if not sep:
            raise ValueError(f"Fleet entry {item!r} must look like NAME:LENGTH.")
        fleet.append(ShipSpec(name=name.strip(), length=int(length)))
    return fleet


class GameSettings(BaseModel):
    """Settings shared by the game controller and the CLI."""

    board_cols: PositiveInt = player.DEFAULT_BOARD_SIZE
    board_rows: PositiveInt | None = None
    fleet: list[ShipSpec] = Field(default_factory=lambda: list(DEFAULT_FLEET))
    ai_skills: Skills = Skills.IMPROVED_PROBABILISTIC
    ai_move_delay_ms: int = Field(default=500, ge=0)
    ai_deploy_fleet_delay_ms: int = Field(default=1000, ge=0)
    end_game_delay_ms: int = Field(default=2000, ge=0)

    @field_validator("ai_skills", mode="before")
    @classmethod
    def _coerce_skills(cls, value: Any) -> Any:
        return Skills(value) if isinstance(value, str) else value

    @field_validator("fleet")
    @classmethod
    def _unique_names(cls, fleet: list[ShipSpec]) -> list[ShipSpec]:
        names = [ship.name for ship in fleet]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate ship names in fleet: {', '.join(duplicates)}")
        if not fleet:
            raise ValueError("The fleet needs at least one ship.")
        return fleet

    @model_validator(mode="after")
    def _fleet_fits_board(self) -> GameSettings:
        if self.rows > MAX_BOARD_ROWS:
            raise ValueError(f"Boards have at most {MAX_BOARD_ROWS} rows, got {self.rows}.")
        longest = max(ship.length for ship in self.fleet)
        if longest > max(self.board_cols, self.rows):
            raise ValueError(f"A ship of length {longest} does not fit on the board.")
        return self

    @property
    def rows(self) -> int:
        return self.board_cols if self.board_rows is None else self.board_rows

    @property
    def fleet_items(self) -> list[tuple[str, int]]:
        return [(ship.name, ship.length) for ship in self.fleet]

    @classmethod
    def from_env(cls, **overrides: Any) -> GameSettings:
        """Build settings from ``SALVO_*`` variables, then apply overrides."""
        data: dict[str, Any] = {}
        for name, field_name in _ENV_FIELDS.items():
            value = os.getenv(name)
            if value is not None and value.strip():
                data[field_name] = value.strip()
        fleet = os.getenv("SALVO_FLEET")
        if fleet:
            data["fleet"] = parse_fleet(fleet)
        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)


@lru_cache(maxsize=1)
def load_game_settings() -> GameSettings:
    """Load and cache game settings from the environment."""
    return GameSettings.from_env()

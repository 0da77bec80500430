"""Tests for game settings loaded from defaults and the environment."""

import pytest
from pydantic import ValidationError

from salvo import cli
from salvo.ai import Skills
from salvo.engine.board import Gameboard
from salvo.engine.ship import Coordinate
from salvo.settings import GameSettings, ShipSpec, load_game_settings, parse_fleet

ENV_VARS = (
    "SALVO_BOARD_COLS",
    "SALVO_BOARD_ROWS",
    "SALVO_AI_SKILLS",
    "SALVO_AI_MOVE_DELAY_MS",
    "SALVO_AI_DEPLOY_FLEET_DELAY_MS",
    "SALVO_END_GAME_DELAY_MS",
    "SALVO_FLEET",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_classic_game() -> None:
    settings = GameSettings()
    assert (settings.board_cols, settings.rows) == (10, 10)
    assert settings.fleet_items == [
        ("Carrier", 5),
        ("Battleship", 4),
        ("Cruiser", 3),
        ("Submarine", 3),
        ("Destroyer", 2),
    ]
    assert settings.ai_skills is Skills.IMPROVED_PROBABILISTIC
    assert settings.ai_move_delay_ms == 500
    assert settings.ai_deploy_fleet_delay_ms == 1000
    assert settings.end_game_delay_ms == 2000


def test_from_env_reads_salvo_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SALVO_BOARD_COLS", "8")
    monkeypatch.setenv("SALVO_BOARD_ROWS", "6")
    monkeypatch.setenv("SALVO_AI_SKILLS", "huntTarget")
    monkeypatch.setenv("SALVO_AI_MOVE_DELAY_MS", "0")
    monkeypatch.setenv("SALVO_FLEET", "Cruiser:3, Destroyer:2")

    settings = GameSettings.from_env(board_rows=None, end_game_delay_ms=10)
    assert (settings.board_cols, settings.rows) == (8, 6)
    assert settings.ai_skills is Skills.HUNT_TARGET
    assert settings.ai_move_delay_ms == 0
    assert settings.end_game_delay_ms == 10
    assert settings.fleet_items == [("Cruiser", 3), ("Destroyer", 2)]


def test_parse_fleet_rejects_malformed_entries() -> None:
    assert parse_fleet("A:1,,B:2") == [ShipSpec(name="A", length=1), ShipSpec(name="B", length=2)]
    with pytest.raises(ValueError):
        parse_fleet("Carrier")
    with pytest.raises(ValueError):
        parse_fleet("Carrier:0")


@pytest.mark.parametrize(
    "data",
    [
        {"fleet": []},
        {"fleet": [ShipSpec(name="A", length=2), ShipSpec(name="A", length=3)]},
        {"board_cols": 4},
        {"ai_move_delay_ms": -1},
        {"ai_skills": "telepathic"},
        {"board_cols": 27},
        {"board_cols": 10, "board_rows": 27},
    ],
)
def test_invalid_settings_are_rejected(data: dict) -> None:
    with pytest.raises(ValidationError):
        GameSettings(**data)


def test_rectangular_board_fits_ship_along_longest_side() -> None:
    settings = GameSettings(board_cols=5, board_rows=3)
    assert (settings.board_cols, settings.rows) == (5, 3)



def test_rows_are_limited_to_the_alphabet() -> None:
    settings = GameSettings(board_cols=30, board_rows=26)
    assert (settings.board_cols, settings.rows) == (30, 26)
    board = Gameboard(settings.board_cols, settings.rows)
    assert cli.format_coordinate(Coordinate(29, 25)) == "Z30"
    assert cli.format_board(board, show_ships=False).splitlines()[-1].startswith("Z |")


def test_load_game_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    load_game_settings.cache_clear()
    monkeypatch.setenv("SALVO_BOARD_COLS", "12")
    first = load_game_settings()
    monkeypatch.setenv("SALVO_BOARD_COLS", "9")
    assert load_game_settings() is first
    assert first.board_cols == 12
    load_game_settings.cache_clear()

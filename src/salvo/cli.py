"""Command-line driver: play against the AI or evaluate targeting strategies."""

from __future__ import annotations

import argparse
import random
import string
import time
from typing import Callable, Sequence

from salvo.ai import Skills
from salvo.ai.evaluation import EvaluationConfig, StrategyEvaluator
from salvo.engine.board import Gameboard
from salvo.engine.game import GameEvent, GamePhase
from salvo.engine.instrumented_game import InstrumentedGameController
from salvo.engine.outcome import AttackOutcome, AttackResult
from salvo.engine.player import Player
from salvo.engine.ship import Coordinate
from salvo.errors import GameRuleError
from salvo.settings import GameSettings
from salvo.telemetry import configure_console_logging, init_telemetry

ROW_LABELS = string.ascii_uppercase

Prompt = Callable[[str], str]

DEPLOY_HELP = (
    "Commands: 'rotate SHIP [CELL]', 'move SHIP FROM TO', 'reroll', 'ready', 'q'.\n"
    "Cells are written like A5 (row letter, column number) or '5 1' (column row)."
)


def parse_coordinate(text: str, board: Gameboard) -> Coordinate:
    """Parse ``A5`` (row A, column 5) or ``"5 1"`` (column 5, row 1), one-based."""
    cleaned = text.strip().upper()
    if not cleaned:
        raise ValueError("Empty coordinate.")
    if cleaned[0].isalpha():
        if cleaned[0] not in ROW_LABELS[: board.n_rows]:
            raise ValueError(f"Row must be between A and {ROW_LABELS[board.n_rows - 1]}.")
        row = ROW_LABELS.index(cleaned[0])
        try:
            col = int(cleaned[1:]) - 1
        except ValueError as exc:
            raise ValueError(f"Column must be a number between 1 and {board.n_cols}.") from exc
    else:
        parts = cleaned.split()
        if len(parts) != 2:
            raise ValueError("Use formats like A5 or '5 1'.")
        try:
            col, row = (int(part) - 1 for part in parts)
        except ValueError as exc:
            raise ValueError("Column and row must be numbers.") from exc
    coords = Coordinate(col, row)
    if not board.is_valid_cell(coords):
        raise ValueError(f"Coordinates must be within the {board.n_cols}x{board.n_rows} board.")
    return coords


def format_coordinate(coords: Coordinate) -> str:
    return f"{ROW_LABELS[coords.row]}{coords.col + 1}"


def format_board(board: Gameboard, show_ships: bool) -> str:
    header = "    " + " ".join(f"{col + 1:>2}" for col in range(board.n_cols))
    rows = [header]
    for row in range(board.n_rows):
        symbols = []
        for col in range(board.n_cols):
            cell = board.get_cell(Coordinate(col, row))
            if cell.attacked:
                symbol = "X" if cell.has_ship() else "o"
            elif show_ships and cell.has_ship():
                symbol = "S"
            else:
                symbol = "."
            symbols.append(f"{symbol:>2}")
        rows.append(f"{ROW_LABELS[row]} |" + " ".join(symbols))
    return "\n".join(rows)


def describe_attack(attacker: Player, result: AttackResult) -> str:
    label = format_coordinate(result.coords)
    if result.outcome is AttackOutcome.MISS:
        outcome = "miss"
    elif result.outcome is AttackOutcome.HIT:
        outcome = "hit"
    else:
        outcome = f"sank the {result.sunk_ship}!"
    return f"{attacker.name} fired at {label}: {outcome}"


def run_deploy_command(player: Player, command: str) -> bool:
    """Apply one deployment command; returns True once the player is ready."""
    board = player.gameboard
    words = command.split()
    if not words:
        return False
    verb, args = words[0].lower(), words[1:]
    if verb == "reroll":
        player.repeat_random_ships_placement()
    elif verb == "rotate" and args:
        center = parse_coordinate(" ".join(args[1:]), board) if len(args) > 1 else None
        board.rotate_ship(args[0], center)
    elif verb == "move" and len(args) == 3:
        grab = parse_coordinate(args[1], board)
        drop = parse_coordinate(args[2], board)
        session = board.start_move_ship(args[0], grab)
        if not board.end_move_ship(session, drop):
            print(f"{args[0]} cannot go there; it stays in place.")
    elif verb == "ready":
        return True
    else:
        print(DEPLOY_HELP)
    return False


def deploy_fleet(player: Player, prompt: Prompt) -> None:
    player.random_ships_placement()
    print(DEPLOY_HELP)
    while True:
        print(f"\n{player.name}'s fleet:")
        print(format_board(player.gameboard, show_ships=True))
        for name in player.gameboard.deployed_fleet:
            position = player.gameboard.get_ship_position(name)
            assert position is not None
            print(f"  {name:<12} {format_coordinate(position.stern)} facing {position.direction.name}")
        raw = prompt("deploy> ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            if run_deploy_command(player, raw):
                return
        except (GameRuleError, ValueError) as exc:
            print(f"Invalid command: {exc}")


def prompt_for_target(board: Gameboard, prompt: Prompt) -> Coordinate:
    while True:
        raw = prompt("Enter target coordinate (e.g., A5) or 'q' to quit: ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            coords = parse_coordinate(raw, board)
        except ValueError as exc:
            print(f"Invalid input: {exc}")
            continue
        if board.is_attacked(coords):
            print("That cell has already been targeted. Choose another.")
            continue
        return coords


def play_game(
    settings: GameSettings,
    player_name: str = "Captain",
    seed: int | None = None,
    delays: bool = True,
    prompt: Prompt = input,
) -> Player | None:
    """Run an interactive match against the AI and return the winner."""
    print("Welcome to Battleship!\n")
    rng = random.Random(seed)
    game = InstrumentedGameController(
        player_name, f"AI ({settings.ai_skills.value})", settings=settings, rand_int=rng.randint
    )

    def pause(milliseconds: int) -> None:
        if delays:
            time.sleep(milliseconds / 1000)

    def on_event(event: GameEvent) -> None:
        if event.kind == "attack_resolved":
            print(describe_attack(event.payload["attacker"], event.payload["result"]))
        elif event.kind == "first_player_selected":
            print(f"\n{event.payload['player'].name} shoots first.")

    game.subscribe(on_event)
    deploy_fleet(game.player1, prompt)
    print("\nThe AI is deploying its fleet...")
    pause(settings.ai_deploy_fleet_delay_ms)
    game.fleet_deployed()

    human, ai = game.player1, game.player2
    while game.phase is GamePhase.AIMING:
        if game.current_player is human:
            print("\nYour Board:")
            print(format_board(human.gameboard, show_ships=True))
            print("\nEnemy Waters:")
            print(format_board(ai.gameboard, show_ships=False))
            coords = prompt_for_target(ai.gameboard, prompt)
            game.play_turn(coords)
        else:
            pause(settings.ai_move_delay_ms)
            game.play_turn()

    pause(settings.end_game_delay_ms)
    if game.winner is human:
        print("\nCongratulations, you won!")
    else:
        print("\nThe AI won this time. Better luck next battle!")
        print(format_board(ai.gameboard, show_ships=True))
    return game.winner


def run_evaluation(config: EvaluationConfig) -> None:
    evaluator = StrategyEvaluator(config)
    print(f"{'strategy':<24}{'games':>7}{'mean':>9}{'std':>8}{'min':>6}{'max':>6}")
    for skills in config.skills:
        report = evaluator.evaluate(skills)
        print(
            f"{skills.value:<24}{report.games:>7}{report.mean_shots:>9.2f}"
            f"{report.std_shots:>8.2f}{report.min_shots:>6}{report.max_shots:>6}"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="salvo", description="Battleship against an AI.")
    parser.add_argument("--log-level", default="WARNING", help="Console log level.")
    commands = parser.add_subparsers(dest="command", required=True)

    play = commands.add_parser("play", help="Play against the AI in the terminal.")
    play.add_argument("--seed", type=int, default=None, help="Optional RNG seed.")
    play.add_argument("--name", default="Captain", help="Your player name.")
    play.add_argument("--skills", type=Skills, default=None, help="AI targeting strategy.")
    play.add_argument("--cols", type=int, default=None, help="Board columns.")
    play.add_argument("--rows", type=int, default=None, help="Board rows.")
    play.add_argument("--no-delay", action="store_true", help="Skip the AI pacing delays.")

    evaluate = commands.add_parser("evaluate", help="Benchmark targeting strategies.")
    evaluate.add_argument(
        "--skills", type=Skills, nargs="+", default=list(Skills), help="Strategies to evaluate."
    )
    evaluate.add_argument("--games", type=int, default=100, help="Games per strategy.")
    evaluate.add_argument("--seed", type=int, default=None, help="Optional RNG seed.")
    evaluate.add_argument("--cols", type=int, default=None, help="Board columns.")
    evaluate.add_argument("--rows", type=int, default=None, help="Board rows.")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_console_logging(args.log_level.upper())
    init_telemetry()
    overrides = {"board_cols": args.cols, "board_rows": args.rows}
    if args.command == "play":
        overrides["ai_skills"] = args.skills
    settings = GameSettings.from_env(**overrides)

    if args.command == "play":
        play_game(settings, player_name=args.name, seed=args.seed, delays=not args.no_delay)
    else:
        run_evaluation(
            EvaluationConfig(
                skills=args.skills,
                games=args.games,
                n_cols=settings.board_cols,
                n_rows=settings.rows,
                fleet=settings.fleet_items,
                seed=args.seed,
            )
        )


if __name__ == "__main__":
    main()

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from geocoin.content.io import DEFAULT_CONFIG_PATH, load_config_json, load_session_json, save_session_json
from geocoin.sim.coins import Coin
from geocoin.sim.hash import session_hash
from geocoin.sim.session import MOVE_DIRECTIONS, GameSession


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="geocoin-play",
        description="Apply one game action to a geocoin save file and write it back.",
    )
    parser.add_argument("save_path", help="Path to the session save JSON")
    parser.add_argument("--verbose", action="store_true", help="Log cache activity to stderr")
    commands = parser.add_subparsers(dest="command", required=True)

    new_parser = commands.add_parser("new", help="Create a fresh save")
    new_parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Config JSON used to create the save.")
    new_parser.add_argument("--force", action="store_true", help="Overwrite save_path if it already exists")

    commands.add_parser("look", help="List caches around the player")

    move_parser = commands.add_parser("move", help="Step the player one cell")
    move_parser.add_argument("direction", choices=sorted(MOVE_DIRECTIONS))

    for name, help_text in (("poke", "Take a coin from a cache"), ("deposit", "Leave a coin in a cache")):
        action_parser = commands.add_parser(name, help=help_text)
        action_parser.add_argument("i", type=int)
        action_parser.add_argument("j", type=int)

    commands.add_parser("inventory", help="List coins held by the player")
    commands.add_parser("reset", help="Erase all caches, coins and history")
    return parser


def _describe_coins(coins: Sequence[Coin]) -> str:
    return " ".join(coin.coin_id for coin in coins) or "<empty>"


def _run_command(args: argparse.Namespace, session: GameSession) -> None:
    if args.command == "look":
        player = session.player_cell
        print(f"player cell={player.i},{player.j} points={session.points} inventory={len(session.inventory)}")
        for state in session.visible_caches():
            print(f"cache {state.cell.i},{state.cell.j} coins={len(state)}")
    elif args.command == "move":
        cell = session.move_direction(args.direction)
        print(f"moved {args.direction} cell={cell.i},{cell.j}")
    elif args.command in {"poke", "deposit"}:
        cell = session.grid.canonical(args.i, args.j)
        action = session.poke if args.command == "poke" else session.deposit
        coin = action(cell)
        if coin is None:
            print(f"{args.command} {cell.key}: nothing to move")
        else:
            print(f"{args.command} {cell.key}: {coin.coin_id}")
    elif args.command == "inventory":
        print(f"inventory {_describe_coins(session.inventory.coins)}")
    elif args.command == "reset":
        session.reset()
        print("reset")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    save_path = Path(args.save_path)
    try:
        if args.command == "new":
            if save_path.exists() and not args.force:
                raise ValueError(f"output exists: {save_path} (use --force to overwrite)")
            session = GameSession.new(load_config_json(args.config))
        else:
            if not save_path.exists():
                raise ValueError(f"save_path does not exist: {save_path} (run 'new' first)")
            session = load_session_json(save_path)
            _run_command(args, session)

        save_session_json(save_path, session)
        print(f"ok save_path={save_path} session_hash={session_hash(session)}")
    except Exception as exc:
        print(f"error: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

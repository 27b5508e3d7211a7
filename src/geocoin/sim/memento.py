from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from geocoin.sim.coins import CacheState, Coin
from geocoin.sim.errors import CorruptStateError
from geocoin.sim.grid import Cell, GridIndex
from geocoin.sim.hash import memento_hash

MEMENTO_SCHEMA_VERSION = 1
MEMENTO_JSON_SEPARATORS = (",", ":")


@dataclass(frozen=True)
class CacheMemento:
    """Detached snapshot of one cache's coin sequence."""

    cell: Cell
    coins: tuple[Coin, ...]
    schema_version: int = MEMENTO_SCHEMA_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "cell": self.cell.to_dict(),
            "coins": [coin.to_dict() for coin in self.coins],
        }


def capture(state: CacheState) -> CacheMemento:
    return CacheMemento(cell=state.cell, coins=tuple(state.coins))


def restore(memento: CacheMemento, grid: GridIndex) -> CacheState:
    coins = [Coin(home_cell=grid.canonicalize(coin.home_cell), serial=coin.serial) for coin in memento.coins]
    return CacheState(cell=grid.canonicalize(memento.cell), coins=coins)


def encode_memento(memento: CacheMemento) -> str:
    payload = memento.to_dict()
    payload["memento_hash"] = memento_hash(payload)
    return json.dumps(payload, sort_keys=True, separators=MEMENTO_JSON_SEPARATORS)


def decode_memento(blob: str) -> CacheMemento:
    """Parse a stored blob; anything but a well-formed, untampered memento is corrupt."""
    if not isinstance(blob, str):
        raise CorruptStateError("memento blob must be a string")
    try:
        payload = json.loads(blob)
    except json.JSONDecodeError as exc:
        raise CorruptStateError(f"memento is not valid JSON: {exc.msg}") from exc
    except RecursionError as exc:
        raise CorruptStateError("memento nests too deeply to decode") from exc
    if not isinstance(payload, dict):
        raise CorruptStateError("memento must be an object")

    schema_version = payload.get("schema_version")
    if isinstance(schema_version, bool) or schema_version != MEMENTO_SCHEMA_VERSION:
        raise CorruptStateError(f"unsupported memento schema_version: {schema_version!r}")

    expected_hash = payload.get("memento_hash")
    hashed_fields = {key: value for key, value in payload.items() if key != "memento_hash"}
    try:
        actual_hash = memento_hash(hashed_fields)
    except RecursionError as exc:
        # json.loads and json.dumps stop at different depths.
        raise CorruptStateError("memento nests too deeply to hash") from exc
    if expected_hash != actual_hash:
        raise CorruptStateError(
            f"memento_hash mismatch (stored={expected_hash}, recomputed={actual_hash})"
        )

    try:
        cell = Cell.from_dict(payload.get("cell"))
        rows = payload.get("coins")
        if not isinstance(rows, list):
            raise CorruptStateError("memento.coins must be a list")
        coins: list[Coin] = []
        for index, row in enumerate(rows):
            if not isinstance(row, dict):
                raise CorruptStateError(f"memento.coins[{index}] must be an object")
            coins.append(Coin(home_cell=Cell(i=row.get("i"), j=row.get("j")), serial=row.get("serial")))
    except CorruptStateError:
        raise
    except ValueError as exc:
        raise CorruptStateError(f"memento has invalid content: {exc}") from exc

    return CacheMemento(cell=cell, coins=tuple(coins), schema_version=schema_version)

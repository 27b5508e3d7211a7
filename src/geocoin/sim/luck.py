from __future__ import annotations

import hashlib
import json
import math
from typing import Any, Callable, Sequence

from geocoin.sim.coins import Coin
from geocoin.sim.grid import Cell

COIN_COUNT_SALT = "coinCount"
_LUCK_MANTISSA_BITS = 53

LuckFunction = Callable[[Sequence[Any]], float]


def _require_primitive_key(key: Sequence[Any]) -> list[Any]:
    if isinstance(key, (str, bytes)) or not isinstance(key, (list, tuple)):
        raise ValueError("luck key must be a list or tuple of primitive values")
    parts: list[Any] = []
    for index, part in enumerate(key):
        if not isinstance(part, (bool, int, float, str)):
            raise ValueError(f"luck key[{index}] must be a str, int, float or bool")
        if isinstance(part, float) and not math.isfinite(part):
            raise ValueError(f"luck key[{index}] must be finite")
        parts.append(part)
    return parts


def luck_value(key: Sequence[Any]) -> float:
    """Deterministic pseudo-random value in [0, 1) derived only from ``key``."""
    encoded = json.dumps(_require_primitive_key(key), separators=(",", ":")).encode("utf-8")
    digest = hashlib.sha256(encoded).digest()
    raw = int.from_bytes(digest[:8], byteorder="big", signed=False) >> (64 - _LUCK_MANTISSA_BITS)
    return raw / float(1 << _LUCK_MANTISSA_BITS)


class CacheGenerator:
    """Decides cache presence and initial contents from a cell's luck values."""

    def __init__(
        self,
        *,
        spawn_probability: float,
        max_coins_per_cache: int,
        luck: LuckFunction = luck_value,
    ) -> None:
        if not 0.0 <= spawn_probability <= 1.0:
            raise ValueError("spawn_probability must be within [0.0, 1.0]")
        if isinstance(max_coins_per_cache, bool) or not isinstance(max_coins_per_cache, int):
            raise ValueError("max_coins_per_cache must be an integer")
        if max_coins_per_cache < 0:
            raise ValueError("max_coins_per_cache must be >= 0")
        self.spawn_probability = float(spawn_probability)
        self.max_coins_per_cache = max_coins_per_cache
        self._luck = luck

    def spawns(self, cell: Cell) -> bool:
        return self._luck([cell.i, cell.j]) < self.spawn_probability

    def initial_coin_count(self, cell: Cell) -> int:
        if not self.spawns(cell):
            return 0
        roll = self._luck([cell.i, cell.j, COIN_COUNT_SALT])
        return math.floor(roll * self.max_coins_per_cache)

    def initial_coins(self, cell: Cell) -> list[Coin]:
        return [Coin(home_cell=cell, serial=serial) for serial in range(self.initial_coin_count(cell))]

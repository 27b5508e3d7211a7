from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from geocoin.sim.grid import Cell, GridIndex


def _require_serial(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    if value < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return value


@dataclass(frozen=True)
class Coin:
    """Collectible token; (home_cell, serial) identifies it for its whole lifetime."""

    home_cell: Cell
    serial: int

    def __post_init__(self) -> None:
        _require_serial(self.serial, field_name="coin.serial")

    @property
    def coin_id(self) -> str:
        return f"{self.home_cell.i}:{self.home_cell.j}#{self.serial}"

    def to_dict(self) -> dict[str, int]:
        return {"i": self.home_cell.i, "j": self.home_cell.j, "serial": self.serial}

    @classmethod
    def from_dict(cls, data: dict[str, Any], grid: GridIndex) -> "Coin":
        if not isinstance(data, dict):
            raise ValueError("coin must be an object")
        return cls(
            home_cell=grid.canonical(data.get("i"), data.get("j")),
            serial=_require_serial(data.get("serial"), field_name="coin.serial"),
        )


@dataclass
class CacheState:
    cell: Cell
    coins: list[Coin] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.coins)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cell": self.cell.to_dict(),
            "coins": [coin.to_dict() for coin in self.coins],
        }


@dataclass
class PlayerInventory:
    coins: list[Coin] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.coins)

    def clear(self) -> None:
        self.coins.clear()

    def to_dict(self) -> dict[str, Any]:
        return {"coins": [coin.to_dict() for coin in self.coins]}

    @classmethod
    def from_dict(cls, data: dict[str, Any], grid: GridIndex) -> "PlayerInventory":
        rows = data.get("coins", [])
        if not isinstance(rows, list):
            raise ValueError("inventory.coins must be a list")
        return cls(coins=[Coin.from_dict(row, grid) for row in rows])

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from geocoin.sim.grid import GeoPoint

DEFAULT_TILE_DEGREES = 1e-4
DEFAULT_NEIGHBORHOOD_SIZE = 8
DEFAULT_CACHE_SPAWN_PROBABILITY = 0.1
DEFAULT_MAX_COINS_PER_CACHE = 100
DEFAULT_START = GeoPoint(lat=36.9895, lng=-122.0628)


def _require_number(value: Any, *, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field_name} must be numeric")
    if not math.isfinite(value):
        raise ValueError(f"{field_name} must be finite")
    return float(value)


def _require_int(value: Any, *, field_name: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    if value < minimum:
        raise ValueError(f"{field_name} must be >= {minimum}")
    return value


@dataclass(frozen=True)
class GameConfig:
    tile_degrees: float = DEFAULT_TILE_DEGREES
    neighborhood_size: int = DEFAULT_NEIGHBORHOOD_SIZE
    cache_spawn_probability: float = DEFAULT_CACHE_SPAWN_PROBABILITY
    max_coins_per_cache: int = DEFAULT_MAX_COINS_PER_CACHE
    start: GeoPoint = field(default_factory=lambda: DEFAULT_START)

    def __post_init__(self) -> None:
        tile_degrees = _require_number(self.tile_degrees, field_name="config.tile_degrees")
        if tile_degrees <= 0.0:
            raise ValueError("config.tile_degrees must be > 0")
        _require_int(self.neighborhood_size, field_name="config.neighborhood_size", minimum=0)
        probability = _require_number(self.cache_spawn_probability, field_name="config.cache_spawn_probability")
        if probability < 0.0 or probability > 1.0:
            raise ValueError("config.cache_spawn_probability must be within [0.0, 1.0]")
        _require_int(self.max_coins_per_cache, field_name="config.max_coins_per_cache", minimum=0)
        if not isinstance(self.start, GeoPoint):
            raise ValueError("config.start must be a GeoPoint")
        _require_number(self.start.lat, field_name="config.start.lat")
        _require_number(self.start.lng, field_name="config.start.lng")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tile_degrees": self.tile_degrees,
            "neighborhood_size": self.neighborhood_size,
            "cache_spawn_probability": self.cache_spawn_probability,
            "max_coins_per_cache": self.max_coins_per_cache,
            "start": self.start.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameConfig":
        if not isinstance(data, dict):
            raise ValueError("config must be an object")
        start = data.get("start")
        if start is not None and not isinstance(start, dict):
            raise ValueError("config.start must be an object")
        return cls(
            tile_degrees=data.get("tile_degrees", DEFAULT_TILE_DEGREES),
            neighborhood_size=data.get("neighborhood_size", DEFAULT_NEIGHBORHOOD_SIZE),
            cache_spawn_probability=data.get("cache_spawn_probability", DEFAULT_CACHE_SPAWN_PROBABILITY),
            max_coins_per_cache=data.get("max_coins_per_cache", DEFAULT_MAX_COINS_PER_CACHE),
            start=(GeoPoint.from_dict(start) if start is not None else DEFAULT_START),
        )

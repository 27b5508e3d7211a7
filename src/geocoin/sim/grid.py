from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from geocoin.sim.errors import InvalidCellError


def _require_cell_index(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidCellError(f"{field_name} must be an integer")
    return value


def cell_key(i: int, j: int) -> str:
    return f"{i},{j}"


@dataclass(frozen=True, order=True)
class Cell:
    """Discrete grid address (i, j); i follows longitude, j follows latitude."""

    i: int
    j: int

    def __post_init__(self) -> None:
        _require_cell_index(self.i, field_name="cell.i")
        _require_cell_index(self.j, field_name="cell.j")

    @property
    def key(self) -> str:
        return cell_key(self.i, self.j)

    def to_dict(self) -> dict[str, int]:
        return {"i": self.i, "j": self.j}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Cell":
        if not isinstance(data, dict):
            raise InvalidCellError("cell must be an object")
        if "i" not in data or "j" not in data:
            raise InvalidCellError("cell requires i and j")
        return cls(i=data["i"], j=data["j"])


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeoPoint":
        if not isinstance(data, dict) or "lat" not in data or "lng" not in data:
            raise ValueError("point requires lat and lng")
        for field_name in ("lat", "lng"):
            value = data[field_name]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"point.{field_name} must be numeric")
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))


@dataclass(frozen=True)
class CellBounds:
    south_west: GeoPoint
    north_east: GeoPoint

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(
            lat=(self.south_west.lat + self.north_east.lat) / 2.0,
            lng=(self.south_west.lng + self.north_east.lng) / 2.0,
        )

    def contains(self, point: GeoPoint) -> bool:
        return (
            self.south_west.lat <= point.lat < self.north_east.lat
            and self.south_west.lng <= point.lng < self.north_east.lng
        )


class GridIndex:
    """Maps continuous coordinates onto canonical square cells.

    Every cell handed out by one index is the registry instance for its
    (i, j), so cells from the same index can be compared with ``is``.
    """

    def __init__(self, tile_degrees: float) -> None:
        if isinstance(tile_degrees, bool) or not isinstance(tile_degrees, (int, float)):
            raise ValueError("tile_degrees must be numeric")
        if not math.isfinite(tile_degrees) or tile_degrees <= 0:
            raise ValueError("tile_degrees must be a finite number > 0")
        self.tile_degrees = float(tile_degrees)
        self._known_cells: dict[str, Cell] = {}

    @property
    def known_cell_count(self) -> int:
        return len(self._known_cells)

    def canonical(self, i: int, j: int) -> Cell:
        _require_cell_index(i, field_name="cell.i")
        _require_cell_index(j, field_name="cell.j")
        key = cell_key(i, j)
        cell = self._known_cells.get(key)
        if cell is None:
            cell = Cell(i=i, j=j)
            self._known_cells[key] = cell
        return cell

    def canonicalize(self, cell: Cell) -> Cell:
        return self.canonical(cell.i, cell.j)

    def cell_for_key(self, key: str) -> Cell:
        if not isinstance(key, str):
            raise InvalidCellError("cell key must be a string")
        parts = key.split(",")
        if len(parts) != 2:
            raise InvalidCellError(f"malformed cell key: {key!r}")
        try:
            i, j = (int(part) for part in parts)
        except ValueError as exc:
            raise InvalidCellError(f"malformed cell key: {key!r}") from exc
        if cell_key(i, j) != key:
            raise InvalidCellError(f"non-canonical cell key: {key!r}")
        return self.canonical(i, j)

    def cell_for_point(self, point: GeoPoint) -> Cell:
        if not math.isfinite(point.lat) or not math.isfinite(point.lng):
            raise InvalidCellError("point coordinates must be finite")
        i = math.floor(point.lng / self.tile_degrees)
        j = math.floor(point.lat / self.tile_degrees)
        return self.canonical(i, j)

    def bounds_for_cell(self, cell: Cell) -> CellBounds:
        south_west = GeoPoint(lat=cell.j * self.tile_degrees, lng=cell.i * self.tile_degrees)
        north_east = GeoPoint(lat=(cell.j + 1) * self.tile_degrees, lng=(cell.i + 1) * self.tile_degrees)
        return CellBounds(south_west=south_west, north_east=north_east)

    def cells_near_point(self, point: GeoPoint, radius: int) -> list[Cell]:
        if isinstance(radius, bool) or not isinstance(radius, int):
            raise ValueError("radius must be an integer")
        if radius < 0:
            raise ValueError("radius must be >= 0")

        origin = self.cell_for_point(point)
        cells: list[Cell] = []
        for di in range(-radius, radius + 1):
            for dj in range(-radius, radius + 1):
                cells.append(self.canonical(origin.i + di, origin.j + dj))
        return cells

from __future__ import annotations

import logging
from typing import Any

from geocoin.sim import transfer
from geocoin.sim.cache import CacheStore
from geocoin.sim.coins import CacheState, Coin, PlayerInventory
from geocoin.sim.config import GameConfig
from geocoin.sim.errors import CorruptStateError
from geocoin.sim.grid import Cell, GeoPoint, GridIndex
from geocoin.sim.luck import CacheGenerator, LuckFunction, luck_value

logger = logging.getLogger(__name__)

MOVE_DIRECTIONS: dict[str, tuple[int, int]] = {
    "north": (1, 0),
    "south": (-1, 0),
    "east": (0, 1),
    "west": (0, -1),
}


class GameSession:
    """One player's game: position, inventory and the cache store they roam.

    Points count coins collected from caches; depositing never changes them.
    """

    def __init__(
        self,
        *,
        config: GameConfig,
        store: CacheStore,
        inventory: PlayerInventory | None = None,
        position: GeoPoint | None = None,
        movement_history: list[GeoPoint] | None = None,
        points: int = 0,
    ) -> None:
        if isinstance(points, bool) or not isinstance(points, int) or points < 0:
            raise ValueError("points must be a non-negative integer")
        self.config = config
        self.store = store
        self.inventory = inventory if inventory is not None else PlayerInventory()
        self.position = position if position is not None else config.start
        self.movement_history = list(movement_history or [])
        self.points = points

    @classmethod
    def new(cls, config: GameConfig | None = None, *, luck: LuckFunction = luck_value) -> "GameSession":
        config = config if config is not None else GameConfig()
        return cls(config=config, store=_build_store(config, luck=luck, mementos=None))

    @property
    def grid(self) -> GridIndex:
        return self.store.grid

    @property
    def player_cell(self) -> Cell:
        return self.grid.cell_for_point(self.position)

    def set_position(self, point: GeoPoint, *, record: bool = True) -> Cell:
        cell = self.grid.cell_for_point(point)
        self.position = point
        if record:
            self.movement_history.append(point)
        self._release_out_of_reach()
        return cell

    def move(self, d_lat: int, d_lng: int) -> Cell:
        """Step whole cells; the player lands on the centre of the target cell."""
        origin = self.player_cell
        target = self.grid.canonical(origin.i + d_lng, origin.j + d_lat)
        return self.set_position(self.grid.bounds_for_cell(target).center)

    def move_direction(self, direction: str) -> Cell:
        if direction not in MOVE_DIRECTIONS:
            raise ValueError(f"unknown direction: {direction}")
        d_lat, d_lng = MOVE_DIRECTIONS[direction]
        return self.move(d_lat, d_lng)

    def in_reach(self, cell: Cell) -> bool:
        origin = self.player_cell
        radius = self.config.neighborhood_size
        return abs(cell.i - origin.i) <= radius and abs(cell.j - origin.j) <= radius

    def nearby_cache_cells(self) -> list[Cell]:
        cells = self.grid.cells_near_point(self.position, self.config.neighborhood_size)
        return [cell for cell in cells if self.store.has_cache(cell)]

    def visible_caches(self) -> list[CacheState]:
        return [self.open_cache(cell) for cell in self.nearby_cache_cells()]

    def open_cache(self, cell: Cell) -> CacheState:
        try:
            return self.store.materialize(cell)
        except CorruptStateError as exc:
            logger.warning("discarding corrupt cache %s: %s", cell.key, exc)
            self.store.discard(cell)
            return self.store.materialize(cell)

    def poke(self, cell: Cell) -> Coin | None:
        state = self._open_reachable_cache(cell)
        coin = transfer.collect(state, self.inventory)
        if coin is None:
            return None
        self.store.commit(state.cell, state)
        self.points += 1
        logger.info("coin attained: %s", coin.coin_id)
        return coin

    def deposit(self, cell: Cell) -> Coin | None:
        state = self._open_reachable_cache(cell)
        coin = transfer.deposit(state, self.inventory)
        if coin is None:
            return None
        self.store.commit(state.cell, state)
        logger.info("coin deposited: %s into %s", coin.coin_id, cell.key)
        return coin

    def coin_home(self, coin: Coin) -> GeoPoint:
        return self.grid.bounds_for_cell(coin.home_cell).center

    def jump_to_coin_home(self, coin: Coin) -> Cell:
        return self.set_position(self.coin_home(coin), record=False)

    def total_coins_in_play(self) -> int:
        """Inventory plus every stored cache; corrupt caches are regenerated first."""
        cached = sum(len(self.open_cache(self.grid.cell_for_key(key))) for key in self.store.snapshot())
        self._release_out_of_reach()
        return cached + len(self.inventory)

    def reset(self) -> None:
        self.store.reset()
        self.inventory.clear()
        self.movement_history.clear()
        self.points = 0
        logger.info("game state has been reset")

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "session_state": {
                "position": self.position.to_dict(),
                "inventory": self.inventory.to_dict(),
                "movement_history": [[point.lat, point.lng] for point in self.movement_history],
                "points": self.points,
            },
            "cache_mementos": self.store.snapshot(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, luck: LuckFunction = luck_value) -> "GameSession":
        config = GameConfig.from_dict(data["config"])
        store = _build_store(config, luck=luck, mementos=dict(data.get("cache_mementos", {})))
        state = data["session_state"]
        return cls(
            config=config,
            store=store,
            inventory=PlayerInventory.from_dict(state.get("inventory", {}), store.grid),
            position=GeoPoint.from_dict(state["position"]),
            movement_history=[GeoPoint(lat=float(lat), lng=float(lng)) for lat, lng in state.get("movement_history", [])],
            points=state.get("points", 0),
        )

    def _open_reachable_cache(self, cell: Cell) -> CacheState:
        cell = self.grid.canonicalize(cell)
        if not self.in_reach(cell):
            raise ValueError(f"cache {cell.key} is out of reach of {self.player_cell.key}")
        if not self.store.has_cache(cell):
            raise ValueError(f"no cache at {cell.key}")
        return self.open_cache(cell)

    def _release_out_of_reach(self) -> None:
        for state in self.store.live_states().values():
            if not self.in_reach(state.cell):
                self.store.dematerialize(state.cell)


def _build_store(config: GameConfig, *, luck: LuckFunction, mementos: dict[str, str] | None) -> CacheStore:
    generator = CacheGenerator(
        spawn_probability=config.cache_spawn_probability,
        max_coins_per_cache=config.max_coins_per_cache,
        luck=luck,
    )
    return CacheStore(GridIndex(config.tile_degrees), generator, mementos)

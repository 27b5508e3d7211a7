from __future__ import annotations

import logging

from geocoin.sim.coins import CacheState
from geocoin.sim.errors import CorruptStateError
from geocoin.sim.grid import Cell, GridIndex
from geocoin.sim.luck import CacheGenerator
from geocoin.sim.memento import capture, decode_memento, encode_memento, restore

logger = logging.getLogger(__name__)


class CacheStore:
    """Authoritative per-cell cache contents.

    ``mementos`` maps cell keys to encoded snapshots and holds every cache that
    was ever generated. Live ``CacheState`` objects are a disposable working
    set: any of them can be dropped and rebuilt from its memento at will.
    Callers must ``commit`` after each mutation of a live state.
    """

    def __init__(
        self,
        grid: GridIndex,
        generator: CacheGenerator,
        mementos: dict[str, str] | None = None,
    ) -> None:
        self.grid = grid
        self.generator = generator
        self._mementos: dict[str, str] = {}
        self._live: dict[str, CacheState] = {}
        for key, blob in (mementos or {}).items():
            self.grid.cell_for_key(key)
            self._mementos[key] = blob

    def __contains__(self, cell: Cell) -> bool:
        return cell.key in self._mementos

    def __len__(self) -> int:
        return len(self._mementos)

    def has_cache(self, cell: Cell) -> bool:
        return cell.key in self._mementos or self.generator.spawns(cell)

    def materialize(self, cell: Cell) -> CacheState:
        cell = self.grid.canonicalize(cell)
        blob = self._mementos.get(cell.key)
        if blob is not None:
            memento = decode_memento(blob)
            if memento.cell != cell:
                raise CorruptStateError(
                    f"memento for {cell.key} describes cell {memento.cell.key}"
                )
            state = restore(memento, self.grid)
            logger.debug("restored cache %s with %d coins", cell.key, len(state))
        else:
            state = CacheState(cell=cell, coins=self.generator.initial_coins(cell))
            self._mementos[cell.key] = encode_memento(capture(state))
            logger.debug("generated cache %s with %d coins", cell.key, len(state))
        self._live[cell.key] = state
        return state

    def commit(self, cell: Cell, state: CacheState) -> None:
        if state.cell != cell:
            raise ValueError(f"cannot commit state of {state.cell.key} under {cell.key}")
        self._mementos[cell.key] = encode_memento(capture(state))
        logger.debug("committed cache %s with %d coins", cell.key, len(state))

    def dematerialize(self, cell: Cell) -> None:
        self._live.pop(cell.key, None)

    def live_states(self) -> dict[str, CacheState]:
        return dict(self._live)

    def memento_for(self, cell: Cell) -> str | None:
        return self._mementos.get(cell.key)

    def discard(self, cell: Cell) -> None:
        self._mementos.pop(cell.key, None)
        self._live.pop(cell.key, None)

    def reset(self) -> None:
        logger.info("resetting %d cached cells", len(self._mementos))
        self._mementos.clear()
        self._live.clear()

    def snapshot(self) -> dict[str, str]:
        return {key: self._mementos[key] for key in sorted(self._mementos)}

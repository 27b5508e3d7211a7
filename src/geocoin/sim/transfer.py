from __future__ import annotations

from geocoin.sim.coins import CacheState, Coin, PlayerInventory

# Both directions move exactly one coin from the head of the source to the
# tail of the destination, or nothing when the source is empty. Committing the
# touched cache is left to the caller.


def withdraw(cache: CacheState) -> Coin | None:
    if not cache.coins:
        return None
    return cache.coins.pop(0)


def collect(cache: CacheState, inventory: PlayerInventory) -> Coin | None:
    coin = withdraw(cache)
    if coin is not None:
        inventory.coins.append(coin)
    return coin


def deposit(cache: CacheState, inventory: PlayerInventory) -> Coin | None:
    if not inventory.coins:
        return None
    coin = inventory.coins.pop(0)
    cache.coins.append(coin)
    return coin

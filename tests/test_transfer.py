from collections import Counter

from geocoin.sim.coins import CacheState, Coin, PlayerInventory
from geocoin.sim.grid import GridIndex
from geocoin.sim.transfer import collect, deposit, withdraw


def _build_cache(count: int = 3) -> CacheState:
    cell = GridIndex(1e-4).canonical(3, -2)
    return CacheState(cell=cell, coins=[Coin(home_cell=cell, serial=serial) for serial in range(count)])


def _coin_multiset(cache: CacheState, inventory: PlayerInventory) -> Counter:
    return Counter(coin.coin_id for coin in [*cache.coins, *inventory.coins])


def test_withdraw_removes_oldest_coin() -> None:
    cache = _build_cache()

    coin = withdraw(cache)

    assert coin is not None and coin.serial == 0
    assert [c.serial for c in cache.coins] == [1, 2]


def test_withdraw_from_empty_cache_returns_none_without_change() -> None:
    cache = _build_cache(count=0)

    assert withdraw(cache) is None
    assert cache.coins == []


def test_collect_appends_to_inventory_tail() -> None:
    cache = _build_cache()
    inventory = PlayerInventory()

    collect(cache, inventory)
    collect(cache, inventory)

    assert [coin.serial for coin in inventory.coins] == [0, 1]
    assert [coin.serial for coin in cache.coins] == [2]


def test_deposit_moves_inventory_head_to_cache_tail() -> None:
    cache = _build_cache(count=1)
    other = GridIndex(1e-4).canonical(0, 0)
    inventory = PlayerInventory(coins=[Coin(home_cell=other, serial=7), Coin(home_cell=other, serial=8)])

    coin = deposit(cache, inventory)

    assert coin == Coin(home_cell=other, serial=7)
    assert [c.coin_id for c in cache.coins] == ["3:-2#0", "0:0#7"]
    assert [c.coin_id for c in inventory.coins] == ["0:0#8"]


def test_deposit_with_empty_inventory_returns_none_without_change() -> None:
    cache = _build_cache()
    inventory = PlayerInventory()

    assert deposit(cache, inventory) is None
    assert len(cache) == 3


def test_each_operation_conserves_total_and_never_duplicates() -> None:
    cache = _build_cache(count=2)
    inventory = PlayerInventory()
    operations = [collect, collect, collect, deposit, deposit, deposit, collect, deposit]

    for operation in operations:
        before = len(cache) + len(inventory)
        operation(cache, inventory)
        assert len(cache) + len(inventory) == before
        assert all(count == 1 for count in _coin_multiset(cache, inventory).values())


def test_collect_then_deposit_round_trip_preserves_multiset() -> None:
    cache = _build_cache()
    inventory = PlayerInventory()
    before = _coin_multiset(cache, inventory)

    moved = collect(cache, inventory)
    returned = deposit(cache, inventory)

    assert moved == returned
    assert _coin_multiset(cache, inventory) == before
    assert [coin.serial for coin in cache.coins] == [1, 2, 0]

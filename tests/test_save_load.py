import json
from pathlib import Path

import pytest

from geocoin.content.io import load_session_json, save_session_json
from geocoin.sim.config import GameConfig
from geocoin.sim.grid import GeoPoint
from geocoin.sim.hash import save_hash, session_hash
from geocoin.sim.luck import COIN_COUNT_SALT
from geocoin.sim.session import GameSession

LUCK_TABLE = {(0, 0): 0.05, (0, 0, COIN_COUNT_SALT): 0.45}


def _scripted_luck(key) -> float:
    return LUCK_TABLE.get(tuple(key), 0.99)


def _build_session() -> GameSession:
    config = GameConfig(
        tile_degrees=1e-4,
        neighborhood_size=2,
        cache_spawn_probability=0.1,
        max_coins_per_cache=10,
        start=GeoPoint(lat=0.00005, lng=0.00005),
    )
    session = GameSession.new(config, luck=_scripted_luck)
    session.visible_caches()
    session.poke(session.grid.canonical(0, 0))
    session.move_direction("north")
    return session


def test_save_then_load_round_trip_matches_session_hash(tmp_path: Path) -> None:
    session = _build_session()
    path = tmp_path / "session.json"

    save_session_json(path, session)
    loaded = load_session_json(path, luck=_scripted_luck)

    assert session_hash(loaded) == session_hash(session)
    assert loaded.points == 1
    assert [coin.coin_id for coin in loaded.inventory.coins] == ["0:0#0"]
    assert [coin.serial for coin in loaded.open_cache(loaded.grid.canonical(0, 0)).coins] == [1, 2, 3]


def test_save_payload_carries_schema_version_and_hash(tmp_path: Path) -> None:
    session = _build_session()
    path = tmp_path / "session.json"

    save_session_json(path, session)
    payload = json.loads(path.read_text(encoding="utf-8"))

    assert payload["schema_version"] == 1
    assert payload["save_hash"] == save_hash(payload)
    assert list(payload["cache_mementos"]) == ["0,0"]
    assert payload["session_state"]["points"] == 1


def test_canonical_json_stable_across_save_load_cycles(tmp_path: Path) -> None:
    first_path = tmp_path / "first.json"
    second_path = tmp_path / "second.json"

    save_session_json(first_path, _build_session())
    save_session_json(second_path, load_session_json(first_path, luck=_scripted_luck))

    assert first_path.read_text(encoding="utf-8") == second_path.read_text(encoding="utf-8")


def test_loader_fails_when_save_hash_does_not_match(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    save_session_json(path, _build_session())

    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["session_state"]["points"] = 99
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(ValueError, match="save_hash mismatch"):
        load_session_json(path)


def test_loader_rejects_missing_fields(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    save_session_json(path, _build_session())

    payload = json.loads(path.read_text(encoding="utf-8"))
    del payload["cache_mementos"]
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(ValueError, match="missing fields"):
        load_session_json(path)


def test_loader_rejects_malformed_inventory_coin(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    save_session_json(path, _build_session())

    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["session_state"]["inventory"]["coins"][0]["serial"] = "zero"
    payload["save_hash"] = save_hash(payload)
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(ValueError, match=r"inventory.coins\[0\].serial must be an integer"):
        load_session_json(path)


def test_corrupt_memento_in_save_loads_and_regenerates_on_open(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    save_session_json(path, _build_session())

    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["cache_mementos"]["0,0"] = "garbage"
    payload["save_hash"] = save_hash(payload)
    path.write_text(json.dumps(payload), encoding="utf-8")

    loaded = load_session_json(path, luck=_scripted_luck)
    state = loaded.open_cache(loaded.grid.canonical(0, 0))

    assert [coin.serial for coin in state.coins] == [0, 1, 2, 3]


def test_atomic_save_leaves_no_temp_files(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "session.json"

    save_session_json(path, _build_session())
    save_session_json(path, _build_session())

    assert sorted(p.name for p in path.parent.iterdir()) == ["session.json"]


def test_failed_replace_removes_staged_file_and_keeps_previous_save(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "session.json"
    save_session_json(path, _build_session())
    previous = path.read_text(encoding="utf-8")

    def _refuse_replace(src, dst) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("geocoin.content.io.os.replace", _refuse_replace)
    with pytest.raises(OSError, match="disk full"):
        save_session_json(path, GameSession.new(_build_session().config, luck=_scripted_luck))

    assert sorted(p.name for p in tmp_path.iterdir()) == ["session.json"]
    assert path.read_text(encoding="utf-8") == previous
    assert previous.endswith("}\n")

from __future__ import annotations

import math
from typing import Any

SUPPORTED_SCHEMA_VERSIONS = {1}
REQUIRED_SAVE_FIELDS = {"schema_version", "config", "session_state", "cache_mementos", "save_hash"}
REQUIRED_CONFIG_FIELDS = {"tile_degrees", "neighborhood_size", "cache_spawn_probability", "max_coins_per_cache", "start"}


def _is_number(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float)) and math.isfinite(value)


def _is_int(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, int)


def _validate_point(value: Any, *, field_name: str) -> None:
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be an object")
    for axis in ("lat", "lng"):
        if not _is_number(value.get(axis)):
            raise ValueError(f"{field_name}.{axis} must be a finite number")


def _validate_coin_row(row: Any, *, field_name: str) -> None:
    if not isinstance(row, dict):
        raise ValueError(f"{field_name} must be an object")
    for key in ("i", "j", "serial"):
        if not _is_int(row.get(key)):
            raise ValueError(f"{field_name}.{key} must be an integer")
    if row["serial"] < 0:
        raise ValueError(f"{field_name}.serial must be >= 0")


def validate_config_payload(payload: Any, *, field_name: str = "config") -> None:
    if not isinstance(payload, dict):
        raise ValueError(f"{field_name} must be an object")
    missing = REQUIRED_CONFIG_FIELDS - set(payload.keys())
    if missing:
        raise ValueError(f"{field_name} missing fields: {sorted(missing)}")
    if not _is_number(payload["tile_degrees"]):
        raise ValueError(f"{field_name}.tile_degrees must be a finite number")
    if not _is_int(payload["neighborhood_size"]):
        raise ValueError(f"{field_name}.neighborhood_size must be an integer")
    if not _is_number(payload["cache_spawn_probability"]):
        raise ValueError(f"{field_name}.cache_spawn_probability must be a finite number")
    if not _is_int(payload["max_coins_per_cache"]):
        raise ValueError(f"{field_name}.max_coins_per_cache must be an integer")
    _validate_point(payload["start"], field_name=f"{field_name}.start")


def _validate_session_state(state: Any) -> None:
    if not isinstance(state, dict):
        raise ValueError("session_state must be an object")
    _validate_point(state.get("position"), field_name="session_state.position")

    inventory = state.get("inventory")
    if not isinstance(inventory, dict) or not isinstance(inventory.get("coins"), list):
        raise ValueError("session_state.inventory.coins must be a list")
    for index, row in enumerate(inventory["coins"]):
        _validate_coin_row(row, field_name=f"session_state.inventory.coins[{index}]")

    history = state.get("movement_history")
    if not isinstance(history, list):
        raise ValueError("session_state.movement_history must be a list")
    for index, entry in enumerate(history):
        if not isinstance(entry, list) or len(entry) != 2 or not all(_is_number(value) for value in entry):
            raise ValueError(f"session_state.movement_history[{index}] must be a [lat, lng] pair")

    points = state.get("points")
    if not _is_int(points) or points < 0:
        raise ValueError("session_state.points must be a non-negative integer")


def _validate_cache_mementos(mementos: Any) -> None:
    if not isinstance(mementos, dict):
        raise ValueError("cache_mementos must be an object")
    for key, blob in mementos.items():
        if not isinstance(key, str) or not key:
            raise ValueError("cache_mementos keys must be non-empty strings")
        if not isinstance(blob, str):
            raise ValueError(f"cache_mementos[{key}] must be a string")


def validate_save_payload(payload: Any) -> None:
    if not isinstance(payload, dict):
        raise ValueError("save payload must be an object")
    missing = REQUIRED_SAVE_FIELDS - set(payload.keys())
    if missing:
        raise ValueError(f"save payload missing fields: {sorted(missing)}")
    schema_version = payload["schema_version"]
    if not _is_int(schema_version) or schema_version not in SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"unsupported schema_version: {schema_version}")
    if not isinstance(payload["save_hash"], str) or not payload["save_hash"]:
        raise ValueError("save_hash must be a non-empty string")

    validate_config_payload(payload["config"])
    _validate_session_state(payload["session_state"])
    # Blob contents are only checked when a cache is opened.
    _validate_cache_mementos(payload["cache_mementos"])

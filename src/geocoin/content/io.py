from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from geocoin.content.schema import validate_config_payload, validate_save_payload
from geocoin.sim.config import GameConfig
from geocoin.sim.hash import save_hash
from geocoin.sim.luck import LuckFunction, luck_value
from geocoin.sim.session import GameSession

SCHEMA_VERSION = 1
CONFIG_SCHEMA_VERSION = 1
DEFAULT_CONFIG_PATH = "content/config/default.json"
CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")

logger = logging.getLogger(__name__)


def _build_save_payload(session: GameSession) -> dict[str, Any]:
    session_payload = session.to_dict()
    payload: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "config": session_payload["config"],
        "session_state": session_payload["session_state"],
        "cache_mementos": session_payload["cache_mementos"],
    }
    payload["save_hash"] = save_hash(payload)
    return payload


def _dump_canonical(payload: dict[str, Any]) -> str:
    """Sorted keys and a fixed indent; equal sessions serialize to identical text."""
    return json.dumps(payload, sort_keys=True, indent=CANONICAL_JSON_INDENT, separators=CANONICAL_JSON_SEPARATORS) + "\n"


def _replace_file(path: str | Path, text: str) -> None:
    """Stage ``text`` in a sibling temp file, then os.replace it onto ``path``."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with NamedTemporaryFile("w", encoding="utf-8", dir=target.parent, prefix=f".{target.name}.", delete=False) as handle:
        staged = Path(handle.name)
        try:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        except OSError:
            handle.close()
            staged.unlink(missing_ok=True)
            raise
    try:
        os.replace(staged, target)
    except OSError:
        staged.unlink(missing_ok=True)
        raise


def _load_save_payload(payload: dict[str, Any], *, luck: LuckFunction) -> GameSession:
    validate_save_payload(payload)

    expected_hash = payload["save_hash"]
    actual_hash = save_hash(payload)
    if expected_hash != actual_hash:
        raise ValueError(
            f"save_hash mismatch while loading save (stored={expected_hash}, recomputed={actual_hash})"
        )
    return GameSession.from_dict(payload, luck=luck)


def save_session_json(path: str | Path, session: GameSession) -> None:
    payload = _build_save_payload(session)
    validate_save_payload(payload)
    _replace_file(path, _dump_canonical(payload))
    logger.debug("saved session to %s (%d caches)", path, len(payload["cache_mementos"]))


def load_session_json(path: str | Path, *, luck: LuckFunction = luck_value) -> GameSession:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    session = _load_save_payload(payload, luck=luck)
    logger.debug("loaded session from %s (%d caches)", path, len(session.store))
    return session


def load_config_json(path: str | Path = DEFAULT_CONFIG_PATH) -> GameConfig:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("config file must contain an object")

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("config file must contain integer field: schema_version")
    if schema_version != CONFIG_SCHEMA_VERSION:
        raise ValueError(f"unsupported config schema_version: {schema_version}")

    config_payload = payload.get("config")
    validate_config_payload(config_payload)
    return GameConfig.from_dict(config_payload)

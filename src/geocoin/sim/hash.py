from __future__ import annotations

import hashlib
import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from geocoin.sim.session import GameSession


def _canonical_digest(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def memento_hash(payload: dict[str, Any]) -> str:
    hash_payload = {
        "schema_version": payload.get("schema_version"),
        "cell": payload.get("cell"),
        "coins": payload.get("coins"),
    }
    return _canonical_digest(hash_payload)


def save_hash(payload: dict[str, Any]) -> str:
    hash_payload = {
        "schema_version": payload["schema_version"],
        "config": payload["config"],
        "session_state": payload["session_state"],
        "cache_mementos": payload["cache_mementos"],
    }
    return _canonical_digest(hash_payload)


def session_hash(session: GameSession) -> str:
    return _canonical_digest(session.to_dict())

"""
Хеш-функции цепочки custody.

H(action, geopoint, timestamp, actor, previous_hash) считается от
канонического JSON (sort_keys, без пробелов). note в хеш не входит.
"""

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from config.settings import CUSTODY_HASH_LENGTH
from contracts.custody_dto import CustodyAction, CustodyEvent
from contracts.geo_dto import GeoPoint
from ..domain.interfaces import IHashFunction


def canonical_timestamp(value: datetime) -> str:
    """ISO-8601 в UTC. Наивное время считается UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def canonical_json(content: Any) -> str:
    return json.dumps(content, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def event_content(
    action: CustodyAction,
    location: GeoPoint,
    timestamp: datetime,
    actor_id: str,
    previous_hash: Optional[str],
) -> Dict[str, Any]:
    """Канонический набор полей, покрываемых хешем события."""
    return {
        "action": CustodyAction(action).value,
        "location": {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "accuracy": location.accuracy,
            "timestamp": canonical_timestamp(location.timestamp),
        },
        "timestamp": canonical_timestamp(timestamp),
        "actor_id": actor_id,
        "previous_hash": previous_hash,
    }


class Sha256ContentHash(IHashFunction):
    """
    SHA-256 от канонического JSON, обрезанный до length hex-символов.

    length=64 даёт полный дайджест.
    """

    def __init__(self, length: int = CUSTODY_HASH_LENGTH):
        if not 1 <= length <= 64:
            raise ValueError(f"length должен быть в диапазоне 1..64, получено {length}")
        self.length = length

    def digest(self, content: Dict[str, Any]) -> str:
        return hashlib.sha256(canonical_json(content).encode("utf-8")).hexdigest()[: self.length]


def hash_event(hash_function: IHashFunction, event: CustodyEvent) -> str:
    """Пересчитывает хеш уже созданного события."""
    return hash_function.digest(
        event_content(event.action, event.location, event.timestamp, event.actor_id, event.previous_hash)
    )

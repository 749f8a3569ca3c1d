"""
Доменный payload отслеживания медикаментов.

Формат:
    {"type": "medicine_tracking", "timestamp": "...", "data": {...}}

ЦКП: Плоская проекция data + производные поля срока годности:
- is_expired = expiry_date < now
- days_until_expiry = ceil((expiry_date - now) / 1 день)

Если expiry_date нет или его не удалось разобрать, оба производных поля = None.
"""

import math
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Optional

from loguru import logger

from contracts.geo_dto import utc_now
from ....domain.exceptions import PayloadParseError
from ...s1_classification.classifier import TRACKING_DISCRIMINATOR
from .base import AbstractExtractor


# Поля, копируемые из data как есть
PROJECTED_FIELDS = (
    "medicine_id",
    "medicine_name",
    "batch_number",
    "manufacturing_date",
    "expiry_date",
    "manufacturer",
    "dosage_form",
    "strength",
    "active_ingredient",
    "ndc_number",
    "lot_number",
    "storage_conditions",
    "prescription_required",
    "tracking_id",
    "verification_code",
    "assigned_district",
    "destination_district",
    "destination_pharmacy",
)

SECONDS_PER_DAY = 86400


def parse_expiry(value: Any) -> Optional[datetime]:
    """
    Разбирает дату истечения срока в aware datetime (UTC).

    Принимает ISO дату ("2025-06-30"), ISO datetime (в т.ч. с "Z"),
    а также объекты date/datetime. Наивные значения считаются UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class TrackingExtractor(AbstractExtractor):
    """
    Экстрактор medicine_tracking.

    Часы инжектируются для детерминированных тестов.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock

    @property
    def name(self) -> str:
        return "TrackingExtractor"

    def extract(self, raw: str, decoded: Optional[Any] = None) -> Dict[str, Any]:
        payload = self._decode_json(raw, decoded)
        if not isinstance(payload, dict) or payload.get("type") != TRACKING_DISCRIMINATOR:
            raise PayloadParseError(message="Не medicine_tracking payload", component=self.name)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise PayloadParseError(message="Поле data должно быть объектом", component=self.name)

        now = self._clock()
        fields: Dict[str, Any] = {
            "medicine_type": payload.get("type"),
            "scan_timestamp": now.isoformat(),
            "generated_timestamp": payload.get("timestamp"),
        }
        fields.update({key: data.get(key) for key in PROJECTED_FIELDS})
        fields["medicine_data"] = data
        fields["raw_medicine_data"] = payload

        fields.update(self._expiry_flags(data.get("expiry_date"), now))
        return fields

    def _expiry_flags(self, expiry_value: Any, now: datetime) -> Dict[str, Any]:
        expiry = parse_expiry(expiry_value)
        if expiry is None:
            if expiry_value not in (None, ""):
                logger.warning(f"[{self.name}] Не удалось разобрать expiry_date: {expiry_value!r}")
            return {"is_expired": None, "days_until_expiry": None}

        delta_seconds = (expiry - now).total_seconds()
        return {
            "is_expired": expiry < now,
            "days_until_expiry": math.ceil(delta_seconds / SECONDS_PER_DAY),
        }

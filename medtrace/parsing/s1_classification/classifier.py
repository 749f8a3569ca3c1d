"""
Stage 1: Classification

ЦКП: Ровно один тип содержимого для любой декодированной строки.

Input: raw строка со сканера
Output: ClassificationResult (payload_type + декодированный JSON, если был)

Порядок проверок (первое совпадение побеждает):
1. JSON-объект: medicine_tracking -> layers -> прочий JSON
2. Схемы/маркеры: URL, e-mail, телефон, SMS, WiFi, vCard, vEvent, geo, разметка
3. Fallback: generic-text

Классификатор тотален (никогда не бросает) и детерминирован.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Pattern, Tuple

from loguru import logger

from contracts.scan_dto import PayloadType


# Дискриминатор доменного payload'а
TRACKING_DISCRIMINATOR = "medicine_tracking"

# Упорядоченные правила: (тип, паттерн, search вместо match)
PATTERN_RULES: List[Tuple[PayloadType, Pattern, bool]] = [
    (PayloadType.LOCATOR, re.compile(r"^https?://", re.IGNORECASE), False),
    (PayloadType.CONTACT_EMAIL, re.compile(r"^mailto:", re.IGNORECASE), False),
    (PayloadType.CONTACT_EMAIL, re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"), False),
    (PayloadType.TELEPHONE, re.compile(r"^tel:", re.IGNORECASE), False),
    (PayloadType.TELEPHONE, re.compile(r"^\+?(?=[^\d]*\d)[\d\s\-()]+$"), False),
    (PayloadType.SHORT_MESSAGE, re.compile(r"^sms(to)?:", re.IGNORECASE), False),
    (PayloadType.NETWORK_CREDENTIAL, re.compile(r"^WIFI:", re.IGNORECASE), False),
    (PayloadType.CONTACT_CARD, re.compile(r"^BEGIN:VCARD", re.IGNORECASE), False),
    (PayloadType.CALENDAR_EVENT, re.compile(r"^BEGIN:(VEVENT|VCALENDAR)", re.IGNORECASE), False),
    (PayloadType.GEOCOORDINATE, re.compile(r"^geo:", re.IGNORECASE), False),
    (PayloadType.MARKUP, re.compile(r"<\?xml|<\w+.*?>", re.IGNORECASE), True),
]


@dataclass
class ClassificationResult:
    """
    Результат Stage 1: Classification.

    ЦКП: Тип содержимого.
    """
    payload_type: PayloadType
    decoded: Optional[Any] = None      # Декодированный JSON-объект (если JSON)
    rule: str = "fallback"             # Какое правило сработало

    def to_dict(self) -> dict:
        return {
            "payload_type": self.payload_type.value,
            "is_json": self.decoded is not None,
            "rule": self.rule,
        }


class ContentClassifier:
    """
    Stage 1: Content Classifier.

    Без состояния: один экземпляр можно переиспользовать сколько угодно.
    """

    def process(self, raw: str) -> ClassificationResult:
        """
        Классифицирует строку.

        Args:
            raw: Декодированная строка (не-строки приводятся через str())

        Returns:
            ClassificationResult
        """
        if not isinstance(raw, str):
            raw = "" if raw is None else str(raw)

        decoded = self._try_decode(raw)
        if isinstance(decoded, dict):
            if decoded.get("type") == TRACKING_DISCRIMINATOR and decoded.get("data"):
                return ClassificationResult(PayloadType.DOMAIN_TRACKING, decoded, "json:tracking")
            if isinstance(decoded.get("layers"), list):
                return ClassificationResult(PayloadType.LAYERED_PAYLOAD, decoded, "json:layers")
            return ClassificationResult(PayloadType.STRUCTURED_JSON, decoded, "json")

        text = raw.strip()
        for payload_type, pattern, use_search in PATTERN_RULES:
            matched = pattern.search(text) if use_search else pattern.match(text)
            if matched:
                return ClassificationResult(payload_type, None, f"pattern:{pattern.pattern}")

        return ClassificationResult(PayloadType.GENERIC_TEXT)

    def classify(self, raw: str) -> PayloadType:
        """Только тип (без промежуточных данных)."""
        return self.process(raw).payload_type

    @staticmethod
    def _try_decode(raw: str) -> Optional[Any]:
        """JSON decode; любая ошибка декодирования = "не JSON"."""
        stripped = raw.strip()
        if not stripped or stripped[0] not in "{[":
            return None
        try:
            return json.loads(stripped)
        except (ValueError, RecursionError) as e:
            logger.debug(f"[Stage 1] Не JSON: {type(e).__name__}")
            return None

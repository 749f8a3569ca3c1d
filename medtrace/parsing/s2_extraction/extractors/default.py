"""Fallback-экстракторы: JSON как есть и {text: raw}."""

from typing import Any, Dict, Optional

from .base import AbstractExtractor


class JsonPassthroughExtractor(AbstractExtractor):

    @property
    def name(self) -> str:
        return "JsonPassthroughExtractor"

    def extract(self, raw: str, decoded: Optional[Any] = None) -> Dict[str, Any]:
        payload = self._decode_json(raw, decoded)
        if isinstance(payload, dict):
            return payload
        return {"value": payload}


class TextExtractor(AbstractExtractor):

    @property
    def name(self) -> str:
        return "TextExtractor"

    def extract(self, raw: str, decoded: Optional[Any] = None) -> Dict[str, Any]:
        return {"text": raw}

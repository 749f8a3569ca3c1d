"""
Abstract Base Extractor для Stage 2 Extraction.

Каждый экстрактор знает грамматику одного типа содержимого и превращает
строку в плоский словарь полей. Экстрактор может бросить PayloadParseError:
граница Stage 2 перехватывает его и превращает в поле error.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ....domain.exceptions import PayloadParseError


class AbstractExtractor(ABC):
    """Базовый экстрактор полей."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Имя экстрактора (для логирования)."""
        pass

    @abstractmethod
    def extract(self, raw: str, decoded: Optional[Any] = None) -> Dict[str, Any]:
        """
        Извлекает поля из строки.

        Args:
            raw: Исходная строка
            decoded: JSON, уже декодированный на Stage 1 (если есть)

        Returns:
            Словарь полей

        Raises:
            PayloadParseError: Если строка не соответствует грамматике типа
        """
        pass

    def _decode_json(self, raw: str, decoded: Optional[Any]) -> Any:
        if decoded is not None:
            return decoded
        try:
            return json.loads(raw)
        except (ValueError, RecursionError) as e:
            raise PayloadParseError(
                message="Невалидный JSON",
                component=self.name,
                original_error=e,
            )

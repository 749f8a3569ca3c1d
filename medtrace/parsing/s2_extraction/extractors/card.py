"""vCard / vEvent: построчный key:value."""

from typing import Any, Dict, Optional

from .base import AbstractExtractor


class LineRecordExtractor(AbstractExtractor):
    """
    Построчный разбор для vCard и vEvent.

    Ключ - всё до первого двоеточия (в нижнем регистре), значение - остаток.
    Строки без ключа пропускаются, повторный ключ перезаписывает прежний.
    """

    def __init__(self, name: str = "LineRecordExtractor"):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def extract(self, raw: str, decoded: Optional[Any] = None) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for line in raw.splitlines():
            index = line.find(":")
            if index > 0:
                fields[line[:index].strip().lower()] = line[index + 1:].strip()
        return fields

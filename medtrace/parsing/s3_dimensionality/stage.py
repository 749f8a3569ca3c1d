"""
Stage 3: Dimensionality

ЦКП: Структурная "глубина" записи (целое >= 1).

- layered-payload: число слоёв (минимум 1)
- остальные: максимальная вложенность словарей, верхний уровень = 1.
  Списки глубину не увеличивают.

Отдельно nesting(): вложенность словарей и списков, по ней пайплайн
отсекает записи, которые не сериализуются.
"""

from typing import Any, Dict

from contracts.scan_dto import PayloadType


class DimensionalityStage:
    """Stage 3: Dimensionality Calculator. Чистая функция от полей."""

    def process(self, fields: Dict[str, Any], payload_type: PayloadType) -> int:
        if payload_type == PayloadType.LAYERED_PAYLOAD:
            total = fields.get("total_layers")
            if isinstance(total, int) and not isinstance(total, bool):
                return max(1, total)
            return 1
        return self.depth(fields)

    @staticmethod
    def depth(fields: Dict[str, Any]) -> int:
        """Максимальная вложенность словарей (итеративно, без рекурсии)."""
        max_depth = 1
        stack = [(fields, 1)]
        while stack:
            mapping, level = stack.pop()
            max_depth = max(max_depth, level)
            for value in mapping.values():
                if isinstance(value, dict):
                    stack.append((value, level + 1))
        return max_depth

    @staticmethod
    def nesting(fields: Dict[str, Any]) -> int:
        """Вложенность контейнеров: словари и списки (верхний уровень = 1)."""
        max_depth = 1
        stack = [(fields, 1)]
        while stack:
            container, level = stack.pop()
            max_depth = max(max_depth, level)
            values = container.values() if isinstance(container, dict) else container
            for value in values:
                if isinstance(value, (dict, list)):
                    stack.append((value, level + 1))
        return max_depth

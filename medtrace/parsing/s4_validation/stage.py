"""
Stage 4: Validation

ЦКП: Статус валидации записи по правилам полноты её типа.

Input: поля со Stage 2, PayloadType
Output: ValidationResult (status + причина)

Правила:
1. error в полях -> corrupted (проверяется первым, перекрывает всё)
2. locator: valid, если извлечён host, иначе invalid
3. contact-email: valid, если есть адрес, иначе invalid
4. layered-payload: valid, если слоёв > 0, иначе incomplete
5. domain-specific-tracking: valid, если есть id, name и batch/lot, иначе incomplete
6. остальные типы: valid

pending здесь не выдаётся: это начальный статус записи до валидации.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger

from contracts.scan_dto import PayloadType, ValidationStatus
from ...domain.exceptions import IncompleteDataError


@dataclass
class ValidationResult:
    """
    Результат Stage 4: Validation.

    ЦКП: Статус записи.
    """
    status: ValidationStatus
    reason: Optional[str] = None
    missing_fields: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "reason": self.reason,
            "missing_fields": self.missing_fields,
        }


class ValidationStage:
    """Stage 4: Record Validator."""

    def process(self, fields: Dict[str, Any], payload_type: PayloadType) -> ValidationResult:
        if "error" in fields:
            return ValidationResult(ValidationStatus.CORRUPTED, reason=str(fields["error"]))

        if payload_type == PayloadType.LOCATOR:
            if fields.get("host"):
                return ValidationResult(ValidationStatus.VALID)
            return ValidationResult(ValidationStatus.INVALID, reason="URL без host")

        if payload_type == PayloadType.CONTACT_EMAIL:
            if fields.get("email"):
                return ValidationResult(ValidationStatus.VALID)
            return ValidationResult(ValidationStatus.INVALID, reason="Нет адреса")

        if payload_type == PayloadType.LAYERED_PAYLOAD:
            if (fields.get("total_layers") or 0) > 0:
                return ValidationResult(ValidationStatus.VALID)
            return ValidationResult(ValidationStatus.INCOMPLETE, reason="Нет слоёв")

        if payload_type == PayloadType.DOMAIN_TRACKING:
            try:
                self._require_identity(fields)
            except IncompleteDataError as e:
                logger.debug(f"[Stage 4] {e.message}: {e.missing_fields}")
                return ValidationResult(
                    ValidationStatus.INCOMPLETE,
                    reason=e.message,
                    missing_fields=e.missing_fields,
                )
            return ValidationResult(ValidationStatus.VALID)

        return ValidationResult(ValidationStatus.VALID)

    def validate(self, fields: Dict[str, Any], payload_type: PayloadType) -> ValidationStatus:
        return self.process(fields, payload_type).status

    @staticmethod
    def _require_identity(fields: Dict[str, Any]) -> None:
        """
        Raises:
            IncompleteDataError: нет id, name или идентификатора партии
        """
        missing = [key for key in ("medicine_id", "medicine_name") if not fields.get(key)]
        if not (fields.get("batch_number") or fields.get("lot_number")):
            missing.append("batch_number")
        if missing:
            raise IncompleteDataError(
                message="Не хватает обязательных полей медикамента",
                missing_fields=missing,
                component="ValidationStage",
            )

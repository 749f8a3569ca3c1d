"""
Исключения MedTrace.

Политика распространения:
- PayloadParseError / IncompleteDataError не выходят за границу пайплайна
  парсинга, а превращаются в статус записи (corrupted / incomplete).
- GeolocationError и SyncError уходят в явный канал ошибок (callback / outcome).
- ChainIntegrityError всегда пробрасывается вызывающему.
"""


class ProvenanceError(Exception):
    """Базовое исключение MedTrace."""

    def __init__(self, message: str, component: str = None, original_error: Exception = None):
        self.message = message
        self.component = component
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Provenance Error: {self.message}"
        if self.component:
            msg += f" (Component: {self.component})"
        if self.original_error:
            msg += f" [Original: {type(self.original_error).__name__}: {str(self.original_error)}]"
        return msg


class PayloadParseError(ProvenanceError):
    """Некорректный payload для определённого типа."""
    pass


# Короткое имя из таксономии ошибок
ParseError = PayloadParseError


class IncompleteDataError(ProvenanceError):
    """Не хватает обязательных полей."""

    def __init__(self, message: str, missing_fields=None, component: str = None):
        self.missing_fields = list(missing_fields or [])
        super().__init__(message, component=component)


class GeolocationError(ProvenanceError):
    """
    Ошибка получения координат.

    kind: permission-denied | unavailable | timeout
    """

    PERMISSION_DENIED = "permission-denied"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"

    def __init__(self, message: str, kind: str = UNAVAILABLE, component: str = None,
                 original_error: Exception = None):
        self.kind = kind
        super().__init__(message, component=component, original_error=original_error)


class SyncError(ProvenanceError):
    """Сетевая ошибка / ошибка API телеметрии."""

    def __init__(self, message: str, status_code: int = None, component: str = None,
                 original_error: Exception = None):
        self.status_code = status_code
        super().__init__(message, component=component, original_error=original_error)


class TelemetryAuthError(SyncError):
    """Ошибка аутентификации в телеметрии (401/403/429 на /auth)."""
    pass


class ChainIntegrityError(ProvenanceError):
    """Несовпадение хеша в цепочке custody. Фатальная находка аудита."""

    def __init__(self, message: str, index: int, reason: str, transaction_id: str = None):
        self.index = index
        self.reason = reason
        self.transaction_id = transaction_id
        super().__init__(message, component="CustodyLedger")


class TransactionNotFoundError(ProvenanceError):
    """Транзакция не найдена."""
    pass


class TransactionStateError(ProvenanceError):
    """Недопустимый переход состояния транзакции."""
    pass


class RegionRegistryError(ProvenanceError):
    """Ошибка загрузки / формата реестра регионов."""
    pass


class StorageError(ProvenanceError):
    """Ошибка хранилища / файловой системы."""
    pass


class StorageFileNotFoundError(StorageError):
    """Файл не найден."""
    pass


class StorageWriteError(StorageError):
    """Ошибка записи / чтения файла."""
    pass


class RecordNotFoundError(StorageError):
    """Запись не найдена в хранилище."""
    pass

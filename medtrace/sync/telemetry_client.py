"""
HTTP-клиент облака телеметрии (через прокси).

Эндпоинты прокси:
- POST /auth          {client_id, client_secret} -> {access_token, expires_in}
- POST /sync          {access_token, thing_id, property_name, value} -> {success, ...}
- POST /thing-status  {access_token, thing_id} -> {...}

Токен перезапрашивается, когда истекает его срок, и после 401 на /sync.
"""

import asyncio
import json
import time
from typing import Any, Callable, Dict, Optional

import httpx
from loguru import logger

from config.settings import (
    TELEMETRY_BASE_URL,
    TELEMETRY_CLIENT_ID,
    TELEMETRY_CLIENT_SECRET,
    TELEMETRY_TIMEOUT_S,
    TOKEN_EXPIRY_MARGIN_S,
)
from contracts.scan_dto import ParsedRecord
from ..domain.exceptions import SyncError, TelemetryAuthError
from ..domain.interfaces import ITelemetryClient


# Тексты ошибок /auth по коду ответа
AUTH_ERRORS = {
    401: "Invalid client credentials",
    403: "Access forbidden for this client",
    429: "Rate limit exceeded, try again later",
}

DEFAULT_TOKEN_TTL_S = 3600


def format_for_telemetry(record: ParsedRecord) -> Dict[str, Any]:
    """
    Значение свойства для публикации.

    data передаётся строкой JSON: облако хранит свойство как текст.
    """
    return {
        "id": record.id,
        "type": record.payload_type.value,
        "data": json.dumps(record.fields, ensure_ascii=False, default=str),
        "timestamp": record.scan_timestamp.isoformat(),
        "validation": record.validation_status.value,
        "dimensions": record.dimensions,
    }


class HttpTelemetryClient(ITelemetryClient):
    """
    Клиент телеметрии на httpx.AsyncClient.

    Пример:
        async with HttpTelemetryClient() as client:
            await client.publish(thing_id, "qr_scan_data", payload)
    """

    def __init__(
        self,
        base_url: str = TELEMETRY_BASE_URL,
        client_id: str = TELEMETRY_CLIENT_ID,
        client_secret: str = TELEMETRY_CLIENT_SECRET,
        timeout: float = TELEMETRY_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            base_url: Адрес прокси телеметрии
            client_id: ID клиента
            client_secret: Секрет клиента
            timeout: Таймаут HTTP запросов (секунды)
            transport: Транспорт httpx (MockTransport в тестах)
            clock: Монотонные часы для срока жизни токена
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self._clock = clock
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

        self._token: Optional[str] = None
        self._expires_at: float = 0.0
        # Один /auth на всех конкурентных publish
        self._auth_lock = asyncio.Lock()

    async def __aenter__(self) -> "HttpTelemetryClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def token_valid(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at - TOKEN_EXPIRY_MARGIN_S

    def invalidate_token(self) -> None:
        self._token = None
        self._expires_at = 0.0

    async def authenticate(self) -> str:
        """
        Получает access token.

        Raises:
            TelemetryAuthError: 401 / 403 / 429 или иной отказ
            SyncError: Сетевая ошибка
        """
        response = await self._post("/auth", {"client_id": self.client_id, "client_secret": self.client_secret})
        if response.status_code >= 400:
            message = AUTH_ERRORS.get(response.status_code, f"Authentication failed ({response.status_code})")
            raise TelemetryAuthError(
                message=message,
                status_code=response.status_code,
                component="HttpTelemetryClient",
            )

        body = self._json(response)
        token = body.get("access_token")
        if not token:
            raise TelemetryAuthError(message="Ответ /auth без access_token", component="HttpTelemetryClient")

        self._token = token
        self._expires_at = self._clock() + float(body.get("expires_in") or DEFAULT_TOKEN_TTL_S)
        logger.info("[Telemetry] Аутентификация успешна")
        return token

    async def ensure_token(self) -> str:
        if self.token_valid:
            return self._token
        async with self._auth_lock:
            # Пока ждали lock, токен мог получить соседний publish
            if self.token_valid:
                return self._token
            logger.debug("[Telemetry] Токен отсутствует или истёк → аутентификация")
            return await self.authenticate()

    async def publish(self, thing_id: str, property_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Публикует значение свойства thing.

        Returns:
            Тело ответа + status_code

        Raises:
            SyncError: Ошибка сети или HTTP >= 400 (после 401 токен сбрасывается)
        """
        token = await self.ensure_token()
        response = await self._post("/sync", {
            "access_token": token,
            "thing_id": thing_id,
            "property_name": property_name,
            "value": payload,
        })

        if response.status_code == 401:
            self.invalidate_token()
        if response.status_code >= 400:
            raise SyncError(
                message=f"Публикация отклонена ({response.status_code})",
                status_code=response.status_code,
                component="HttpTelemetryClient",
            )

        body = self._json(response)
        body.setdefault("status_code", response.status_code)
        return body

    async def get_status(self, thing_id: str) -> Dict[str, Any]:
        token = await self.ensure_token()
        response = await self._post("/thing-status", {"access_token": token, "thing_id": thing_id})
        if response.status_code >= 400:
            raise SyncError(
                message=f"Не удалось получить статус thing ({response.status_code})",
                status_code=response.status_code,
                component="HttpTelemetryClient",
            )
        return self._json(response)

    async def test_connection(self) -> Dict[str, Any]:
        """Проверка кредов и доступности прокси. Не бросает."""
        try:
            await self.authenticate()
        except SyncError as e:
            logger.warning(f"[Telemetry] Проверка соединения не прошла: {e.message}")
            return {"success": False, "message": e.message}
        return {"success": True, "message": "Connection successful"}

    async def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        try:
            return await self._http.post(path, json=payload)
        except httpx.HTTPError as e:
            raise SyncError(
                message=f"Сетевая ошибка {path}",
                component="HttpTelemetryClient",
                original_error=e,
            )

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise SyncError(
                message="Ответ не является JSON",
                status_code=response.status_code,
                component="HttpTelemetryClient",
                original_error=e,
            )
        return body if isinstance(body, dict) else {"result": body}

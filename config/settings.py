"""
Настройки проекта MedTrace.

Все значения можно переопределить через переменные окружения.
Реестр регионов лежит отдельно в config/regions.yaml.
"""

import os
from pathlib import Path

# =============================================================================
# ПУТИ ПРОЕКТА
# =============================================================================
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
EXPORT_DIR = DATA_DIR / "exports"
STORE_FILE = DATA_DIR / "records.json"

# Статический реестр регионов (name, lat, lon, radius_km)
REGIONS_FILE = Path(os.getenv("MEDTRACE_REGIONS_FILE", str(PROJECT_ROOT / "config" / "regions.yaml")))

# =============================================================================
# ЛОГИРОВАНИЕ
# =============================================================================
LOG_LEVEL = os.getenv("MEDTRACE_LOG_LEVEL", "INFO")

# =============================================================================
# ПАРСИНГ
# =============================================================================
# Максимальная вложенность полей записи (словари и списки).
# Глубже pydantic не сериализует запись в JSON (предел около 255).
MAX_NESTING_DEPTH = int(os.getenv("MEDTRACE_MAX_NESTING_DEPTH", "64"))

# =============================================================================
# ГЕОЛОКАЦИЯ
# =============================================================================
# Радиус Земли для haversine (км)
EARTH_RADIUS_KM = 6371.0

# Значение резолвера, если точка не попала ни в один регион
UNKNOWN_REGION = "Unknown"

# Таймаут получения координат (секунды)
GEOLOCATION_TIMEOUT_S = float(os.getenv("MEDTRACE_GEOLOCATION_TIMEOUT", "10"))

# Интервал фонового трекинга (секунды)
TRACKING_INTERVAL_S = float(os.getenv("MEDTRACE_TRACKING_INTERVAL", "30"))

# Таймаут ожидания декодированного QR от камеры (секунды)
SCAN_TIMEOUT_S = float(os.getenv("MEDTRACE_SCAN_TIMEOUT", "30"))

# =============================================================================
# ЖУРНАЛ CUSTODY
# =============================================================================
# Длина короткого контент-хеша (hex-символов)
CUSTODY_HASH_LENGTH = int(os.getenv("MEDTRACE_HASH_LENGTH", "16"))

# =============================================================================
# СИНХРОНИЗАЦИЯ С ТЕЛЕМЕТРИЕЙ
# =============================================================================
SYNC_BATCH_SIZE = int(os.getenv("MEDTRACE_SYNC_BATCH_SIZE", "10"))
SYNC_BATCH_DELAY_S = float(os.getenv("MEDTRACE_SYNC_BATCH_DELAY", "1.0"))

TELEMETRY_BASE_URL = os.getenv("MEDTRACE_TELEMETRY_URL", "http://localhost:8787/api/telemetry")
TELEMETRY_CLIENT_ID = os.getenv("MEDTRACE_TELEMETRY_CLIENT_ID", "")
TELEMETRY_CLIENT_SECRET = os.getenv("MEDTRACE_TELEMETRY_CLIENT_SECRET", "")
TELEMETRY_THING_ID = os.getenv("MEDTRACE_TELEMETRY_THING_ID", "")
TELEMETRY_PROPERTY_NAME = os.getenv("MEDTRACE_TELEMETRY_PROPERTY", "qr_scan_data")
TELEMETRY_TIMEOUT_S = float(os.getenv("MEDTRACE_TELEMETRY_TIMEOUT", "15"))

# Запас до истечения токена, после которого считаем его просроченным (секунды)
TOKEN_EXPIRY_MARGIN_S = 30.0


# =============================================================================
# ПРОВЕРКА КОНФИГУРАЦИИ
# =============================================================================
def validate_config(require_telemetry: bool = False):
    """Проверяет корректность конфигурации."""
    errors = []

    if not REGIONS_FILE.exists():
        errors.append(f"Файл реестра регионов не найден: {REGIONS_FILE}")

    if SYNC_BATCH_SIZE < 1:
        errors.append(f"MEDTRACE_SYNC_BATCH_SIZE должен быть >= 1 (сейчас {SYNC_BATCH_SIZE})")

    if SYNC_BATCH_DELAY_S < 0:
        errors.append(f"MEDTRACE_SYNC_BATCH_DELAY не может быть отрицательным ({SYNC_BATCH_DELAY_S})")

    if not 1 <= MAX_NESTING_DEPTH <= 200:
        errors.append(f"MEDTRACE_MAX_NESTING_DEPTH должен быть в диапазоне 1..200 (сейчас {MAX_NESTING_DEPTH})")

    if not 8 <= CUSTODY_HASH_LENGTH <= 64:
        errors.append(f"MEDTRACE_HASH_LENGTH должен быть в диапазоне 8..64 (сейчас {CUSTODY_HASH_LENGTH})")

    if require_telemetry and not (TELEMETRY_CLIENT_ID and TELEMETRY_CLIENT_SECRET):
        errors.append(
            "Не заданы креды телеметрии!\n"
            "Укажите MEDTRACE_TELEMETRY_CLIENT_ID и MEDTRACE_TELEMETRY_CLIENT_SECRET."
        )

    if errors:
        raise ValueError("\n".join(errors))

    # Создаём директории если не существуют
    EXPORT_DIR.mkdir(parents=True, exist_ok=True)

    return True

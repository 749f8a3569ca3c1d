"""WiFi credentials: WIFI:T:<sec>;S:<ssid>;P:<pass>;H:<hidden>;"""

import re
from typing import Any, Dict, Optional

from ....domain.exceptions import PayloadParseError
from .base import AbstractExtractor


WIFI_PATTERN = re.compile(r"WIFI:T:(.*?);S:(.*?);P:(.*?);H:(.*?);", re.IGNORECASE)


class NetworkCredentialExtractor(AbstractExtractor):

    @property
    def name(self) -> str:
        return "NetworkCredentialExtractor"

    def extract(self, raw: str, decoded: Optional[Any] = None) -> Dict[str, Any]:
        match = WIFI_PATTERN.search(raw)
        if not match:
            raise PayloadParseError(
                message="Invalid WiFi QR format",
                component=self.name,
            )

        security, ssid, password, hidden = match.groups()
        return {
            "security": security,
            "ssid": ssid,
            "password": password,
            "hidden": hidden.strip().lower() == "true",
        }

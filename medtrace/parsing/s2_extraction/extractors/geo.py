"""geo:lat,lon[,alt][?query]"""

import re
from typing import Any, Dict, Optional

from ....domain.exceptions import PayloadParseError
from .base import AbstractExtractor


GEO_PATTERN = re.compile(r"^geo:([-\d.]+),([-\d.]+)(?:,([-\d.]+))?(?:\?(.*))?$", re.IGNORECASE)


class GeoExtractor(AbstractExtractor):

    @property
    def name(self) -> str:
        return "GeoExtractor"

    def extract(self, raw: str, decoded: Optional[Any] = None) -> Dict[str, Any]:
        match = GEO_PATTERN.match(raw.strip())
        if not match:
            raise PayloadParseError(message="Invalid geo URI", component=self.name)

        latitude, longitude, altitude, query = match.groups()
        try:
            return {
                "latitude": float(latitude),
                "longitude": float(longitude),
                "altitude": float(altitude) if altitude else None,
                "query": query or None,
            }
        except ValueError as e:
            # Например "1.2.3"
            raise PayloadParseError(
                message="Invalid geo coordinate",
                component=self.name,
                original_error=e,
            )

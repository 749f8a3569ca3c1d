"""URL (locator): протокол, хост, путь, query и параметры."""

from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlsplit

from .base import AbstractExtractor


class LocatorExtractor(AbstractExtractor):

    @property
    def name(self) -> str:
        return "LocatorExtractor"

    def extract(self, raw: str, decoded: Optional[Any] = None) -> Dict[str, Any]:
        url = raw.strip()
        try:
            parts = urlsplit(url)
            port = parts.port
        except ValueError as e:
            # Битый порт / IPv6 литерал
            return {"url": url, "error": f"Malformed URL: {e}"}

        return {
            "url": url,
            "protocol": parts.scheme.lower(),
            "host": parts.hostname,
            "port": port,
            "path": parts.path,
            "query": parts.query,
            "params": dict(parse_qsl(parts.query, keep_blank_values=True)),
        }

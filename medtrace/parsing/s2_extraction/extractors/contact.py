"""Контакты: e-mail (mailto / голый адрес) и телефон."""

import re
from typing import Any, Dict, Optional
from urllib.parse import unquote

from .base import AbstractExtractor


MAILTO_PREFIX = re.compile(r"^mailto:", re.IGNORECASE)
TEL_PREFIX = re.compile(r"^tel:", re.IGNORECASE)
MAILTO_PARAMS = ("subject", "body", "cc", "bcc")


class EmailExtractor(AbstractExtractor):
    """mailto:addr?subject=..&body=..&cc=..&bcc=.. или addr@host."""

    @property
    def name(self) -> str:
        return "EmailExtractor"

    def extract(self, raw: str, decoded: Optional[Any] = None) -> Dict[str, Any]:
        text = raw.strip()
        if not MAILTO_PREFIX.match(text):
            return {"email": text}

        address, _, query = MAILTO_PREFIX.sub("", text, count=1).partition("?")
        fields: Dict[str, Any] = {"email": unquote(address)}
        fields.update({key: None for key in MAILTO_PARAMS})

        for pair in filter(None, query.split("&")):
            key, _, value = pair.partition("=")
            key = key.lower()
            if key in MAILTO_PARAMS:
                fields[key] = unquote(value.replace("+", " "))
        return fields


class PhoneExtractor(AbstractExtractor):
    """tel:+880... или строка из цифр и пунктуации."""

    @property
    def name(self) -> str:
        return "PhoneExtractor"

    def extract(self, raw: str, decoded: Optional[Any] = None) -> Dict[str, Any]:
        formatted = TEL_PREFIX.sub("", raw.strip(), count=1)
        phone = re.sub(r"[^\d+]", "", formatted)
        return {
            "phone": phone,
            "formatted": formatted,
            # Грубая догадка: две цифры после "+"
            "country_code": phone[1:3] if phone.startswith("+") else None,
        }

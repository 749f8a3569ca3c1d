"""Экстракторы Stage 2 (по одному на тип содержимого)."""

from .base import AbstractExtractor
from .factory import ExtractorFactory
from .card import LineRecordExtractor
from .contact import EmailExtractor, PhoneExtractor
from .default import JsonPassthroughExtractor, TextExtractor
from .geo import GeoExtractor
from .layered import LayeredExtractor
from .locator import LocatorExtractor
from .network import NetworkCredentialExtractor
from .tracking import TrackingExtractor, parse_expiry

__all__ = [
    "AbstractExtractor",
    "ExtractorFactory",
    "LineRecordExtractor",
    "EmailExtractor",
    "PhoneExtractor",
    "JsonPassthroughExtractor",
    "TextExtractor",
    "GeoExtractor",
    "LayeredExtractor",
    "LocatorExtractor",
    "NetworkCredentialExtractor",
    "TrackingExtractor",
    "parse_expiry",
]

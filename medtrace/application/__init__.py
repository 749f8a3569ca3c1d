"""Прикладной слой: сборка компонентов и сессия сканирования."""

from .factory import ProvenanceComponentFactory
from .scan_session import ScanSession, ScanSessionStats, ScanOutcome

__all__ = ["ProvenanceComponentFactory", "ScanSession", "ScanSessionStats", "ScanOutcome"]

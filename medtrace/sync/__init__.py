"""Синхронизация записей с облаком телеметрии."""

from .telemetry_client import HttpTelemetryClient, format_for_telemetry
from .orchestrator import SyncOrchestrator

__all__ = ["HttpTelemetryClient", "format_for_telemetry", "SyncOrchestrator"]

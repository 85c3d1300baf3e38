"""Domain services for the focus session engine."""

from .app_lifecycle import AppLifecycleMonitor
from .session_engine import SessionEngine

__all__ = ["AppLifecycleMonitor", "SessionEngine"]

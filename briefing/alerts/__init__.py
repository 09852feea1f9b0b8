"""Operational failure alerts sent through the digest notifier."""

from briefing.alerts.config import AlertConfig
from briefing.alerts.service import AlertService, build_alert_message, escape_markdown

__all__ = [
    "AlertConfig",
    "AlertService",
    "build_alert_message",
    "escape_markdown",
]

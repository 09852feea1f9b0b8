"""Retry helpers for calls to external services."""

from briefing.resilience.retry import is_transient_error, retry_async

__all__ = ["retry_async", "is_transient_error"]

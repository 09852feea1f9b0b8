"""Daily digest generation and delivery."""

from briefing.digest.config import DigestConfig, TelegramConfig
from briefing.digest.notifier import Notifier, TelegramNotifier, format_digest_message
from briefing.digest.persistence import DigestGateway
from briefing.digest.repository import DigestRepository
from briefing.digest.schemas import Digest, DigestResult, DigestStats, DigestStatus
from briefing.digest.service import DigestService
from briefing.digest.summarizer import DigestSummarizer

__all__ = [
    "Digest",
    "DigestConfig",
    "DigestGateway",
    "DigestRepository",
    "DigestResult",
    "DigestService",
    "DigestStats",
    "DigestStatus",
    "DigestSummarizer",
    "Notifier",
    "TelegramConfig",
    "TelegramNotifier",
    "format_digest_message",
]

"""Content ingestion, LLM enrichment and daily digest pipeline."""

__version__ = "0.1.0"

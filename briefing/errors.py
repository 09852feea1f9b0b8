"""Exception types shared across the pipeline."""


class BriefingError(Exception):
    """Base exception for pipeline errors."""


class ExternalServiceError(BriefingError):
    """A call to a third-party service (source API, LLM, notifier) failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class TransientExternalError(ExternalServiceError):
    """Timeout, 5xx or 429. Safe to retry."""


class PermanentExternalError(ExternalServiceError):
    """Bad credentials, other 4xx or a malformed payload. Never retried."""


class InvalidStateTransitionError(BriefingError):
    """A record was moved out of a state it is not allowed to leave."""


class SourceNotFoundError(BriefingError):
    """No source with the requested id exists."""


class CrawlAlreadyRunningError(BriefingError):
    """A manual crawl was requested while one for the same target is running."""

    def __init__(self, key: str):
        super().__init__(f"Crawl already in progress for {key}")
        self.key = key


def error_from_status(
    message: str,
    status_code: int,
    response_body: str | None = None,
) -> ExternalServiceError:
    """Build the transient or permanent error matching an HTTP status code."""
    if status_code == 429 or status_code >= 500:
        return TransientExternalError(message, status_code, response_body)
    return PermanentExternalError(message, status_code, response_body)

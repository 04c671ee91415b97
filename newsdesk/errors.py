"""Exceptions raised by the import pipeline."""


class NewsdeskError(Exception):
    """Base class for all newsdesk errors."""


class FetchError(NewsdeskError):
    """A feed could not be fetched or parsed and no cached copy exists."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class PersistenceError(NewsdeskError):
    """Writing an article to the store failed."""


class SetupError(NewsdeskError):
    """Run-wide prerequisites (admin user, category) could not be resolved."""


class FeedError(NewsdeskError):
    """Unexpected failure while processing a single feed."""


class SchedulerError(NewsdeskError):
    """A scheduled run failed after exhausting its retries."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Import failed after {attempts} attempt(s): {last_error}")

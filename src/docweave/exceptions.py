"""Exception hierarchy for the documentation ingestion core"""


class DocweaveError(Exception):
    """Base class for all docweave errors"""


class FetchError(DocweaveError):
    """
    Network failure, timeout or missing expected content while fetching a URL.

    Retryable: the fetcher retries these up to its configured attempt limit.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class ParseError(DocweaveError):
    """Fetched markup or a content item had an unexpected shape. Not retried."""


class StorageError(DocweaveError):
    """A persistence read or write failed."""


class SchedulerError(DocweaveError):
    """A scheduler operation could not be carried out for a job."""

    def __init__(self, message: str, job_id: str | None = None) -> None:
        super().__init__(message)
        self.job_id = job_id

"""Error taxonomy for schedule ingestion and storage."""


class GymPlanError(Exception):
    """Base exception for gymplan errors."""
    pass


class InvalidDateError(GymPlanError, ValueError):
    """Raised for a malformed or impossible day.month date."""
    pass


class StorageUnavailableError(GymPlanError):
    """Raised when the schedule database cannot be read or written.

    Read paths must treat this as "unknown", never as "no data".
    """
    pass


class AcquisitionError(GymPlanError):
    """Raised when source documents cannot be listed or fetched."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseValidationError(GymPlanError):
    """Raised when a document cannot be turned into a valid week submission."""

    def __init__(self, message: str, source_url: str | None = None):
        super().__init__(message)
        self.source_url = source_url


class DuplicateSubmissionError(GymPlanError):
    """A week submission was already stored; informational no-op."""

    def __init__(self, week_id: str):
        super().__init__(f"Schedule for week {week_id} already exists")
        self.week_id = week_id

"""
Custom exceptions for the availability scraping pipeline.

Per-clinician failures are caught at the clinician boundary and recorded
in the dataset; only a startup failure to obtain any browser session is
allowed to abort a run.
"""

from typing import Optional


# Base Exception
class ScraperError(Exception):
    """Base exception for all scraping pipeline errors."""


# Browser Connection Error
class BrowserConnectionError(ScraperError, ConnectionError):
    """Raised when the remote automation endpoint cannot be reached."""

    def __init__(self, message: str, endpoint: Optional[str] = None, attempts: Optional[int] = None):
        self.endpoint = endpoint
        self.attempts = attempts

        details = []
        if attempts is not None:
            details.append(f"attempts={attempts}")

        full_message = message
        if details:
            full_message = f"{message} [{', '.join(details)}]"

        super().__init__(full_message)


# Navigation Error
class NavigationError(ScraperError):
    """Raised when driving the portal form fails after all retries."""

    def __init__(
        self,
        message: str,
        clinician_id: Optional[str] = None,
        stage: Optional[str] = None,
        last_error: Optional[BaseException] = None,
    ):
        self.clinician_id = clinician_id
        self.stage = stage
        self.last_error = last_error

        details = []
        if clinician_id:
            details.append(f"clinician={clinician_id}")
        if stage:
            details.append(f"stage={stage}")

        full_message = message
        if details:
            full_message = f"{message} [{', '.join(details)}]"
        if last_error is not None:
            full_message = f"{full_message}: {last_error}"

        super().__init__(full_message)


# Persistence Error
class PersistenceError(ScraperError):
    """Raised when the dataset checkpoint cannot be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        full_message = f"{message} [path={path}]" if path else message
        super().__init__(full_message)

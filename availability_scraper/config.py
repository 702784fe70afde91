"""Runtime configuration for the availability scraper, read from the environment."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


DEFAULT_BASE_URL = "https://www.therapyportal.com/p/crownc/appointments/availability/"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)

REQUIRED_ENV_VARS = ["PORTAL_BROWSER_ENDPOINT"]


class RetryProfile(BaseModel):
    """Timeouts and retry counts used while driving the portal form (seconds)."""

    page_timeout: float = 60.0
    element_timeout: float = 10.0
    results_timeout: float = 30.0
    probe_timeout: float = 5.0
    navigation_retries: int = 3
    retry_delay: float = 5.0
    settle_delay: float = 0.5
    results_settle_delay: float = 2.0
    blocked_resources: tuple = ("image", "font", "media")

    def doubled(self) -> "RetryProfile":
        """Profile for the error-retry sweep: twice the patience everywhere."""
        return self.model_copy(update={
            "page_timeout": self.page_timeout * 2,
            "element_timeout": self.element_timeout * 2,
            "results_timeout": self.results_timeout * 2,
            "navigation_retries": self.navigation_retries * 2,
            "retry_delay": self.retry_delay * 2,
            "settle_delay": self.settle_delay * 2,
            "results_settle_delay": self.results_settle_delay * 2.5,
            "blocked_resources": ("image", "font"),
        })


class ScraperConfig(BaseModel):
    """
    Pipeline configuration.

    Durations are in seconds. Defaults mirror the values the portal
    tolerates without throttling.
    """

    browser_endpoint: str = Field("", description="Remote CDP / WebSocket automation endpoint")
    base_url: str = Field(DEFAULT_BASE_URL, description="Availability-search page of the portal")

    concurrency: int = Field(2, ge=1, description="Concurrent browser sessions")
    batch_size: int = Field(4, ge=1, description="Clinicians per batch")
    clinician_delay: float = Field(1.2, ge=0, description="Delay between clinician starts within a batch")
    batch_delay: float = Field(10.0, ge=0, description="Delay between batches")
    sweep_delay: float = Field(5.0, ge=0, description="Delay between clinicians in the error-retry sweep")

    page_timeout: float = Field(60.0, gt=0)
    navigation_retries: int = Field(3, ge=1)
    retry_delay: float = Field(5.0, ge=0)
    connect_attempts: int = Field(3, ge=1)
    connect_timeout: float = Field(30.0, gt=0)
    acquire_timeout: float = Field(120.0, gt=0)

    results_dir: Path = Field(Path("./results"))
    appointments_file: str = "appointments.json"
    clinician_map_file: str = "clinician-map.json"
    error_log_file: str = "error-log.txt"

    debug: bool = False
    log_level: str = "INFO"

    @property
    def appointments_path(self) -> Path:
        return self.results_dir / self.appointments_file

    @property
    def clinician_map_path(self) -> Path:
        return self.results_dir / self.clinician_map_file

    @property
    def error_log_path(self) -> Path:
        return self.results_dir / self.error_log_file

    def retry_profile(self) -> RetryProfile:
        """Retry profile for the main scraping pass."""
        return RetryProfile(
            page_timeout=self.page_timeout,
            navigation_retries=self.navigation_retries,
            retry_delay=self.retry_delay,
        )

    def sweep_profile(self) -> RetryProfile:
        """Retry profile for the error-retry sweep."""
        return self.retry_profile().doubled()

    @classmethod
    def from_env(cls, endpoint: Optional[str] = None, require_endpoint: bool = True) -> "ScraperConfig":
        """
        Build the configuration from environment variables.

        Args:
            endpoint: Optional endpoint override (defaults to PORTAL_BROWSER_ENDPOINT)
            require_endpoint: Fail when no endpoint is configured (normalize-only runs do not need one)

        Returns:
            ScraperConfig instance
        """
        endpoint = endpoint or os.getenv("PORTAL_BROWSER_ENDPOINT")
        if require_endpoint and not endpoint:
            raise ValueError("PORTAL_BROWSER_ENDPOINT not found in environment")

        return cls(
            browser_endpoint=endpoint or "",
            base_url=os.getenv("PORTAL_BASE_URL", DEFAULT_BASE_URL),
            concurrency=int(os.getenv("SCRAPER_CONCURRENCY", "2")),
            batch_size=int(os.getenv("SCRAPER_BATCH_SIZE", "4")),
            clinician_delay=float(os.getenv("SCRAPER_CLINICIAN_DELAY", "1.2")),
            batch_delay=float(os.getenv("SCRAPER_BATCH_DELAY", "10")),
            sweep_delay=float(os.getenv("SCRAPER_SWEEP_DELAY", "5")),
            page_timeout=float(os.getenv("SCRAPER_PAGE_TIMEOUT", "60")),
            navigation_retries=int(os.getenv("SCRAPER_NAVIGATION_RETRIES", "3")),
            retry_delay=float(os.getenv("SCRAPER_RETRY_DELAY", "5")),
            connect_attempts=int(os.getenv("SCRAPER_CONNECT_ATTEMPTS", "3")),
            results_dir=Path(os.getenv("SCRAPER_RESULTS_DIR", "./results")),
            appointments_file=os.getenv("SCRAPER_APPOINTMENTS_FILE", "appointments.json"),
            debug=os.getenv("SCRAPER_DEBUG", "").lower() in ("1", "true", "yes"),
            log_level=os.getenv("SCRAPER_LOG_LEVEL", "INFO").upper(),
        )

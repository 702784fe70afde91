"""Availability workflow: scrape -> error-retry sweep -> normalize."""

from typing import Dict, List, Optional

from loguru import logger

from ..config import ScraperConfig
from ..models.dataset import Dataset
from ..models.types import RosterEntry
from ..normalizers.pipeline import normalize_dataset, normalize_file
from ..services.browser_pool import BrowserSessionManager
from ..services.portal_form import PortalFormDriver
from ..utils.storage import DatasetStore
from .retry_workflow import ErrorRetrySweep
from .scrape_workflow import BatchOrchestrator


STAGES = ("all", "scrape", "retry", "normalize")


def build_session_manager(config: ScraperConfig) -> BrowserSessionManager:
    return BrowserSessionManager(
        endpoint=config.browser_endpoint,
        max_sessions=config.concurrency,
        connect_attempts=config.connect_attempts,
        connect_timeout=config.connect_timeout,
        acquire_timeout=config.acquire_timeout,
    )


def log_normalization_report(reports: Dict[str, Dict[str, int]]) -> None:
    for name, stats in reports.items():
        summary = ", ".join(f"{key}={value}" for key, value in stats.items())
        logger.info(f"  - {name}: {summary}")


async def scrape_node(
    config: ScraperConfig,
    sessions: BrowserSessionManager,
    store: DatasetStore,
    dataset: Dataset,
    clinician_ids: Optional[List[str]] = None,
    resume: bool = False,
) -> Dataset:
    """
    Main pass over the roster.

    Args:
        config: Pipeline configuration
        sessions: Shared session manager
        store: Checkpoint store
        dataset: Dataset to merge into (the previous checkpoint or empty)
        clinician_ids: Restrict the run to these clinician IDs
        resume: Skip clinicians already present in the dataset

    Returns:
        Updated dataset
    """
    logger.info("[1/3] Scraping clinician availability...")

    driver = PortalFormDriver(
        sessions,
        config.base_url,
        profile=config.retry_profile(),
        capture_screenshots=config.debug,
    )
    orchestrator = BatchOrchestrator(config, driver, store=store, dataset=dataset)

    roster: Optional[List[RosterEntry]] = None
    if clinician_ids:
        roster = await driver.fetch_roster()
        wanted = set(clinician_ids)
        roster = [c for c in roster if c.id in wanted]
        missing = wanted - {c.id for c in roster}
        if missing:
            logger.warning(f"Clinician IDs not on the portal roster: {', '.join(sorted(missing))}")

    dataset = await orchestrator.run(roster, skip_existing=resume)
    logger.success(f"Scraped {len(dataset)} clinicians")
    return dataset


async def retry_node(
    config: ScraperConfig,
    sessions: BrowserSessionManager,
    store: DatasetStore,
    dataset: Dataset,
    passes: int = 3,
) -> Dataset:
    """Run the error-retry sweep `passes` times, stopping early once no errors remain."""
    logger.info(f"[2/3] Retrying errored clinicians ({passes} passes)...")

    driver = PortalFormDriver(
        sessions,
        config.base_url,
        profile=config.sweep_profile(),
        capture_screenshots=config.debug,
    )
    sweep = ErrorRetrySweep(config, driver, store=store)

    for i in range(1, passes + 1):
        remaining = len(dataset.error_clinicians())
        if not remaining:
            break
        logger.info(f"Error retry pass {i}/{passes} ({remaining} clinicians)")
        dataset = await sweep.run(dataset)

    logger.success(f"{len(dataset.error_clinicians())} clinicians still in error")
    return dataset


def normalize_node(store: DatasetStore, dataset: Dataset) -> Dataset:
    """Run the normalization stages and persist the final document."""
    logger.info("[3/3] Normalizing dataset...")
    reports = normalize_dataset(dataset)
    log_normalization_report(reports)
    store.save(dataset)
    logger.success(f"Final dataset written to {store.path}")
    return dataset


async def run_availability_workflow(
    config: ScraperConfig,
    stage: str = "all",
    retry_passes: int = 3,
    fresh: bool = False,
    resume: bool = False,
    clinician_ids: Optional[List[str]] = None,
) -> Dataset:
    """
    Run the availability pipeline.

    Args:
        config: Pipeline configuration
        stage: One of "all", "scrape", "retry", "normalize"
        retry_passes: Number of error-retry sweeps
        fresh: Delete the previous dataset before scraping
        resume: Skip clinicians already present in the checkpoint
        clinician_ids: Restrict scraping to these clinician IDs

    Returns:
        The resulting dataset

    Raises:
        ValueError: Unknown stage
        BrowserConnectionError: No browser session at startup
        PersistenceError: The final dataset could not be read or written
    """
    if stage not in STAGES:
        raise ValueError(f"Unknown stage: {stage}")

    store = DatasetStore(config.appointments_path)

    if stage == "normalize":
        reports = normalize_file(store.path)
        log_normalization_report(reports)
        return store.load()

    if fresh and stage in ("all", "scrape"):
        if store.clear():
            logger.info(f"Cleared existing data at {store.path}")

    dataset = store.load()
    sessions = build_session_manager(config)

    try:
        if stage in ("all", "scrape"):
            dataset = await scrape_node(config, sessions, store, dataset, clinician_ids, resume)

        if stage in ("all", "retry"):
            dataset = await retry_node(config, sessions, store, dataset, retry_passes)
    finally:
        await sessions.close_all()

    if stage == "all":
        dataset = normalize_node(store, dataset)

    logger.info(f"Status counts: {dataset.status_counts()}")
    return dataset

"""Error-retry sweep: re-scrape only the clinicians left in an error state."""

import asyncio
from typing import Optional

from loguru import logger

from ..config import ScraperConfig
from ..exceptions import PersistenceError
from ..models.dataset import Dataset
from ..services.portal_form import PortalFormDriver
from ..utils.storage import DatasetStore
from .scrape_workflow import record_from_search


class ErrorRetrySweep:
    """
    Second pass over `status == error` clinicians with a more patient driver.

    A clinician that fails again keeps its previous error entry untouched.
    The dataset is checkpointed after every clinician. Running the sweep
    again is a no-op for clinicians it already fixed.
    """

    def __init__(
        self,
        config: ScraperConfig,
        driver: PortalFormDriver,
        store: Optional[DatasetStore] = None,
    ):
        self.config = config
        self.driver = driver
        self.store = store

    def checkpoint(self, dataset: Dataset) -> None:
        if self.store is None:
            return
        try:
            self.store.save(dataset)
        except PersistenceError as e:
            logger.warning(f"Checkpoint failed, continuing in memory: {e}")

    async def run(self, dataset: Dataset) -> Dataset:
        """
        Retry every errored clinician once.

        Args:
            dataset: Dataset from the main pass (or a previous sweep), updated in place

        Returns:
            The same dataset
        """
        targets = dataset.error_clinicians()
        logger.info(f"Found {len(targets)} clinicians with errors to retry")
        if not targets:
            logger.success("No error clinicians found, nothing to retry!")
            return dataset

        fixed = 0
        for i, clinician in enumerate(targets, 1):
            logger.info(f"Retry {i} of {len(targets)}: {clinician.name} (ID: {clinician.id})")
            try:
                result = await self.driver.search(clinician.id)
                debug_dir = self.config.results_dir if self.config.debug else None
                record = record_from_search(clinician, result, debug_dir)
                dataset.record_result(clinician.id, record)
                fixed += 1
            except Exception as e:
                logger.error(f"Retry failed for clinician (ID: {clinician.id}, Name: {clinician.name}): {e}")

            self.checkpoint(dataset)

            if i < len(targets):
                logger.info("Adding delay between retries...")
                await asyncio.sleep(self.config.sweep_delay)

        logger.success(f"Error retry completed: {fixed}/{len(targets)} clinicians recovered")
        return dataset

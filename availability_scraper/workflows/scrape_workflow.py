"""Main scraping pass: batch orchestration over the clinician roster."""

import asyncio
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from ..config import ScraperConfig
from ..exceptions import PersistenceError
from ..models.dataset import Dataset
from ..models.records import ClinicianRecord, SlotRecord
from ..models.types import ClinicianStatus, RosterEntry
from ..services.portal_form import PortalFormDriver, SearchOutcome, SearchResult, write_debug_artifacts
from ..services.slot_extractor import extract_slots
from ..utils.storage import DatasetStore, write_json_atomic


def partition(clinicians: List[RosterEntry], size: int) -> List[List[RosterEntry]]:
    """Split the roster into consecutive batches of at most `size` clinicians."""
    return [clinicians[i:i + size] for i in range(0, len(clinicians), size)]


def record_from_search(
    clinician: RosterEntry,
    result: SearchResult,
    debug_dir: Optional[Path] = None,
) -> ClinicianRecord:
    """
    Turn a loaded results view into the clinician's record for this pass.

    Args:
        clinician: Roster entry being processed
        result: Outcome and HTML from the form driver
        debug_dir: When set, HTML/screenshot are saved here if no slots are found

    Returns:
        ClinicianRecord with status no_appointments, no_slots_found, or ok with slots
    """
    if result.outcome == SearchOutcome.NO_RESULTS:
        logger.info(f"No available appointments for {clinician.name} (ID: {clinician.id})")
        return ClinicianRecord(name=clinician.name, status=ClinicianStatus.NO_APPOINTMENTS)

    raw_slots, strategy = extract_slots(result.html)
    if not raw_slots:
        logger.info(f"No time slots found for {clinician.name} (ID: {clinician.id})")
        if debug_dir is not None:
            try:
                for path in write_debug_artifacts(debug_dir, result):
                    logger.debug(f"Saved debug artifact {path}")
            except OSError as e:
                logger.warning(f"Could not save debug artifacts for {clinician.id}: {e}")
        return ClinicianRecord(name=clinician.name, status=ClinicianStatus.NO_SLOTS_FOUND)

    logger.info(f"Found {len(raw_slots)} time slots for {clinician.name} (ID: {clinician.id}) via {strategy}")
    slots = [
        SlotRecord(href=raw.href or "#", time=raw.time, date=raw.date_label)
        for raw in raw_slots
    ]
    return ClinicianRecord(name=clinician.name, status=ClinicianStatus.OK, slots=slots)


class BatchOrchestrator:
    """
    Scrapes every clinician in sequential batches of bounded concurrency.

    The dataset is checkpointed after every batch, so a crash loses at most
    the batch in flight.
    """

    def __init__(
        self,
        config: ScraperConfig,
        driver: PortalFormDriver,
        store: Optional[DatasetStore] = None,
        dataset: Optional[Dataset] = None,
    ):
        self.config = config
        self.driver = driver
        self.store = store
        self.dataset = dataset if dataset is not None else Dataset()
        self.clinician_map: Dict[str, str] = {}

    def checkpoint(self) -> bool:
        """Persist the full dataset. A failed write is a warning, never fatal."""
        if self.store is None:
            return False
        try:
            self.store.save(self.dataset)
            logger.success(f"Results updated in {self.store.path}")
            return True
        except PersistenceError as e:
            logger.warning(f"Checkpoint failed, continuing in memory: {e}")
            return False

    def save_clinician_map(self) -> None:
        if self.store is None:
            return
        try:
            write_json_atomic(self.config.clinician_map_path, self.clinician_map)
        except PersistenceError as e:
            logger.warning(f"Could not save clinician map: {e}")

    async def process_clinician(self, clinician: RosterEntry, index: int, total: int) -> None:
        """Scrape one clinician and record the outcome. Never raises for per-clinician failures."""
        logger.info(f"Processing clinician {index} of {total}: {clinician.name} (ID: {clinician.id})")
        self.clinician_map[clinician.id] = clinician.name

        try:
            result = await self.driver.search(clinician.id)
            debug_dir = self.config.results_dir if self.config.debug else None
            record = record_from_search(clinician, result, debug_dir)
        except Exception as e:
            logger.error(f"Error processing clinician (ID: {clinician.id}, Name: {clinician.name}): {e}")
            record = ClinicianRecord(
                name=clinician.name,
                status=ClinicianStatus.ERROR,
                error_message=str(e),
            )

        self.dataset.record_result(clinician.id, record)

    async def process_batch(self, batch: List[RosterEntry], batch_index: int, total_batches: int,
                            offset: int, total: int) -> None:
        logger.info(f"Processing batch {batch_index} of {total_batches} with {len(batch)} clinicians")
        limit = asyncio.Semaphore(self.config.concurrency)

        async def bounded(clinician: RosterEntry, index: int) -> None:
            try:
                await self.process_clinician(clinician, index, total)
            finally:
                limit.release()

        # queued clinicians keep the start delay once a slot frees up
        tasks = []
        try:
            for i, clinician in enumerate(batch):
                await limit.acquire()
                tasks.append(asyncio.create_task(bounded(clinician, offset + i + 1)))
                if i < len(batch) - 1:
                    await asyncio.sleep(self.config.clinician_delay)
        finally:
            await asyncio.gather(*tasks)

    async def run(
        self,
        clinicians: Optional[List[RosterEntry]] = None,
        skip_existing: bool = False,
    ) -> Dataset:
        """
        Scrape the roster into the dataset.

        Args:
            clinicians: Roster to process (fetched from the portal when None)
            skip_existing: Skip clinicians already present in the dataset (resume)

        Returns:
            The dataset, also checkpointed after every batch

        Raises:
            BrowserConnectionError: If no browser session can be obtained for the roster
            NavigationError: If the roster cannot be read at all
        """
        if clinicians is None:
            clinicians = await self.driver.fetch_roster()
            logger.info(f"Found {len(clinicians)} clinicians")

        for clinician in clinicians:
            self.clinician_map[clinician.id] = clinician.name
        self.save_clinician_map()

        if skip_existing:
            remaining = [c for c in clinicians if c.id not in self.dataset]
            if len(remaining) < len(clinicians):
                logger.info(f"Skipping {len(clinicians) - len(remaining)} already processed clinicians")
            clinicians = remaining
            if not clinicians:
                logger.success("All clinicians already processed!")
                return self.dataset

        batches = partition(clinicians, self.config.batch_size)
        offset = 0
        for i, batch in enumerate(batches, 1):
            await self.process_batch(batch, i, len(batches), offset, len(clinicians))
            offset += len(batch)
            self.checkpoint()

            if i < len(batches):
                logger.info("Pausing between batches to reduce server load...")
                await asyncio.sleep(self.config.batch_delay)

        self.save_clinician_map()
        logger.success(f"Scraping completed: {self.dataset.status_counts()}")
        return self.dataset

#!/usr/bin/env python3
"""
Drive the portal's availability-search form to its results view.

Stages per clinician:
  1) navigate to the availability-search page
  2) wait for the form marker
  3) set the "any location" filter
  4) select the clinician by ID
  5) submit and race the results marker against the no-results marker

Any stage failure restarts the attempt from navigation. Between attempts a
page health probe decides whether the page and its browser session are
still usable; if not, both are discarded and a fresh session is requested
from the session manager.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

from loguru import logger
from playwright.async_api import Error as PlaywrightError

from ..config import RetryProfile, USER_AGENT
from ..exceptions import NavigationError
from ..models.types import RosterEntry
from .browser_pool import BrowserSessionManager
from .slot_extractor import (
    CLINICIAN_SELECT,
    NO_RESULTS_MARKER,
    RESULTS_MARKER,
    has_no_results_marker,
    has_results_marker,
    parse_roster,
)


FORM_MARKER = "#IsNewPatientInput"
LOCATION_SELECT = "#InputLocation"
ANY_LOCATION = "-1"
SUBMIT_BUTTON = "#ApptAvailabilityChecker__Submit-Button"


class FormStage(str, Enum):
    OPEN_PAGE = "open_page"
    NAVIGATE = "navigate"
    WAIT_FOR_FORM = "wait_for_form"
    SET_LOCATION = "set_location"
    SELECT_CLINICIAN = "select_clinician"
    SUBMIT = "submit"
    READ_RESULTS = "read_results"


class SearchOutcome(str, Enum):
    RESULTS = "results"
    NO_RESULTS = "no_results"
    UNKNOWN = "unknown"


@dataclass
class SearchResult:
    clinician_id: str
    outcome: SearchOutcome
    html: str
    attempts: int = 1
    screenshot: Optional[bytes] = None


class StageFailure(Exception):
    """A single stage failed within one attempt."""

    def __init__(self, stage: FormStage, error: BaseException):
        self.stage = stage
        self.error = error
        super().__init__(f"{stage.value}: {error}")


async def page_is_responsive(page: Any, timeout: float) -> bool:
    """Health predicate: the page still evaluates script within `timeout`."""
    if page is None:
        return False
    try:
        await asyncio.wait_for(page.evaluate("() => document.title"), timeout=timeout)
        return True
    except Exception:
        return False


class PortalFormDriver:
    """Drives the availability-search form with timeout-bounded retries."""

    def __init__(
        self,
        sessions: BrowserSessionManager,
        base_url: str,
        profile: Optional[RetryProfile] = None,
        capture_screenshots: bool = False,
    ):
        """
        Initialize the form driver.

        Args:
            sessions: Session manager that owns the browser connections
            base_url: Availability-search page of the portal
            profile: Timeouts and retry counts (main pass or sweep)
            capture_screenshots: Attach a full-page screenshot to each result
        """
        self.sessions = sessions
        self.base_url = base_url
        self.profile = profile or RetryProfile()
        self.capture_screenshots = capture_screenshots

    # ------------------------------------------------------------------
    # Page lifecycle
    # ------------------------------------------------------------------

    async def _open_page(self, browser: Any) -> Any:
        timeout = self.profile.page_timeout
        page = await asyncio.wait_for(browser.new_page(), timeout=timeout)
        try:
            await asyncio.wait_for(self._prepare_page(page), timeout=timeout)
        except BaseException:
            await self._close_page(page)
            raise
        return page

    async def _prepare_page(self, page: Any) -> None:
        timeout = self.profile.page_timeout
        page.set_default_timeout(timeout * 1000)
        await page.set_extra_http_headers({"User-Agent": USER_AGENT})

        blocked = set(self.profile.blocked_resources)

        async def block_heavy_resources(route: Any) -> None:
            try:
                if route.request.resource_type in blocked:
                    await asyncio.wait_for(route.abort(), timeout=timeout)
                else:
                    await asyncio.wait_for(route.continue_(), timeout=timeout)
            except (PlaywrightError, asyncio.TimeoutError) as e:
                logger.debug(f"Route handling failed for {route.request.resource_type} request: {e}")

        await page.route("**/*", block_heavy_resources)
        page.on("pageerror", lambda err: logger.debug(f"Page error: {err}"))

    @staticmethod
    async def _close_page(page: Any) -> None:
        if page is None:
            return
        try:
            await asyncio.wait_for(page.close(), timeout=5)
        except Exception as e:
            logger.debug(f"Ignoring page close failure: {e}")

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _run_stage(self, stage: FormStage, coro: Any) -> Any:
        try:
            return await coro
        except (PlaywrightError, asyncio.TimeoutError) as e:
            raise StageFailure(stage, e) from e

    async def _open_form(self, page: Any) -> None:
        p = self.profile
        await self._run_stage(
            FormStage.NAVIGATE,
            page.goto(self.base_url, wait_until="networkidle", timeout=p.page_timeout * 1000),
        )
        await self._run_stage(
            FormStage.WAIT_FOR_FORM,
            page.wait_for_selector(FORM_MARKER, timeout=p.element_timeout * 1000),
        )
        await asyncio.sleep(p.settle_delay)
        await self._run_stage(
            FormStage.SET_LOCATION,
            page.select_option(LOCATION_SELECT, ANY_LOCATION, timeout=p.element_timeout * 1000),
        )
        await asyncio.sleep(p.settle_delay)

    async def _search(self, page: Any, clinician_id: str) -> SearchResult:
        p = self.profile
        await self._open_form(page)

        await self._run_stage(
            FormStage.SELECT_CLINICIAN,
            page.wait_for_selector(CLINICIAN_SELECT, timeout=p.element_timeout * 1000),
        )
        await self._run_stage(
            FormStage.SELECT_CLINICIAN,
            page.select_option(CLINICIAN_SELECT, clinician_id, timeout=p.element_timeout * 1000),
        )
        await asyncio.sleep(p.settle_delay)

        await self._run_stage(
            FormStage.SUBMIT,
            page.click(SUBMIT_BUTTON, timeout=p.element_timeout * 1000),
        )

        # Either marker is a valid terminal state
        try:
            await page.wait_for_selector(
                f"{RESULTS_MARKER}, {NO_RESULTS_MARKER}",
                timeout=p.results_timeout * 1000,
            )
        except (PlaywrightError, asyncio.TimeoutError):
            logger.warning(f"Timeout waiting for results for clinician {clinician_id}, checking page content...")

        await asyncio.sleep(p.results_settle_delay)

        html = await self._run_stage(
            FormStage.READ_RESULTS,
            asyncio.wait_for(page.content(), timeout=p.page_timeout),
        )
        if has_no_results_marker(html):
            outcome = SearchOutcome.NO_RESULTS
        elif has_results_marker(html):
            outcome = SearchOutcome.RESULTS
        else:
            outcome = SearchOutcome.UNKNOWN

        screenshot = None
        if self.capture_screenshots:
            try:
                screenshot = await page.screenshot(full_page=True, timeout=p.element_timeout * 1000)
            except PlaywrightError as e:
                logger.debug(f"Screenshot failed for clinician {clinician_id}: {e}")

        return SearchResult(clinician_id=clinician_id, outcome=outcome, html=html, screenshot=screenshot)

    # ------------------------------------------------------------------
    # Retry loop
    # ------------------------------------------------------------------

    async def _with_retries(self, label: str, clinician_id: Optional[str], action: Any) -> Any:
        """
        Run `action(page)` with retries, replacing page and session when the
        health probe says they are dead.
        """
        p = self.profile
        browser = await self.sessions.acquire()
        page = None
        last_failure: Optional[StageFailure] = None

        try:
            for attempt in range(1, p.navigation_retries + 1):
                if attempt > 1:
                    logger.warning(f"{label}: retry attempt {attempt}/{p.navigation_retries}")
                    await asyncio.sleep(p.retry_delay)

                try:
                    if page is None:
                        try:
                            page = await self._open_page(browser)
                        except (PlaywrightError, asyncio.TimeoutError) as e:
                            raise StageFailure(FormStage.OPEN_PAGE, e) from e
                    result = await action(page)
                    if hasattr(result, "attempts"):
                        result.attempts = attempt
                    return result
                except StageFailure as failure:
                    last_failure = failure
                    logger.warning(f"{label}: {failure.stage.value} failed on attempt {attempt}: {failure.error}")
                    if attempt == p.navigation_retries:
                        break

                    if not await page_is_responsive(page, p.probe_timeout):
                        await self._close_page(page)
                        page = None
                        if not await self.sessions.is_valid(browser):
                            logger.warning(f"{label}: browser session unresponsive, replacing it")
                            await self.sessions.discard(browser)
                            browser = None
                            browser = await self.sessions.acquire()
        finally:
            await self._close_page(page)
            if browser is not None:
                await self.sessions.release(browser)

        raise NavigationError(
            f"{label} failed after {p.navigation_retries} attempts",
            clinician_id=clinician_id,
            stage=last_failure.stage.value if last_failure else None,
            last_error=last_failure.error if last_failure else None,
        )

    async def search(self, clinician_id: str) -> SearchResult:
        """
        Drive the form for one clinician up to its results view.

        Returns:
            SearchResult with the outcome and the rendered HTML

        Raises:
            NavigationError: If every attempt failed
            BrowserConnectionError: If no browser session could be obtained
        """
        return await self._with_retries(
            f"Search for clinician {clinician_id}",
            clinician_id,
            lambda page: self._search(page, clinician_id),
        )

    async def fetch_roster(self) -> List[RosterEntry]:
        """Open the form once and read every clinician from the selection control."""

        async def read_roster(page: Any) -> List[RosterEntry]:
            await self._open_form(page)
            await self._run_stage(
                FormStage.SELECT_CLINICIAN,
                page.wait_for_selector(CLINICIAN_SELECT, timeout=self.profile.element_timeout * 1000),
            )
            html = await self._run_stage(
                FormStage.READ_RESULTS,
                asyncio.wait_for(page.content(), timeout=self.profile.page_timeout),
            )
            return parse_roster(html)

        return await self._with_retries("Roster fetch", None, read_roster)


def write_debug_artifacts(results_dir: Path, result: SearchResult) -> List[Path]:
    """Save the results HTML (and screenshot, if captured) for a clinician."""
    results_dir.mkdir(parents=True, exist_ok=True)
    stem = results_dir / f"debug-{result.clinician_id}"
    written = []

    html_path = stem.with_suffix(".html")
    html_path.write_text(result.html, encoding="utf-8")
    written.append(html_path)

    if result.screenshot:
        png_path = stem.with_suffix(".png")
        png_path.write_bytes(result.screenshot)
        written.append(png_path)

    return written

"""Shared fixtures and in-memory fakes of the portal and the Playwright objects."""

import html
from typing import Dict, Iterable, List, Optional, Tuple

import pytest
from playwright.async_api import Error as PlaywrightError

from availability_scraper.config import RetryProfile, ScraperConfig
from availability_scraper.services.browser_pool import BrowserSessionManager
from availability_scraper.services.slot_extractor import CLINICIAN_SELECT


BASE = "https://www.therapyportal.com/p/crownc/appointments/requests/"


def slot_href(iso_date: str, time: str = "09:00", location: str = "250637") -> str:
    return f"{BASE}?timeSlot={iso_date}T{time}&location={location}"


def results_html(days: Iterable[Tuple[str, List[Tuple[str, str]]]]) -> str:
    """Results view with one header per day followed by its slot links."""
    parts = []
    for label, slots in days:
        links = "".join(
            f'<a class="AvailableTimeSlot" href="{html.escape(href)}">{time}</a>'
            for time, href in slots
        )
        parts.append(
            f'<div class="CalendarDay"><h3 class="CalendarDayHeader">{label}</h3>'
            f'<div class="slots">{links}</div></div>'
        )
    return "".join(parts)


NO_RESULTS_HTML = '<div class="NoAvailableAppointments">No available appointments</div>'
EMPTY_RESULTS_HTML = '<div class="AvailabilityResults"><p>Loading...</p></div>'


class FakePortal:
    """State shared by every fake page: roster, canned results and injected failures."""

    def __init__(
        self,
        roster: Optional[Dict[str, str]] = None,
        results: Optional[Dict[str, str]] = None,
        failing: Iterable[str] = (),
        crashes: int = 0,
    ):
        self.roster = roster or {}
        self.results = results or {}
        self.failing = set(failing)
        self.crashes = crashes
        self.searches: List[str] = []

    def form_html(self) -> str:
        options = '<option value="-1">Select a clinician</option>'
        options += "".join(
            f'<option value="{cid}">{html.escape(name)}</option>' for cid, name in self.roster.items()
        )
        return (
            '<form><input id="IsNewPatientInput" type="checkbox">'
            '<select id="InputLocation"><option value="-1">Any</option></select>'
            f'<select id="InputSelectClinician">{options}</select>'
            '<button id="ApptAvailabilityChecker__Submit-Button">Search</button></form>'
        )

    def render(self, clinician_id: Optional[str]) -> str:
        body = self.form_html()
        if clinician_id is not None:
            body += self.results.get(clinician_id, NO_RESULTS_HTML)
        return f"<html><head><title>Availability</title></head><body>{body}</body></html>"


class FakeRoute:
    def __init__(self, resource_type: str):
        self.request = type("Request", (), {"resource_type": resource_type})()
        self.aborted = False
        self.continued = False

    async def abort(self):
        self.aborted = True

    async def continue_(self):
        self.continued = True


class FakePage:
    def __init__(self, browser: "FakeBrowser"):
        self.browser = browser
        self.portal = browser.portal
        self.selected: Optional[str] = None
        self.submitted = False
        self.responsive = True
        self.closed = False
        self.route_handler = None
        self.default_timeout = None
        self.headers = {}

    def _check(self):
        if not self.responsive or not self.browser.connected:
            raise PlaywrightError("Target page, context or browser has been closed")

    def set_default_timeout(self, timeout):
        self.default_timeout = timeout

    async def set_extra_http_headers(self, headers):
        self.headers.update(headers)

    async def route(self, pattern, handler):
        self.route_handler = handler

    def on(self, event, callback):
        pass

    async def goto(self, url, **kwargs):
        self._check()
        self.selected = None
        self.submitted = False

    async def wait_for_selector(self, selector, **kwargs):
        self._check()

    async def select_option(self, selector, value, **kwargs):
        self._check()
        if selector == CLINICIAN_SELECT:
            self.selected = value

    async def click(self, selector, **kwargs):
        self._check()
        self.portal.searches.append(self.selected)
        if self.portal.crashes > 0:
            self.portal.crashes -= 1
            self.browser.crash()
            raise PlaywrightError("Target crashed")
        if self.selected in self.portal.failing:
            raise PlaywrightError(f"Timeout 10000ms exceeded clicking {selector}")
        self.submitted = True

    async def content(self):
        self._check()
        return self.portal.render(self.selected if self.submitted else None)

    async def evaluate(self, script):
        self._check()
        return "Availability"

    async def screenshot(self, **kwargs):
        return b"\x89PNG"

    async def close(self):
        self.closed = True


class FakeCDPSession:
    def __init__(self, browser: "FakeBrowser"):
        self.browser = browser

    async def send(self, method, params=None):
        if not self.browser.connected:
            raise PlaywrightError("Browser has been closed")
        return {"product": "Chrome/122.0"}

    async def detach(self):
        pass


class FakeBrowser:
    def __init__(self, portal: FakePortal):
        self.portal = portal
        self.connected = True
        self.closed = False
        self.pages: List[FakePage] = []

    def is_connected(self):
        return self.connected

    async def new_browser_cdp_session(self):
        return FakeCDPSession(self)

    async def new_page(self):
        if not self.connected:
            raise PlaywrightError("Browser has been closed")
        page = FakePage(self)
        self.pages.append(page)
        return page

    def crash(self):
        self.connected = False
        for page in self.pages:
            page.responsive = False

    async def close(self):
        self.closed = True
        self.connected = False


class FakeConnector:
    """Async callable standing in for chromium.connect_over_cdp."""

    def __init__(self, portal: Optional[FakePortal] = None, failures: int = 0):
        self.portal = portal or FakePortal()
        self.failures = failures
        self.browsers: List[FakeBrowser] = []

    @property
    def calls(self) -> int:
        return len(self.browsers)

    async def __call__(self):
        if self.failures > 0:
            self.failures -= 1
            raise PlaywrightError("connect ECONNREFUSED")
        browser = FakeBrowser(self.portal)
        self.browsers.append(browser)
        return browser


def make_sessions(connector: FakeConnector, max_sessions: int = 2, **kwargs) -> BrowserSessionManager:
    """Build inside the running loop so the pool semaphore binds to it."""
    kwargs.setdefault("retry_delay", 0)
    return BrowserSessionManager("ws://fake-endpoint", max_sessions=max_sessions, connector=connector, **kwargs)


@pytest.fixture
def fast_profile():
    return RetryProfile(
        navigation_retries=2,
        retry_delay=0,
        settle_delay=0,
        results_settle_delay=0,
        probe_timeout=1,
    )


@pytest.fixture
def config(tmp_path):
    return ScraperConfig(
        browser_endpoint="ws://fake-endpoint",
        results_dir=tmp_path,
        concurrency=2,
        batch_size=2,
        clinician_delay=0,
        batch_delay=0,
        sweep_delay=0,
        retry_delay=0,
        navigation_retries=2,
    )


@pytest.fixture
def portal():
    return FakePortal(
        roster={"101": "Jane Smith, PhD - Remote", "102": "Dr. John Doe", "103": "Ann Lee LCSW"},
        results={
            "101": results_html([
                ("Mon 3/10", [("9:00 AM", slot_href("2025-03-10")), ("10:00 AM", slot_href("2025-03-10", "10:00", "172794"))]),
                ("Tue 3/11", [("1:00 PM", slot_href("2025-03-11", "13:00"))]),
            ]),
            "102": NO_RESULTS_HTML,
            "103": EMPTY_RESULTS_HTML,
        },
    )


@pytest.fixture
def normalized_input():
    """A raw scrape in the shape the orchestrator writes it."""
    return {
        "101": {
            "name": "Jane Smith, PhD - Remote",
            "slots": [
                {"href": slot_href("2025-03-10"), "time": "9:00 AM", "date": "bad", "status": "listed"},
                {"href": "#", "time": "9:30 AM", "date": "Mon 3/10", "status": "listed"},
                {"href": slot_href("2025-03-12", "11:00", "232862"), "time": "11:00 AM", "date": "Wed 3/12", "status": "booked"},
            ],
        },
        "102": {"name": "Dr. John Doe", "status": "no_appointments", "slots": []},
        "103": {"slots": {"href": slot_href("2025-03-13", "15:00", "172794"), "time": "3:00 PM", "date": "Thu 3/13"}},
    }

"""
Pool of remote browser sessions.

Sessions are Playwright Browser connections to a remote CDP endpoint.
The pool is bounded by the configured concurrency: a session is held by
exactly one task between acquire() and release()/discard(), and no call
waits without a timeout.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional

from loguru import logger

from ..exceptions import BrowserConnectionError


Connector = Callable[[], Awaitable[Any]]


class BrowserSessionManager:
    """Acquires, pools, validates and disposes of remote browser sessions."""

    def __init__(
        self,
        endpoint: str,
        max_sessions: int = 2,
        connect_attempts: int = 3,
        connect_timeout: float = 30.0,
        acquire_timeout: float = 120.0,
        probe_timeout: float = 5.0,
        retry_delay: float = 1.0,
        connector: Optional[Connector] = None,
    ):
        """
        Initialize the session manager.

        Args:
            endpoint: Remote automation endpoint (ws:// or wss:// CDP URL)
            max_sessions: Upper bound on sessions held at once
            connect_attempts: Connection attempts before giving up
            connect_timeout: Timeout per connection attempt (seconds)
            acquire_timeout: Longest wait for a free pool slot (seconds)
            probe_timeout: Timeout of the liveness probe (seconds)
            retry_delay: Pause between connection attempts (seconds)
            connector: Async callable returning a new session (defaults to Playwright CDP)
        """
        self.endpoint = endpoint
        self.max_sessions = max_sessions
        self.connect_attempts = connect_attempts
        self.connect_timeout = connect_timeout
        self.acquire_timeout = acquire_timeout
        self.probe_timeout = probe_timeout
        self.retry_delay = retry_delay
        self._connector = connector or self._connect_over_cdp

        self._idle: List[Any] = []
        self._open: List[Any] = []
        self._capacity = asyncio.Semaphore(max_sessions)
        self._playwright = None

    @property
    def open_sessions(self) -> int:
        return len(self._open)

    @property
    def idle_sessions(self) -> int:
        return len(self._idle)

    async def _connect_over_cdp(self) -> Any:
        from playwright.async_api import async_playwright

        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.connect_over_cdp(
            self.endpoint, timeout=self.connect_timeout * 1000
        )

    async def _open_session(self) -> Any:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.connect_attempts + 1):
            if attempt > 1:
                await asyncio.sleep(self.retry_delay)
            try:
                logger.info(f"Connecting to browser instance (attempt {attempt}/{self.connect_attempts})...")
                session = await asyncio.wait_for(self._connector(), timeout=self.connect_timeout)
                self._open.append(session)
                return session
            except Exception as e:
                last_error = e
                logger.warning(f"Browser connection attempt {attempt} failed: {e}")

        raise BrowserConnectionError(
            f"Could not connect to automation endpoint: {last_error}",
            endpoint=self.endpoint,
            attempts=self.connect_attempts,
        )

    async def is_valid(self, session: Any) -> bool:
        """Liveness probe: a CDP round trip under a short timeout. Any failure means dead."""
        try:
            if not session.is_connected():
                return False

            async def probe() -> None:
                cdp = await session.new_browser_cdp_session()
                try:
                    await cdp.send("Browser.getVersion")
                finally:
                    await cdp.detach()

            await asyncio.wait_for(probe(), timeout=self.probe_timeout)
            return True
        except Exception:
            return False

    async def acquire(self) -> Any:
        """
        Get a live session, reusing an idle pooled one when it still answers.

        Raises:
            BrowserConnectionError: If no pool slot frees up in time or the
                endpoint stays unreachable after all attempts
        """
        try:
            await asyncio.wait_for(self._capacity.acquire(), timeout=self.acquire_timeout)
        except asyncio.TimeoutError:
            raise BrowserConnectionError(
                f"No browser session became available within {self.acquire_timeout}s",
                endpoint=self.endpoint,
            )

        try:
            while self._idle:
                session = self._idle.pop(0)
                if await self.is_valid(session):
                    return session
                logger.warning("Pooled browser disconnected, discarding it")
                await self._close_quietly(session)
            return await self._open_session()
        except BaseException:
            self._capacity.release()
            raise

    async def release(self, session: Any) -> None:
        """Return a session to the pool if it is still alive, otherwise drop it."""
        try:
            if session is not None and await self.is_valid(session):
                self._idle.append(session)
            elif session is not None:
                await self._close_quietly(session)
        finally:
            self._capacity.release()

    async def discard(self, session: Any) -> None:
        """Close a session the caller has found unusable and free its slot."""
        try:
            await self._close_quietly(session)
        finally:
            self._capacity.release()

    async def _close_quietly(self, session: Any) -> None:
        if session in self._open:
            self._open.remove(session)
        try:
            await asyncio.wait_for(session.close(), timeout=self.probe_timeout)
        except Exception as e:
            logger.debug(f"Ignoring browser close failure: {e}")

    async def close_all(self) -> None:
        """Close every session ever opened. One hung session never blocks shutdown."""
        sessions = list(self._open)
        self._idle.clear()
        for session in sessions:
            await self._close_quietly(session)

        if self._playwright is not None:
            try:
                await asyncio.wait_for(self._playwright.stop(), timeout=self.probe_timeout)
            except Exception as e:
                logger.debug(f"Ignoring Playwright shutdown failure: {e}")
            self._playwright = None

        logger.info(f"All browsers closed ({len(sessions)} sessions)")

"""Reachability monitoring for the DMS host."""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Awaitable, Callable, Optional, Union

import httpx

from dmsclient.models.config import DMSConfig
from dmsclient.models.reachability import ReachabilityState
from dmsclient.utils.errors import MonitorInitError

ChangeCallback = Callable[[bool], Union[None, Awaitable[None]]]


class ReachabilityProbe(ABC):
    """Capability interface: turn a host into a stream of observed states.

    Implementations may repeat identical states; the monitor deduplicates.
    """

    def check(self, host: str) -> None:
        """Validate that this probe can watch host.

        Raises:
            ValueError: If the host is unusable for this probe
        """
        if not host:
            raise ValueError("Host must not be empty")

    @abstractmethod
    def subscribe(self, host: str) -> AsyncIterator[ReachabilityState]:
        """Yield reachability observations for host until cancelled."""


class HttpHealthProbe(ReachabilityProbe):
    """Periodic HTTP HEAD health ping.

    Any HTTP response counts as reachable, including error statuses; only a
    transport failure (DNS, connect, timeout) counts as unreachable.
    """

    def __init__(
        self,
        scheme: str = "https",
        port: Optional[int] = None,
        path: str = "/",
        interval: float = 10.0,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.logger = logging.getLogger("dmsclient.reachability")
        self.scheme = scheme
        self.port = port
        self.path = path or "/"
        self.interval = interval
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def for_config(
        cls,
        config: DMSConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "HttpHealthProbe":
        """Probe pinging the configured DMS base URL itself."""
        base = httpx.URL(config.base_url)
        return cls(
            scheme=base.scheme,
            port=base.port,
            path=base.path,
            interval=config.probe_interval,
            timeout=config.request_timeout,
            transport=transport,
        )

    def url_for(self, host: str) -> httpx.URL:
        url = httpx.URL(scheme=self.scheme, host=host, path=self.path)
        if self.port is not None:
            url = url.copy_with(port=self.port)
        return url

    def check(self, host: str) -> None:
        super().check(host)
        try:
            self.url_for(host)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid host for HTTP probe: {host}") from e

    async def subscribe(self, host: str) -> AsyncIterator[ReachabilityState]:
        url = self.url_for(host)
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            while True:
                try:
                    response = await client.head(url)
                    self.logger.debug(f"Health ping {url}: HTTP {response.status_code}")
                    yield ReachabilityState.REACHABLE
                except httpx.TransportError as e:
                    self.logger.debug(f"Health ping {url} failed: {e}")
                    yield ReachabilityState.UNREACHABLE
                await asyncio.sleep(self.interval)


class TcpConnectProbe(ReachabilityProbe):
    """Periodic TCP connect to host:port."""

    def __init__(self, port: int = 443, interval: float = 10.0, timeout: float = 5.0):
        self.logger = logging.getLogger("dmsclient.reachability")
        self.port = port
        self.interval = interval
        self.timeout = timeout

    def check(self, host: str) -> None:
        super().check(host)
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid TCP port: {self.port}")

    async def subscribe(self, host: str) -> AsyncIterator[ReachabilityState]:
        while True:
            try:
                _, writer = await asyncio.wait_for(
                    asyncio.open_connection(host, self.port), timeout=self.timeout
                )
                writer.close()
                await writer.wait_closed()
                yield ReachabilityState.REACHABLE
            except (OSError, asyncio.TimeoutError) as e:
                self.logger.debug(f"TCP connect {host}:{self.port} failed: {e}")
                yield ReachabilityState.UNREACHABLE
            await asyncio.sleep(self.interval)


class ReachabilityMonitor:
    """Watches DMS host reachability and reports transitions only.

    The first observed state always counts as a transition out of UNKNOWN.
    Repeated identical observations are dropped.
    """

    def __init__(
        self,
        host: str,
        probe: ReachabilityProbe,
        on_change: Optional[ChangeCallback] = None,
        retry_interval: float = 10.0,
    ):
        """Initialize monitor.

        Args:
            host: Host name to watch
            probe: Reachability primitive
            on_change: Called with the new bool state on each transition
            retry_interval: Seconds to wait before resubscribing after the
                probe stream fails or ends

        Raises:
            MonitorInitError: If the probe cannot watch host
        """
        self.logger = logging.getLogger("dmsclient.reachability")
        try:
            probe.check(host)
        except Exception as e:
            raise MonitorInitError(
                "Cannot create reachability monitor", f"host={host!r}: {e}"
            ) from e

        self.host = host
        self.probe = probe
        self.on_change = on_change
        self.retry_interval = retry_interval
        self._state = ReachabilityState.UNKNOWN
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> ReachabilityState:
        return self._state

    @property
    def is_reachable(self) -> Optional[bool]:
        """True/False once known, None before the first observation."""
        if self._state == ReachabilityState.UNKNOWN:
            return None
        return self._state == ReachabilityState.REACHABLE

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Begin watching on the running event loop.

        Raises:
            MonitorInitError: If no event loop is running
        """
        if self.running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise MonitorInitError(
                "Cannot start reachability monitor", "no running event loop"
            ) from e
        self._task = loop.create_task(
            self._watch(), name=f"dms-reachability-{self.host}"
        )
        self.logger.info(f"Monitoring reachability of {self.host}")

    def stop(self) -> None:
        """Release the reachability watch. Safe to call repeatedly."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            self.logger.info(f"Stopped monitoring {self.host}")
        self._task = None

    async def update(self, state: ReachabilityState) -> bool:
        """Apply one observed state.

        Returns:
            True if this was a transition and was published
        """
        if state == ReachabilityState.UNKNOWN or state == self._state:
            return False

        previous, self._state = self._state, state
        self.logger.info(
            f"DMS host {self.host} reachability: {previous.value} -> {state.value}"
        )
        if self.on_change is not None:
            try:
                result = self.on_change(state == ReachabilityState.REACHABLE)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.logger.error(f"Reachability callback failed: {e}", exc_info=True)
        return True

    async def _watch(self) -> None:
        while True:
            try:
                async for state in self.probe.subscribe(self.host):
                    await self.update(state)
                self.logger.warning(f"Reachability probe for {self.host} ended")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.error(f"Reachability probe failed: {e}", exc_info=True)
                await self.update(ReachabilityState.UNREACHABLE)

            # Resubscribe; update() drops repeated states
            await asyncio.sleep(self.retry_interval)

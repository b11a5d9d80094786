"""DMS session: per-device orchestrator for catalog, download, and reachability."""

import inspect
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import httpx

from dmsclient.models.config import DMSConfig
from dmsclient.models.firmware import FirmwareList
from dmsclient.models.reachability import ReachabilityState
from dmsclient.models.results import DownloadResult, RetrieveResult
from dmsclient.services.catalog import CatalogClient
from dmsclient.services.download import DownloadClient
from dmsclient.services.events import EventHub, SessionEvent
from dmsclient.services.reachability import (
    HttpHealthProbe,
    ReachabilityMonitor,
    ReachabilityProbe,
)
from dmsclient.services.reporter import InstallReporter
from dmsclient.utils.errors import DMSError, NetworkError

RetrieveCompletion = Callable[[Optional[DMSError], Optional[FirmwareList]], Any]
DownloadCompletion = Callable[[Optional[DMSError], Optional[Path]], Any]


class DMSSession:
    """Firmware catalog session for one device.

    Two independent tracks:
    - reachability: unknown → reachable ⇄ unreachable (monitor events)
    - firmware list: empty → populated (successful retrievals only)

    Operations are never gated on reachability; the service call decides.
    Must be created inside a running event loop, since the reachability
    monitor starts immediately.
    """

    def __init__(
        self,
        device_id: str,
        config: Optional[DMSConfig] = None,
        probe: Optional[ReachabilityProbe] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize session and start reachability monitoring.

        Args:
            device_id: Unique identifier of the device being updated
            config: DMS settings (defaults if None)
            probe: Reachability primitive (HTTP health ping if None)
            transport: Optional httpx transport for all DMS requests

        Raises:
            ValueError: If device_id is empty
            MonitorInitError: If the reachability monitor cannot start
        """
        if not device_id:
            raise ValueError("device_id must not be empty")

        self.logger = logging.getLogger("dmsclient.session")
        self._device_id = device_id
        self.config = config or DMSConfig()
        self.transport = transport
        self.events = EventHub()
        self.catalog = CatalogClient(device_id, self.config, transport)
        self.downloader = DownloadClient(device_id, self.config, transport)
        self._firmware_list: FirmwareList = []

        if probe is None:
            probe = HttpHealthProbe.for_config(self.config, transport)
        self.monitor = ReachabilityMonitor(
            self.config.host,
            probe,
            on_change=self._on_reachability_change,
            retry_interval=self.config.probe_interval,
        )
        self.monitor.start()
        self.logger.info(f"DMS session created for device {device_id}")

    @classmethod
    def create(
        cls,
        device_id: str,
        config: Optional[DMSConfig] = None,
        probe: Optional[ReachabilityProbe] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "DMSSession":
        """Create a session; raises MonitorInitError if monitoring cannot start."""
        return cls(device_id, config=config, probe=probe, transport=transport)

    @property
    def device_id(self) -> str:
        return self._device_id

    @property
    def firmware_list(self) -> FirmwareList:
        """Last successfully retrieved list (empty before the first success)."""
        return list(self._firmware_list)

    @property
    def reachability(self) -> ReachabilityState:
        return self.monitor.state

    @property
    def is_reachable(self) -> Optional[bool]:
        return self.monitor.is_reachable

    def subscribe(
        self, event: SessionEvent, callback: Callable[[Any], Any]
    ) -> Callable[[], None]:
        """Observe a session event; returns an unsubscribe function."""
        return self.events.subscribe(event, callback)

    def unsubscribe(self, event: SessionEvent, callback: Callable[[Any], Any]) -> None:
        self.events.unsubscribe(event, callback)

    async def retrieve_available_versions(
        self, completion: Optional[RetrieveCompletion] = None
    ) -> RetrieveResult:
        """Retrieve firmware versions compatible with this device.

        On success the cached list is replaced, NEW_FIRMWARE_LIST is published,
        and only then does completion fire. On failure the cache is untouched.

        Args:
            completion: Optional callback(error, firmware_list), fired once

        Returns:
            RetrieveResult with exactly one of error/firmware_list
        """
        try:
            firmware_list = await self.catalog.retrieve_available_versions()
        except DMSError as e:
            self.logger.warning(f"Firmware list retrieval failed: {e}")
            result = RetrieveResult(error=e)
        except Exception as e:
            self.logger.error(f"Unexpected retrieval failure: {e}", exc_info=True)
            result = RetrieveResult(
                error=NetworkError("Unexpected retrieval failure", str(e))
            )
        else:
            self._firmware_list = list(firmware_list)
            await self.events.publish(SessionEvent.NEW_FIRMWARE_LIST, list(firmware_list))
            result = RetrieveResult(firmware_list=firmware_list)

        await self._complete(completion, result.error, result.firmware_list)
        return result

    async def load_firmware_version(
        self, version: str, completion: Optional[DownloadCompletion] = None
    ) -> DownloadResult:
        """Download a firmware image; completion fires after the file is written.

        Args:
            version: Version to fetch (forwarded to the service as-is)
            completion: Optional callback(error, file_path), fired once

        Returns:
            DownloadResult with exactly one of error/file_path
        """
        try:
            file_path = await self.downloader.load_firmware_version(version)
        except DMSError as e:
            self.logger.warning(f"Firmware download failed: {e}")
            result = DownloadResult(error=e)
        except Exception as e:
            self.logger.error(f"Unexpected download failure: {e}", exc_info=True)
            result = DownloadResult(
                error=NetworkError("Unexpected download failure", str(e))
            )
        else:
            result = DownloadResult(file_path=file_path)

        await self._complete(completion, result.error, result.file_path)
        return result

    @staticmethod
    def report_installation_result(
        device_uuid: str, bundle_id: str, config: Optional[DMSConfig] = None
    ) -> None:
        """Fire-and-forget installation report; no session required."""
        InstallReporter.report_installation_result(device_uuid, bundle_id, config)

    def close(self) -> None:
        """Release the reachability watch."""
        self.monitor.stop()

    async def __aenter__(self) -> "DMSSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"DMSSession(device_id={self._device_id!r}, "
            f"reachability={self.reachability.value}, "
            f"versions={len(self._firmware_list)})"
        )

    async def _on_reachability_change(self, is_reachable: bool) -> None:
        await self.events.publish(SessionEvent.REACHABILITY_CHANGED, is_reachable)

    async def _complete(self, completion, error, value) -> None:
        if completion is None:
            return
        try:
            outcome = completion(error, value)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            self.logger.error(f"Completion callback failed: {e}", exc_info=True)

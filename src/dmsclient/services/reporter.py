"""Installation reporting to the DMS for analytics."""

import asyncio
import logging
import threading
from typing import Optional

import httpx

from dmsclient.models.config import DMSConfig


class InstallReporter:
    """Fire-and-forget installation reports.

    Telemetry only: no callback, no return value, failures are logged and
    never raised to the caller.
    """

    # Strong references to in-flight report tasks until they finish
    _pending: set[asyncio.Task] = set()

    @staticmethod
    def report_endpoint(config: DMSConfig) -> str:
        return f"{config.base_url}/api/v1.0/installations"

    @staticmethod
    def build_payload(device_uuid: str, bundle_id: str) -> dict[str, str]:
        return {"device_uuid": device_uuid, "bundle_id": bundle_id}

    @classmethod
    def report_installation_result(
        cls,
        device_uuid: str,
        bundle_id: str,
        config: Optional[DMSConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Report a completed installation without waiting for delivery.

        Schedules the report on the running event loop when there is one,
        otherwise posts from a daemon thread.

        Args:
            device_uuid: UUID of the device that was updated
            bundle_id: Firmware bundle identifier/version installed
            config: DMS settings (defaults if None)
            transport: Optional httpx transport override (async path only)
        """
        config = config or DMSConfig()
        logger = logging.getLogger("dmsclient.reporter")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            task = loop.create_task(
                cls.send_report(device_uuid, bundle_id, config, transport)
            )
            cls._pending.add(task)
            task.add_done_callback(cls._pending.discard)
        else:
            thread = threading.Thread(
                target=cls._send_report_sync,
                args=(device_uuid, bundle_id, config),
                name="dms-install-report",
                daemon=True,
            )
            thread.start()
        logger.debug(f"Queued installation report: {device_uuid} -> {bundle_id}")

    @classmethod
    async def send_report(
        cls,
        device_uuid: str,
        bundle_id: str,
        config: Optional[DMSConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """POST one installation report; never raises."""
        config = config or DMSConfig()
        logger = logging.getLogger("dmsclient.reporter")

        try:
            async with httpx.AsyncClient(
                timeout=config.report_timeout,
                headers=config.headers,
                transport=transport,
            ) as client:
                response = await client.post(
                    cls.report_endpoint(config),
                    json=cls.build_payload(device_uuid, bundle_id),
                )
                response.raise_for_status()
                logger.info(f"Reported installation of {bundle_id} on {device_uuid}")

        except httpx.HTTPError as e:
            logger.warning(f"Failed to report installation to DMS: {e}")
        except Exception as e:
            logger.error(
                f"Unexpected error reporting installation: {e}",
                exc_info=True,
            )

    @classmethod
    def _send_report_sync(
        cls, device_uuid: str, bundle_id: str, config: DMSConfig
    ) -> None:
        logger = logging.getLogger("dmsclient.reporter")
        try:
            with httpx.Client(
                timeout=config.report_timeout, headers=config.headers
            ) as client:
                response = client.post(
                    cls.report_endpoint(config),
                    json=cls.build_payload(device_uuid, bundle_id),
                )
                response.raise_for_status()
                logger.info(f"Reported installation of {bundle_id} on {device_uuid}")
        except httpx.HTTPError as e:
            logger.warning(f"Failed to report installation to DMS: {e}")
        except Exception as e:
            logger.error(
                f"Unexpected error reporting installation: {e}",
                exc_info=True,
            )

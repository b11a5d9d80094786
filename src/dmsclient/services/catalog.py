"""Catalog client: list firmware versions available for a device."""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from dmsclient.models.config import DMSConfig
from dmsclient.models.firmware import FirmwareList, parse_firmware_list
from dmsclient.utils.errors import NetworkError, ParseError, ServiceError


class CatalogClient:
    """Issues the list-firmware request and maps the response."""

    def __init__(
        self,
        device_id: str,
        config: Optional[DMSConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize catalog client.

        Args:
            device_id: Device the catalog is scoped to
            config: DMS settings (defaults if None)
            transport: Optional httpx transport override
        """
        self.logger = logging.getLogger("dmsclient.catalog")
        self.device_id = device_id
        self.config = config or DMSConfig()
        self.transport = transport
        self.catalog_endpoint = (
            f"{self.config.base_url}/api/v1.0/devices/"
            f"{quote(device_id, safe='')}/firmware"
        )

    async def retrieve_available_versions(self) -> FirmwareList:
        """Fetch and parse the firmware list for this device.

        Returns:
            FirmwareList in service order (may be empty)

        Raises:
            NetworkError: Transport failure or timeout
            ServiceError: Non-2xx final HTTP status (redirects are followed)
            ParseError: Malformed response body
        """
        self.logger.info(f"Retrieving firmware list for device {self.device_id}")

        try:
            async with httpx.AsyncClient(
                timeout=self.config.request_timeout,
                headers=self.config.headers,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(self.catalog_endpoint)
        except (httpx.HTTPError, httpx.StreamError) as e:
            self.logger.warning(f"Catalog request failed: {e}")
            raise NetworkError("DMS unreachable", str(e)) from e

        if not response.is_success:
            self.logger.warning(
                f"Catalog request rejected: HTTP {response.status_code}"
            )
            raise ServiceError(
                f"Catalog request rejected: HTTP {response.status_code}",
                response.status_code,
                response.text[:200],
            )

        try:
            payload = response.json()
        except ValueError as e:
            self.logger.error(f"Catalog response is not JSON: {e}")
            raise ParseError("Catalog response is not valid JSON", str(e)) from e

        firmware_list = parse_firmware_list(payload)
        self.logger.info(
            f"Retrieved {len(firmware_list)} firmware versions for {self.device_id}"
        )
        return firmware_list

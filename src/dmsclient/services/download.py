"""Download client: fetch a firmware image and materialize it locally."""

import hashlib
import os
import re
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import quote
import logging

import aiofiles
import httpx

from dmsclient.models.config import DMSConfig
from dmsclient.utils.errors import (
    NetworkError,
    NotFoundError,
    ServiceError,
    StorageError,
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def firmware_filename(version: str) -> str:
    """Local file name for a firmware version, e.g. '1.2.0' -> '1.2.0.bin'.

    When unsafe characters had to be replaced, a short digest of the raw
    version is appended so distinct versions never share a file.
    """
    safe = _UNSAFE_FILENAME_CHARS.sub("_", version).lstrip(".")
    if safe and safe == version:
        return f"{safe}.bin"
    digest = hashlib.sha256(version.encode("utf-8")).hexdigest()[:8]
    return f"{safe or 'firmware'}-{digest}.bin"


class DownloadClient:
    """Streams firmware images from the DMS to local storage.

    Bytes land in a unique ``.part`` file first and are moved into place only
    once complete, so a returned path never references a partial image.
    """

    def __init__(
        self,
        device_id: str,
        config: Optional[DMSConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize download client.

        Args:
            device_id: Device the image is requested for
            config: DMS settings (defaults if None)
            transport: Optional httpx transport override
        """
        self.logger = logging.getLogger("dmsclient.download")
        self.device_id = device_id
        self.config = config or DMSConfig()
        self.transport = transport
        self.chunk_size = self.config.chunk_size

    def image_url(self, version: str) -> str:
        return (
            f"{self.config.base_url}/api/v1.0/devices/"
            f"{quote(self.device_id, safe='')}/firmware/{quote(version, safe='')}"
        )

    async def load_firmware_version(self, version: str) -> Path:
        """Download a firmware image by version.

        Args:
            version: Version string as listed by the catalog (not pre-validated)

        Returns:
            Path to the fully written image

        Raises:
            NotFoundError: Service has no such version
            ServiceError: Other non-2xx final status (redirects are followed)
            NetworkError: Transport failure, timeout, or truncated body
            StorageError: Local write failure
        """
        download_dir = Path(self.config.download_dir)
        target_path = download_dir / firmware_filename(version)
        part_path = download_dir / f".{target_path.name}.{uuid.uuid4().hex[:8]}.part"
        url = self.image_url(version)
        self.logger.info(f"Starting download: version={version}, url={url}")

        try:
            download_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                "Cannot create download directory", f"{download_dir}: {e}"
            ) from e

        try:
            bytes_written = await self._stream_to_file(url, version, part_path)
            os.replace(part_path, target_path)
        except OSError as e:
            self.logger.error(f"Failed to store firmware {version}: {e}")
            part_path.unlink(missing_ok=True)
            raise StorageError("Failed to write firmware image", str(e)) from e
        except Exception:
            part_path.unlink(missing_ok=True)
            raise

        self.logger.info(f"Downloaded {bytes_written} bytes to {target_path}")
        return target_path

    async def _stream_to_file(self, url: str, version: str, part_path: Path) -> int:
        """Stream the response body into part_path.

        Returns:
            Number of bytes written
        """
        bytes_written = 0
        try:
            async with httpx.AsyncClient(
                timeout=self.config.download_timeout,
                headers=self.config.headers,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", url) as response:
                    if response.status_code == 404:
                        raise NotFoundError(version, url)
                    if not response.is_success:
                        await response.aread()
                        raise ServiceError(
                            f"Download rejected: HTTP {response.status_code}",
                            response.status_code,
                            response.text[:200],
                        )

                    expected = response.headers.get("Content-Length")
                    if response.headers.get("Content-Encoding"):
                        # Decoded length differs from the wire length
                        expected = None
                    async with aiofiles.open(part_path, "wb") as f:
                        last_logged = 0
                        async for chunk in response.aiter_bytes(
                            chunk_size=self.chunk_size
                        ):
                            await f.write(chunk)
                            bytes_written += len(chunk)

                            # Log every 1MB
                            if bytes_written - last_logged >= 1024 * 1024:
                                last_logged = bytes_written
                                self.logger.debug(
                                    f"Download progress: {bytes_written} bytes"
                                    + (f"/{expected}" if expected else "")
                                )
        except (httpx.HTTPError, httpx.StreamError) as e:
            self.logger.warning(f"Download of {version} failed: {e}")
            raise NetworkError("Firmware download failed", str(e)) from e

        if expected is not None and expected.isdigit() and int(expected) != bytes_written:
            raise NetworkError(
                "Firmware download truncated",
                f"expected {expected} bytes, got {bytes_written}",
            )
        return bytes_written

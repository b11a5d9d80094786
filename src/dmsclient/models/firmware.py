"""Firmware catalog data models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dmsclient.utils.errors import ParseError


class FirmwareVersionEntry(BaseModel):
    """One firmware version offered by the DMS for a device.

    The service reports the image size under ``size``; ``size_bytes`` is
    accepted as well.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str = Field(..., min_length=1, description="Firmware version string")
    description: str = Field(default="", description="Human-readable description")
    tag: str = Field(default="", description="Firmware flavor (e.g. 'stable')")
    size_bytes: int = Field(
        default=0, ge=0, alias="size", description="Image size in bytes"
    )


FirmwareList = list[FirmwareVersionEntry]


def parse_firmware_list(payload: Any) -> FirmwareList:
    """Map a decoded catalog response into a FirmwareList.

    Accepts either a bare JSON array or an object holding the array under
    ``versions``. Service order is preserved.

    Raises:
        ParseError: If the payload shape or any entry is invalid
    """
    if isinstance(payload, dict):
        if "versions" not in payload:
            raise ParseError("Catalog response missing 'versions' field")
        payload = payload["versions"]

    if not isinstance(payload, list):
        raise ParseError(
            f"Catalog response must be a list, got {type(payload).__name__}"
        )

    entries: FirmwareList = []
    for index, raw in enumerate(payload):
        if not isinstance(raw, dict):
            raise ParseError(f"Catalog entry {index} is not an object")
        try:
            entries.append(FirmwareVersionEntry.model_validate(raw))
        except ValidationError as e:
            raise ParseError(f"Invalid catalog entry {index}", str(e)) from e
    return entries

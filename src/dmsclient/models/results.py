"""Completion results for asynchronous session operations."""

from pathlib import Path
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dmsclient.models.firmware import FirmwareVersionEntry
from dmsclient.utils.errors import DMSError


class _OperationResult(BaseModel):
    """Exactly one of ``error`` or the value slot is set."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value_field: ClassVar[str] = ""

    error: Optional[DMSError] = Field(None, description="Failure, if any")

    @model_validator(mode="after")
    def exactly_one_slot(self):
        """Reject results with both or neither of error and value."""
        value = getattr(self, self.value_field)
        if (self.error is None) == (value is None):
            raise ValueError(
                f"Exactly one of error or {self.value_field} must be set"
            )
        return self

    @property
    def ok(self) -> bool:
        return self.error is None


class RetrieveResult(_OperationResult):
    """Outcome of retrieve_available_versions.

    An empty ``firmware_list`` is a success.
    """

    value_field: ClassVar[str] = "firmware_list"

    firmware_list: Optional[list[FirmwareVersionEntry]] = Field(
        None, description="Parsed catalog on success"
    )


class DownloadResult(_OperationResult):
    """Outcome of load_firmware_version."""

    value_field: ClassVar[str] = "file_path"

    file_path: Optional[Path] = Field(
        None, description="Fully written local image on success"
    )

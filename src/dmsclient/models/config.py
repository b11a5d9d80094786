"""Client configuration model."""

import os
from pathlib import Path
from typing import Optional

import httpx
from pydantic import BaseModel, Field, field_validator


class DMSConfig(BaseModel):
    """Connection and storage settings for the DMS client.

    Environment overrides (see ``from_env``):
    DMS_BASE_URL, DMS_API_KEY, DMS_DOWNLOAD_DIR
    """

    base_url: str = Field(
        default="http://localhost:9090",
        pattern=r"^https?://.+",
        description="Base URL of the DMS service",
    )
    api_key: Optional[str] = Field(
        None, description="Sent as x-api-key header when set"
    )
    download_dir: Path = Field(
        default=Path("./tmp/firmware"), description="Where firmware images land"
    )
    request_timeout: float = Field(default=30.0, gt=0, description="Seconds")
    download_timeout: float = Field(default=120.0, gt=0, description="Seconds")
    report_timeout: float = Field(default=5.0, gt=0, description="Seconds")
    chunk_size: int = Field(default=64 * 1024, gt=0, description="Stream chunk bytes")
    probe_interval: float = Field(
        default=10.0, gt=0, description="Seconds between reachability probes"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL so endpoint joins don't double the slash."""
        return v.rstrip("/")

    @property
    def host(self) -> str:
        """Host name the reachability monitor watches."""
        return httpx.URL(self.base_url).host

    @property
    def headers(self) -> dict[str, str]:
        """Headers sent with every DMS request."""
        if self.api_key:
            return {"x-api-key": self.api_key}
        return {}

    @classmethod
    def from_env(cls, **overrides) -> "DMSConfig":
        """Build config from DMS_* environment variables plus explicit overrides.

        Explicit keyword arguments win over the environment; ``None`` values
        are ignored so CLI defaults don't mask the environment.
        """
        values = {}
        env_map = {
            "base_url": "DMS_BASE_URL",
            "api_key": "DMS_API_KEY",
            "download_dir": "DMS_DOWNLOAD_DIR",
        }
        for field, env_name in env_map.items():
            env_value = os.environ.get(env_name)
            if env_value:
                values[field] = env_value
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

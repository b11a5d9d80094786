"""Global pytest fixtures and configuration."""

import sys
from pathlib import Path

import pytest

# Add src and project root to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from dmsclient.models.config import DMSConfig  # noqa: E402
from tests.fixtures.probes import QueueProbe  # noqa: E402


@pytest.fixture
def queue_probe():
    """Reachability probe driven by the test."""
    return QueueProbe()


@pytest.fixture
def dms_config(tmp_path):
    """Config pointing at a fake DMS host and a temp download dir."""
    return DMSConfig(
        base_url="http://dms.test",
        api_key="test-key",
        download_dir=tmp_path / "firmware",
        probe_interval=0.01,
    )


@pytest.fixture
def sample_catalog_payload():
    """Catalog response for device ABC123."""
    return {
        "versions": [
            {"version": "1.2.0", "description": "release", "tag": "stable", "size": 45000}
        ]
    }


@pytest.fixture
def firmware_bytes():
    """45000-byte fake firmware image."""
    return b"\x7fFW" * 15000

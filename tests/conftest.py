"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from cmsconf.config import ConfigTree


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the directory containing static test fixtures."""

    return Path(__file__).parent / "fixtures"


@pytest.fixture
def settings_php_path(fixtures_dir: Path) -> Path:
    """Return the path to the sample CMS settings.php."""

    return fixtures_dir / "settings.php"


@pytest.fixture
def sample_tree() -> ConfigTree:
    """Return a small tree resembling a CMS settings payload."""

    return ConfigTree.from_dict(
        {
            "DB": {
                "Connections": {
                    "Default": {
                        "driver": "mysqli",
                        "host": "database",
                        "port": 3306,
                    },
                },
            },
            "GFX": {"processor_colorspace": "RGB", "processor_enabled": True},
            "SYS": {
                "sitename": "Demo",
                "systemMaintainers": [1, 3],
                "features": {"felogin.extbase": True},
            },
        }
    )

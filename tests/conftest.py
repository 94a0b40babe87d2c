"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from wpstack.core.models.config import SiteConfig
from wpstack.core.models.settings import HostSettings

from tests.helpers import site_answers


@pytest.fixture
def site_config() -> SiteConfig:
    return SiteConfig(**site_answers())


@pytest.fixture
def full_config() -> SiteConfig:
    """Every optional feature switched on."""
    return SiteConfig(
        **site_answers(
            use_mailgun=True,
            use_jetpack=True,
            mailgun_username="postmaster@mg.example.com",
            mailgun_password="mailgunsecret123",
        )
    )


@pytest.fixture
def host_root(tmp_path: Path) -> Path:
    """Scratch filesystem root for a simulated host."""
    root = tmp_path / "host"
    root.mkdir()
    return root


@pytest.fixture
def settings(host_root: Path) -> HostSettings:
    return HostSettings(root=str(host_root))

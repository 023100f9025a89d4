"""Shared test fixtures for the brsremote test suite.

Provides the simulator configuration and mock clients used across the
unit tests.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from brsremote.clients.console import ConsoleClient
from brsremote.clients.ecp import EcpClient
from brsremote.clients.installer import InstallerClient
from brsremote.config.settings import SimulatorConfig
from brsremote.tools.session import SimulatorSession

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


# ---------------------------------------------------------------------------
# Configuration Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def simulator_config() -> SimulatorConfig:
    """Loopback config with the screenshot and keypress delays disabled."""
    return SimulatorConfig(host="127.0.0.1", screenshot_delay_ms=0, keypress_delay_ms=0)


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_ecp() -> AsyncMock:
    """A mock EcpClient with every coroutine stubbed."""
    return AsyncMock(spec=EcpClient)


@pytest.fixture
def mock_installer() -> AsyncMock:
    """A mock InstallerClient whose screenshots are PNG_BYTES."""
    mock = AsyncMock(spec=InstallerClient)
    mock.screenshot_mime_type = "image/png"
    mock.capture_screenshot.return_value = PNG_BYTES
    return mock


@pytest.fixture
def mock_console() -> AsyncMock:
    """A mock ConsoleClient; get_recent_lines is a plain MagicMock."""
    mock = AsyncMock(spec=ConsoleClient)
    mock.get_recent_lines.return_value = []
    return mock


@pytest.fixture
def session(
    simulator_config: SimulatorConfig,
    mock_ecp: AsyncMock,
    mock_installer: AsyncMock,
    mock_console: AsyncMock,
) -> SimulatorSession:
    """A SimulatorSession wired to the mock clients."""
    return SimulatorSession(
        simulator_config, ecp=mock_ecp, installer=mock_installer, console=mock_console
    )

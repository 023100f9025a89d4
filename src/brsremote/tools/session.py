"""Holds one instance of each simulator client for the tool layer."""

from __future__ import annotations

import logging

from brsremote.clients.console import ConsoleClient
from brsremote.clients.ecp import EcpClient
from brsremote.clients.installer import InstallerClient
from brsremote.config.settings import SimulatorConfig

logger = logging.getLogger(__name__)


class SimulatorSession:
    """The three protocol clients built from one shared configuration.

    Clients may be injected (tests pass mocks); otherwise they are
    constructed from ``config``.
    """

    def __init__(
        self,
        config: SimulatorConfig,
        ecp: EcpClient | None = None,
        installer: InstallerClient | None = None,
        console: ConsoleClient | None = None,
    ) -> None:
        self.config = config
        self.ecp = ecp if ecp is not None else EcpClient(config)
        self.installer = installer if installer is not None else InstallerClient(config)
        self.console = console if console is not None else ConsoleClient(config)

    async def aclose(self) -> None:
        """Close all clients, including the console connection."""
        await self.console.disconnect()
        await self.installer.aclose()
        await self.ecp.aclose()
        logger.debug("Simulator session closed")

    async def __aenter__(self) -> SimulatorSession:
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.aclose()

"""Protocol clients for the brs-desktop simulator.

Each client owns one of the simulator's network services and is built
from the shared SimulatorConfig.

Public API:
    EcpClient -- remote-control key events and queries (HTTP)
    InstallerClient -- Digest-authenticated package install and screenshots
    ConsoleClient -- persistent debug-console session (TCP)
"""

from brsremote.clients.base import (
    ConsoleConnectionError,
    ProtocolError,
    RequestError,
    RetrievalError,
    ServiceUnreachableError,
    SimulatorClient,
    SimulatorError,
    SimulatorTimeoutError,
)

__all__ = [
    "ConsoleClient",
    "ConsoleConnectionError",
    "EcpClient",
    "InstallerClient",
    "ProtocolError",
    "RequestError",
    "RetrievalError",
    "ServiceUnreachableError",
    "SimulatorClient",
    "SimulatorError",
    "SimulatorTimeoutError",
]


def __getattr__(name: str) -> type:
    """Lazy import for the concrete clients."""
    if name == "EcpClient":
        from brsremote.clients.ecp import EcpClient
        return EcpClient
    if name == "InstallerClient":
        from brsremote.clients.installer import InstallerClient
        return InstallerClient
    if name == "ConsoleClient":
        from brsremote.clients.console import ConsoleClient
        return ConsoleClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

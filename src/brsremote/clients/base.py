"""Base class and error hierarchy for the simulator protocol clients.

Every client owns exactly one connection or protocol and is built from
the shared, read-only :class:`SimulatorConfig`. A coordinating layer
holds one instance of each and routes operations to it.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

import httpx

from brsremote.config.settings import SimulatorConfig

logger = logging.getLogger(__name__)


class SimulatorClient(ABC):
    """Abstract interface shared by the ECP, installer and console clients.

    Example usage::

        async with EcpClient(config) as ecp:
            if await ecp.check_health():
                await ecp.send_key("Home")
    """

    service: str = ""

    def __init__(self, config: SimulatorConfig) -> None:
        self._config = config

    @property
    def config(self) -> SimulatorConfig:
        return self._config

    @abstractmethod
    async def check_health(self) -> bool:
        """Probe the service.

        Never raises: any failure is reported as False.
        """
        ...

    @abstractmethod
    async def aclose(self) -> None:
        """Release the client's connection resources.

        Should be safe to call multiple times.
        """
        ...

    async def __aenter__(self) -> SimulatorClient:
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.aclose()


class SimulatorError(Exception):
    """Base class for failures talking to the simulator."""

    def __init__(self, message: str, service: str = "") -> None:
        super().__init__(message)
        self.service = service


class SimulatorTimeoutError(SimulatorError, TimeoutError):
    """Raised when a request or connection attempt exceeds its deadline."""


class ServiceUnreachableError(SimulatorError, ConnectionError):
    """Raised when the service refuses or cannot route the connection."""


class RequestError(SimulatorError):
    """Raised when an operation that requires success gets a non-2xx status."""

    def __init__(self, message: str, service: str = "", status_code: int = 0, body: str = "") -> None:
        super().__init__(message, service=service)
        self.status_code = status_code
        self.body = body


class ProtocolError(SimulatorError):
    """Raised when the server's Digest challenge is missing or malformed."""


class RetrievalError(SimulatorError):
    """Raised when a screenshot is unavailable under every known extension."""

    def __init__(self, message: str, service: str = "", status_code: int = 0) -> None:
        super().__init__(message, service=service)
        self.status_code = status_code


class ConsoleConnectionError(SimulatorError, ConnectionError):
    """Raised when writing to the debug console without a live connection."""


@contextmanager
def translate_http_errors(service: str, description: str) -> Iterator[None]:
    """Re-raise httpx transport failures as :class:`SimulatorError` subclasses.

    Also covers the overall deadline set with ``asyncio.wait_for``, which
    httpx's per-phase timeouts do not bound.
    """
    try:
        yield
    except (httpx.TimeoutException, asyncio.TimeoutError) as e:
        raise SimulatorTimeoutError(f"{description} timed out", service=service) from e
    except httpx.ConnectError as e:
        raise ServiceUnreachableError(
            f"{description} failed: {service} service unreachable ({e})", service=service
        ) from e
    except httpx.HTTPError as e:
        raise SimulatorError(f"{description} failed: {e}", service=service) from e

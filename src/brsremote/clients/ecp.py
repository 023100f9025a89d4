"""External Control Protocol (ECP) client.

Stateless request/response calls against the simulator's remote-control
and query endpoints: key events, app launch, device and app queries.
"""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import quote

import httpx

from brsremote.clients.base import RequestError, SimulatorClient, translate_http_errors
from brsremote.config.settings import SimulatorConfig
from brsremote.domain.models import KeyAction

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class EcpClient(SimulatorClient):
    """Sends remote-control key events and queries over ECP."""

    service = "ecp"

    def __init__(
        self,
        config: SimulatorConfig,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config)
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.ecp_base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, path: str, params: dict[str, str] | None = None
    ) -> httpx.Response:
        with translate_http_errors(self.service, f"{method} {path}"):
            resp = await asyncio.wait_for(
                self._get_client().request(method, path, params=params), self._timeout
            )
        logger.debug("%s %s -> %d", method, path, resp.status_code)
        return resp

    def _require_success(self, resp: httpx.Response, operation: str) -> None:
        if not resp.is_success:
            raise RequestError(
                f"{operation} failed with status {resp.status_code}",
                service=self.service,
                status_code=resp.status_code,
                body=resp.text,
            )

    async def send_key(self, key: str, action: KeyAction | str = KeyAction.PRESS) -> None:
        """Send one remote-control key event.

        Args:
            key: Key name (``Home``, ``Select``...) or a ``Lit_`` literal.
            action: ``press``, ``down`` or ``up``.

        Raises:
            ValueError: If the action is not a known key action.
            RequestError: If the simulator answers with a non-2xx status.
            SimulatorTimeoutError: If the request exceeds the timeout.
        """
        action = KeyAction(action)
        path = f"/{action.endpoint}/{quote(key, safe='')}"
        resp = await self._request("POST", path)
        self._require_success(resp, "Keypress")
        logger.debug("Sent key %s: %s", action.value, key)

    async def query_device_info(self) -> str:
        """Return the raw device-info XML."""
        return (await self._request("GET", "/query/device-info")).text

    async def query_active_app(self) -> str:
        """Return the raw active-app XML."""
        return (await self._request("GET", "/query/active-app")).text

    async def query_apps(self) -> str:
        """Return the raw installed-apps XML."""
        return (await self._request("GET", "/query/apps")).text

    async def launch_app(self, app_id: str, params: dict[str, str] | None = None) -> None:
        """Launch an installed app, passing ``params`` as query arguments."""
        path = f"/launch/{quote(app_id, safe='')}"
        resp = await self._request("POST", path, params=params or None)
        self._require_success(resp, "Launch")
        logger.info("Launched app %s", app_id)

    async def check_health(self) -> bool:
        try:
            await self._request("GET", "/")
            return True
        except Exception as e:
            logger.debug("ECP health check failed: %s", e)
            return False

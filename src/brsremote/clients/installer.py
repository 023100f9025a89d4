"""Web installer client.

Talks to the simulator's Digest-protected developer web server to
side-load channel packages and to trigger and download screenshots.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx

from brsremote.clients.base import (
    ProtocolError,
    RetrievalError,
    SimulatorClient,
    translate_http_errors,
)
from brsremote.clients.digest import DigestAuthenticator, parse_challenge
from brsremote.config.settings import SimulatorConfig

logger = logging.getLogger(__name__)

DEVELOPER_USERNAME = "rokudev"

PROBE_TIMEOUT = 10.0
UPLOAD_TIMEOUT = 30.0
FETCH_TIMEOUT = 10.0
HEALTH_TIMEOUT = 5.0

INSPECT_PATH = "/plugin_inspect"
INSTALL_PATH = "/plugin_install"
# Tried in order; the simulator saves whichever format it supports
SCREENSHOT_PATHS = (
    ("/pkgs/dev.png", "image/png"),
    ("/pkgs/dev.jpg", "image/jpeg"),
)

MAX_ERROR_BODY = 500


class InstallerClient(SimulatorClient):
    """Installs packages and captures screenshots through the web installer.

    Args:
        config: Shared simulator configuration.
        transport: Optional httpx transport, used by tests.
        random_bytes: Client-nonce entropy source for Digest auth.
        sleep: Coroutine used for the screenshot settle delay.
    """

    service = "installer"

    def __init__(
        self,
        config: SimulatorConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        random_bytes: Callable[[int], bytes] = os.urandom,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(config)
        self._transport = transport
        self._sleep = sleep
        self._auth = DigestAuthenticator(
            DEVELOPER_USERNAME,
            config.web_password.get_secret_value(),
            random_bytes=random_bytes,
        )
        self._client: httpx.AsyncClient | None = None
        self._screenshot_mime_type = "image/png"

    @property
    def nonce_count(self) -> int:
        """Number of authenticated attempts made by this client."""
        return self._auth.nonce_count

    @property
    def screenshot_mime_type(self) -> str:
        """MIME type of the most recently retrieved screenshot."""
        return self._screenshot_mime_type

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.web_base_url,
                timeout=PROBE_TIMEOUT,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _digest_request(
        self,
        method: str,
        path: str,
        data: dict[str, str] | None = None,
        files: dict | None = None,
    ) -> httpx.Response:
        """Issue a request, answering a Digest challenge if one comes back.

        The first attempt is an unauthenticated probe without a body. A
        non-401 answer is returned as is; otherwise the request is sent
        again with the Authorization header and the body.

        Raises:
            ProtocolError: If the 401 carries no WWW-Authenticate header.
        """
        client = self._get_client()
        with translate_http_errors(self.service, f"{method} {path}"):
            probe = await asyncio.wait_for(
                client.request(method, path, timeout=PROBE_TIMEOUT), PROBE_TIMEOUT
            )
        if probe.status_code != 401:
            return probe

        header = probe.headers.get("www-authenticate")
        if not header:
            raise ProtocolError("No WWW-Authenticate header in 401 response", service=self.service)

        challenge = parse_challenge(header)
        authorization = self._auth.authorization_header(challenge, method, path)

        with translate_http_errors(self.service, f"{method} {path}"):
            resp = await asyncio.wait_for(
                client.request(
                    method,
                    path,
                    data=data,
                    files=files,
                    headers={"Authorization": authorization},
                    timeout=UPLOAD_TIMEOUT,
                ),
                UPLOAD_TIMEOUT,
            )
        logger.debug("Authenticated %s %s -> %d", method, path, resp.status_code)
        return resp

    async def capture_screenshot(self) -> bytes:
        """Ask the simulator to save a screenshot and download it.

        Returns:
            The raw image bytes (PNG, or JPEG when no PNG was saved).

        Raises:
            RetrievalError: If neither image path can be fetched.
        """
        # A file part with no filename is a plain form field; it forces multipart
        resp = await self._digest_request(
            "POST", INSPECT_PATH, files={"mysubmit": (None, b"Screenshot")}
        )
        if not resp.is_success:
            logger.warning("Screenshot request answered with status %d", resp.status_code)

        await self._sleep(self._config.screenshot_delay_ms / 1000)

        client = self._get_client()
        status = 0
        for path, mime_type in SCREENSHOT_PATHS:
            with translate_http_errors(self.service, f"GET {path}"):
                image = await asyncio.wait_for(
                    client.get(path, timeout=FETCH_TIMEOUT), FETCH_TIMEOUT
                )
            if image.is_success:
                self._screenshot_mime_type = mime_type
                logger.debug("Retrieved screenshot %s (%d bytes)", path, len(image.content))
                return image.content
            status = image.status_code
        raise RetrievalError(
            f"Screenshot retrieval failed with status {status}",
            service=self.service,
            status_code=status,
        )

    async def install_package(self, file_path: str | Path) -> str:
        """Side-load a channel package (.zip or .bpk).

        Returns:
            A status line: ``Channel installed successfully (<status>)`` on
            2xx, otherwise the status and the start of the response body.

        Raises:
            FileNotFoundError: If the package file does not exist.
        """
        path = Path(file_path)
        loop = asyncio.get_running_loop()
        content = await loop.run_in_executor(None, path.read_bytes)
        logger.info("Installing %s (%d bytes)", path.name, len(content))

        resp = await self._digest_request(
            "POST",
            INSTALL_PATH,
            data={"mysubmit": "Install"},
            files={"archive": (path.name, content, "application/octet-stream")},
        )
        if resp.is_success:
            return f"Channel installed successfully ({resp.status_code})"
        logger.warning("Install of %s answered with status %d", path.name, resp.status_code)
        return f"Install responded with status {resp.status_code}: {resp.text[:MAX_ERROR_BODY]}"

    async def check_health(self) -> bool:
        """Report whether the web server answers.

        A 401 counts as up: the auth layer is alive even without
        credentials.
        """
        try:
            with translate_http_errors(self.service, "GET /"):
                resp = await asyncio.wait_for(
                    self._get_client().get("/", timeout=HEALTH_TIMEOUT), HEALTH_TIMEOUT
                )
        except Exception as e:
            logger.debug("Installer health check failed: %s", e)
            return False
        return resp.status_code == 401 or resp.is_success

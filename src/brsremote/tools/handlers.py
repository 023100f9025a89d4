"""Tool handlers built on the simulator clients.

Each handler takes the session plus keyword arguments and returns the
content blocks to show the caller. Errors propagate to the dispatcher.
"""

from __future__ import annotations

import asyncio
import base64
import logging

from brsremote.domain.models import ContentBlock, ImageContent, KeyAction, TextContent
from brsremote.tools.formatting import format_active_app, format_app_list, format_device_info
from brsremote.tools.session import SimulatorSession

logger = logging.getLogger(__name__)

DEFAULT_TYPE_DELAY_MS = 100
DEFAULT_POST_DEPLOY_DELAY_MS = 2000


async def _sleep_ms(ms: int) -> None:
    if ms > 0:
        await asyncio.sleep(ms / 1000)


async def _screenshot_block(session: SimulatorSession) -> ImageContent:
    data = await session.installer.capture_screenshot()
    return ImageContent(
        data=base64.b64encode(data).decode("ascii"),
        mime_type=session.installer.screenshot_mime_type,
    )


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


async def keypress(
    session: SimulatorSession,
    key: str,
    action: str = "press",
    screenshot_after: bool = False,
    screenshot_delay_ms: int | None = None,
) -> list[ContentBlock]:
    """Send one remote-control key event."""
    key_action = KeyAction(action)
    await session.ecp.send_key(key, key_action)
    content: list[ContentBlock] = [TextContent(text=f"Key {key_action.value}: {key}")]

    if screenshot_after:
        delay = screenshot_delay_ms if screenshot_delay_ms is not None else session.config.screenshot_delay_ms
        await _sleep_ms(delay)
        content.append(await _screenshot_block(session))
    return content


async def keypress_sequence(
    session: SimulatorSession,
    keys: list[str],
    delay_between_ms: int | None = None,
    screenshot_after: bool = True,
    screenshot_delay_ms: int | None = None,
) -> list[ContentBlock]:
    """Press ``keys`` in order with a pause between each."""
    delay = delay_between_ms if delay_between_ms is not None else session.config.keypress_delay_ms
    for i, key in enumerate(keys):
        await session.ecp.send_key(key)
        if i < len(keys) - 1:
            await _sleep_ms(delay)

    content: list[ContentBlock] = [TextContent(text=f"Pressed {len(keys)} keys: {', '.join(keys)}")]
    if screenshot_after:
        screenshot_delay = (
            screenshot_delay_ms if screenshot_delay_ms is not None else session.config.screenshot_delay_ms
        )
        await _sleep_ms(screenshot_delay)
        content.append(await _screenshot_block(session))
    return content


async def type_text(
    session: SimulatorSession,
    text: str,
    delay_between_ms: int = DEFAULT_TYPE_DELAY_MS,
    submit: bool = False,
    screenshot_after: bool = False,
) -> list[ContentBlock]:
    """Type ``text`` one ``Lit_`` keypress per character."""
    for i, char in enumerate(text):
        await session.ecp.send_key(f"Lit_{char}")
        if i < len(text) - 1:
            await _sleep_ms(delay_between_ms)

    if submit:
        await _sleep_ms(delay_between_ms)
        await session.ecp.send_key("Enter")

    suffix = " and pressed Enter" if submit else ""
    content: list[ContentBlock] = [TextContent(text=f'Typed "{text}"{suffix}')]
    if screenshot_after:
        await _sleep_ms(session.config.screenshot_delay_ms)
        content.append(await _screenshot_block(session))
    return content


# ---------------------------------------------------------------------------
# Visual
# ---------------------------------------------------------------------------


async def screenshot(session: SimulatorSession, delay_ms: int = 0) -> list[ContentBlock]:
    await _sleep_ms(delay_ms)
    return [await _screenshot_block(session)]


# ---------------------------------------------------------------------------
# Deployment
# ---------------------------------------------------------------------------


async def check_simulator(session: SimulatorSession) -> list[ContentBlock]:
    """Report which of the simulator's three services answer."""
    config = session.config
    checks = [
        (f"ECP (port {config.ecp_port})", session.ecp, "--ecp"),
        (f"Web Installer (port {config.effective_web_port})", session.installer, "--web"),
        (f"Debug Console (port {config.console_port})", session.console, "--console"),
    ]
    lines = []
    for label, client, flag in checks:
        up = await client.check_health()
        status = "UP" if up else f"DOWN - Make sure brs-desktop is running with the {flag} flag"
        lines.append(f"{label}: {status}")
    return [TextContent(text="\n".join(lines))]


async def install_channel(
    session: SimulatorSession,
    package_path: str,
    screenshot_after: bool = True,
    screenshot_delay_ms: int = DEFAULT_POST_DEPLOY_DELAY_MS,
) -> list[ContentBlock]:
    """Side-load a package, then optionally screenshot the result."""
    result = await session.installer.install_package(package_path)
    content: list[ContentBlock] = [TextContent(text=result)]
    if screenshot_after:
        await _sleep_ms(screenshot_delay_ms)
        content.append(await _screenshot_block(session))
    return content


async def launch_app(
    session: SimulatorSession,
    app_id: str,
    params: dict[str, str] | None = None,
    screenshot_after: bool = True,
    screenshot_delay_ms: int = DEFAULT_POST_DEPLOY_DELAY_MS,
) -> list[ContentBlock]:
    await session.ecp.launch_app(app_id, params)
    content: list[ContentBlock] = [TextContent(text=f"Launched app {app_id}")]
    if screenshot_after:
        await _sleep_ms(screenshot_delay_ms)
        content.append(await _screenshot_block(session))
    return content


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


async def device_info(session: SimulatorSession) -> list[ContentBlock]:
    return [TextContent(text=format_device_info(await session.ecp.query_device_info()))]


async def active_app(session: SimulatorSession) -> list[ContentBlock]:
    return [TextContent(text=format_active_app(await session.ecp.query_active_app()))]


async def app_list(session: SimulatorSession) -> list[ContentBlock]:
    return [TextContent(text=format_app_list(await session.ecp.query_apps()))]


# ---------------------------------------------------------------------------
# Debug console
# ---------------------------------------------------------------------------


async def console_output(
    session: SimulatorSession, lines: int = 50, wait_ms: int = 500
) -> list[ContentBlock]:
    """Return recent console lines after collecting output for ``wait_ms``."""
    await session.console.ensure_connected()
    await _sleep_ms(wait_ms)
    recent = session.console.get_recent_lines(lines)
    return [TextContent(text="\n".join(recent) if recent else "(no console output)")]


async def send_debug_command(
    session: SimulatorSession, command: str, wait_ms: int = 1000
) -> list[ContentBlock]:
    response = await session.console.send_command(command, wait_ms)
    return [TextContent(text=response or "(no response)")]

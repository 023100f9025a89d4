"""Routes named tool calls to their handlers and formats failures."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from brsremote.clients.base import ServiceUnreachableError, SimulatorError
from brsremote.domain.models import ContentBlock, TextContent, ToolResult
from brsremote.tools import handlers
from brsremote.tools.session import SimulatorSession

logger = logging.getLogger(__name__)

ToolHandler = Callable[..., Awaitable[list[ContentBlock]]]

TOOL_HANDLERS: dict[str, ToolHandler] = {
    "keypress": handlers.keypress,
    "keypress_sequence": handlers.keypress_sequence,
    "type_text": handlers.type_text,
    "screenshot": handlers.screenshot,
    "check_simulator": handlers.check_simulator,
    "install_channel": handlers.install_channel,
    "launch_app": handlers.launch_app,
    "device_info": handlers.device_info,
    "active_app": handlers.active_app,
    "app_list": handlers.app_list,
    "console_output": handlers.console_output,
    "send_debug_command": handlers.send_debug_command,
}

# Simulator command-line flag that enables each service
SERVICE_HINTS = {
    "ecp": "Make sure brs-desktop is running with the --ecp flag.",
    "installer": "Make sure brs-desktop is running with the --web flag.",
    "console": "Make sure brs-desktop is running with the --console flag.",
}


class ToolDispatcher:
    """Calls tools by name against one :class:`SimulatorSession`.

    Failures never escape ``call``: they become error results carrying
    the message and, when the service could not be reached, a hint on
    how to start it.
    """

    def __init__(self, session: SimulatorSession) -> None:
        self._session = session

    @property
    def tool_names(self) -> list[str]:
        return list(TOOL_HANDLERS)

    async def call(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        handler = TOOL_HANDLERS.get(name)
        if handler is None:
            return ToolResult(content=[TextContent(text=f"Unknown tool: {name}")], is_error=True)

        logger.debug("Calling tool %s with %s", name, arguments)
        try:
            content = await handler(self._session, **(arguments or {}))
        except (SimulatorError, OSError, ValueError, TypeError) as e:
            logger.warning("Tool %s failed: %s", name, e)
            return ToolResult(content=[TextContent(text=format_error(e))], is_error=True)
        return ToolResult(content=content)


def format_error(error: Exception) -> str:
    """``Error: <message>``, plus a remediation hint for unreachable services."""
    message = f"Error: {error}"
    if isinstance(error, ServiceUnreachableError) and error.service in SERVICE_HINTS:
        message += f"\n\n{SERVICE_HINTS[error.service]}"
    return message

"""Tests for the ToolDispatcher and the tool handlers."""

from __future__ import annotations

import base64
from unittest.mock import AsyncMock, call

import pytest

from brsremote.clients.base import RequestError, ServiceUnreachableError, SimulatorTimeoutError
from brsremote.domain.models import ImageContent, KeyAction
from brsremote.tools.dispatcher import TOOL_HANDLERS, ToolDispatcher
from brsremote.tools.session import SimulatorSession


@pytest.fixture
def dispatcher(session: SimulatorSession) -> ToolDispatcher:
    return ToolDispatcher(session)


class TestRouting:
    def test_tool_names(self, dispatcher: ToolDispatcher) -> None:
        assert set(dispatcher.tool_names) == {
            "keypress", "keypress_sequence", "type_text", "screenshot",
            "check_simulator", "install_channel", "launch_app",
            "device_info", "active_app", "app_list",
            "console_output", "send_debug_command",
        }
        assert dispatcher.tool_names == list(TOOL_HANDLERS)

    @pytest.mark.asyncio
    async def test_unknown_tool(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("reboot")
        assert result.is_error
        assert result.text == "Unknown tool: reboot"

    @pytest.mark.asyncio
    async def test_bad_argument_name(self, dispatcher: ToolDispatcher, mock_ecp: AsyncMock) -> None:
        result = await dispatcher.call("keypress", {"key": "Home", "bogus": 1})
        assert result.is_error
        assert result.text.startswith("Error: ")
        assert "bogus" in result.text
        mock_ecp.send_key.assert_not_awaited()


class TestNavigationTools:
    @pytest.mark.asyncio
    async def test_keypress(self, dispatcher: ToolDispatcher, mock_ecp: AsyncMock) -> None:
        result = await dispatcher.call("keypress", {"key": "Home"})
        assert not result.is_error
        assert result.text == "Key press: Home"
        mock_ecp.send_key.assert_awaited_once_with("Home", KeyAction.PRESS)

    @pytest.mark.asyncio
    async def test_keypress_with_screenshot(
        self, dispatcher: ToolDispatcher, mock_installer: AsyncMock
    ) -> None:
        result = await dispatcher.call(
            "keypress", {"key": "Select", "action": "down", "screenshot_after": True}
        )
        assert result.text == "Key down: Select"
        (image,) = result.images
        assert image.mime_type == "image/png"
        assert base64.b64decode(image.data) == mock_installer.capture_screenshot.return_value
        mock_installer.capture_screenshot.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_keypress_bad_action(self, dispatcher: ToolDispatcher, mock_ecp: AsyncMock) -> None:
        result = await dispatcher.call("keypress", {"key": "Home", "action": "hold"})
        assert result.is_error
        mock_ecp.send_key.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_keypress_sequence(
        self, dispatcher: ToolDispatcher, mock_ecp: AsyncMock, mock_installer: AsyncMock
    ) -> None:
        result = await dispatcher.call("keypress_sequence", {"keys": ["Down", "Down", "Select"]})
        assert result.text == "Pressed 3 keys: Down, Down, Select"
        assert mock_ecp.send_key.await_args_list == [call("Down"), call("Down"), call("Select")]
        assert len(result.images) == 1

    @pytest.mark.asyncio
    async def test_type_text_and_submit(self, dispatcher: ToolDispatcher, mock_ecp: AsyncMock) -> None:
        result = await dispatcher.call(
            "type_text", {"text": "hi", "delay_between_ms": 0, "submit": True}
        )
        assert result.text == 'Typed "hi" and pressed Enter'
        assert mock_ecp.send_key.await_args_list == [call("Lit_h"), call("Lit_i"), call("Enter")]
        assert result.images == []


class TestDeploymentTools:
    @pytest.mark.asyncio
    async def test_check_simulator(
        self,
        dispatcher: ToolDispatcher,
        mock_ecp: AsyncMock,
        mock_installer: AsyncMock,
        mock_console: AsyncMock,
    ) -> None:
        mock_ecp.check_health.return_value = True
        mock_installer.check_health.return_value = False
        mock_console.check_health.return_value = True

        result = await dispatcher.call("check_simulator")

        assert result.text.splitlines() == [
            "ECP (port 8060): UP",
            "Web Installer (port 8888): DOWN - Make sure brs-desktop is running with the --web flag",
            "Debug Console (port 8085): UP",
        ]

    @pytest.mark.asyncio
    async def test_install_channel(self, dispatcher: ToolDispatcher, mock_installer: AsyncMock) -> None:
        mock_installer.install_package.return_value = "Channel installed successfully (200)"
        result = await dispatcher.call(
            "install_channel", {"package_path": "/tmp/app.zip", "screenshot_delay_ms": 0}
        )
        assert result.content[0].text == "Channel installed successfully (200)"
        assert isinstance(result.content[1], ImageContent)
        mock_installer.install_package.assert_awaited_once_with("/tmp/app.zip")

    @pytest.mark.asyncio
    async def test_install_missing_package(
        self, dispatcher: ToolDispatcher, mock_installer: AsyncMock
    ) -> None:
        mock_installer.install_package.side_effect = FileNotFoundError("No such file: /tmp/nope.zip")
        result = await dispatcher.call("install_channel", {"package_path": "/tmp/nope.zip"})
        assert result.is_error
        assert "No such file" in result.text

    @pytest.mark.asyncio
    async def test_launch_app(self, dispatcher: ToolDispatcher, mock_ecp: AsyncMock) -> None:
        result = await dispatcher.call(
            "launch_app", {"app_id": "dev", "params": {"contentId": "7"}, "screenshot_after": False}
        )
        assert result.text == "Launched app dev"
        mock_ecp.launch_app.assert_awaited_once_with("dev", {"contentId": "7"})


class TestQueryTools:
    @pytest.mark.asyncio
    async def test_app_list(self, dispatcher: ToolDispatcher, mock_ecp: AsyncMock) -> None:
        mock_ecp.query_apps.return_value = (
            '<apps><app id="dev" version="1.0.0">My Channel</app></apps>'
        )
        result = await dispatcher.call("app_list")
        assert result.text == "[dev] My Channel (v1.0.0)"

    @pytest.mark.asyncio
    async def test_device_info(self, dispatcher: ToolDispatcher, mock_ecp: AsyncMock) -> None:
        mock_ecp.query_device_info.return_value = (
            "<device-info><model-name>BrightScript Simulator</model-name></device-info>"
        )
        result = await dispatcher.call("device_info")
        assert result.text == "model-name: BrightScript Simulator"


class TestDebugTools:
    @pytest.mark.asyncio
    async def test_console_output(self, dispatcher: ToolDispatcher, mock_console: AsyncMock) -> None:
        mock_console.get_recent_lines.return_value = ["line 1", "line 2"]
        result = await dispatcher.call("console_output", {"lines": 2, "wait_ms": 0})
        assert result.text == "line 1\nline 2"
        mock_console.ensure_connected.assert_awaited_once()
        mock_console.get_recent_lines.assert_called_once_with(2)

    @pytest.mark.asyncio
    async def test_console_output_empty(self, dispatcher: ToolDispatcher) -> None:
        result = await dispatcher.call("console_output", {"wait_ms": 0})
        assert result.text == "(no console output)"

    @pytest.mark.asyncio
    async def test_send_debug_command(self, dispatcher: ToolDispatcher, mock_console: AsyncMock) -> None:
        mock_console.send_command.return_value = ""
        result = await dispatcher.call("send_debug_command", {"command": "bt", "wait_ms": 10})
        assert result.text == "(no response)"
        mock_console.send_command.assert_awaited_once_with("bt", 10)


class TestErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "service,flag", [("ecp", "--ecp"), ("installer", "--web"), ("console", "--console")]
    )
    async def test_unreachable_service_hint(
        self, dispatcher: ToolDispatcher, mock_ecp: AsyncMock, service: str, flag: str
    ) -> None:
        mock_ecp.send_key.side_effect = ServiceUnreachableError("connection refused", service=service)
        result = await dispatcher.call("keypress", {"key": "Home"})
        assert result.is_error
        assert result.text.startswith("Error: connection refused")
        assert f"running with the {flag} flag" in result.text

    @pytest.mark.asyncio
    async def test_service_error_has_no_hint(self, dispatcher: ToolDispatcher, mock_ecp: AsyncMock) -> None:
        mock_ecp.launch_app.side_effect = RequestError(
            "Launch failed with status 404", service="ecp", status_code=404
        )
        result = await dispatcher.call("launch_app", {"app_id": "nope"})
        assert result.is_error
        assert result.text == "Error: Launch failed with status 404"

    @pytest.mark.asyncio
    async def test_timeout(self, dispatcher: ToolDispatcher, mock_installer: AsyncMock) -> None:
        mock_installer.capture_screenshot.side_effect = SimulatorTimeoutError(
            "GET /pkgs/dev.png timed out", service="installer"
        )
        result = await dispatcher.call("screenshot")
        assert result.is_error
        assert "timed out" in result.text

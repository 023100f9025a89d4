"""Command-line interface for brsremote.

Runs one tool against the simulator and prints the result. Screenshots
returned by a tool are written to an image file.
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import logging
import sys
from pathlib import Path
from typing import Any

from brsremote.domain.models import ToolResult

logger = logging.getLogger(__name__)

DEFAULT_SCREENSHOT_PATH = Path("screenshot.png")
IMAGE_SUFFIXES = {"image/png": ".png", "image/jpeg": ".jpg"}


def _launch_param(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key, val


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="brsremote",
        description="Drive the brs-desktop Roku simulator",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/brsremote.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=DEFAULT_SCREENSHOT_PATH,
        help="Where to write screenshots (default: screenshot.png)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("check", help="Check which simulator services are up")

    keypress_parser = subparsers.add_parser("keypress", help="Send one remote-control key")
    keypress_parser.add_argument("key", help='Key name (e.g. "Select", "Home") or "Lit_<char>"')
    keypress_parser.add_argument(
        "--action", choices=["press", "down", "up"], default="press",
    )
    keypress_parser.add_argument("--screenshot", action="store_true", help="Capture a screenshot after")

    sequence_parser = subparsers.add_parser("sequence", help="Send several keys in order")
    sequence_parser.add_argument("keys", nargs="+")
    sequence_parser.add_argument("--delay-ms", type=int, default=None, help="Delay between keys")
    sequence_parser.add_argument("--no-screenshot", action="store_true")

    type_parser = subparsers.add_parser("type", help="Type text one character at a time")
    type_parser.add_argument("text")
    type_parser.add_argument("--delay-ms", type=int, default=100)
    type_parser.add_argument("--submit", action="store_true", help="Press Enter after typing")
    type_parser.add_argument("--screenshot", action="store_true")

    screenshot_parser = subparsers.add_parser("screenshot", help="Capture the simulator display")
    screenshot_parser.add_argument("--delay-ms", type=int, default=0)

    install_parser = subparsers.add_parser("install", help="Side-load a .zip or .bpk package")
    install_parser.add_argument("package", type=Path)
    install_parser.add_argument("--no-screenshot", action="store_true")
    install_parser.add_argument("--screenshot-delay-ms", type=int, default=2000)

    launch_parser = subparsers.add_parser("launch", help="Launch an installed app")
    launch_parser.add_argument("app_id")
    launch_parser.add_argument(
        "-p", "--param", type=_launch_param, action="append", default=[],
        help="Launch parameter as KEY=VALUE (repeatable)",
    )
    launch_parser.add_argument("--no-screenshot", action="store_true")
    launch_parser.add_argument("--screenshot-delay-ms", type=int, default=2000)

    subparsers.add_parser("device-info", help="Show device configuration")
    subparsers.add_parser("active-app", help="Show the running app")
    subparsers.add_parser("apps", help="List installed apps")

    console_parser = subparsers.add_parser("console", help="Show recent debug console output")
    console_parser.add_argument("--lines", type=int, default=50)
    console_parser.add_argument("--wait-ms", type=int, default=500)

    debug_parser = subparsers.add_parser("debug", help="Send a Micro Debugger command")
    debug_parser.add_argument("debug_command", metavar="command", help='e.g. "bt", "var", "cont"')
    debug_parser.add_argument("--wait-ms", type=int, default=1000)

    return parser.parse_args(argv)


def build_tool_call(args: argparse.Namespace) -> tuple[str, dict[str, Any]]:
    """Translate parsed arguments into a tool name and its arguments."""
    if args.command == "check":
        return "check_simulator", {}
    if args.command == "keypress":
        return "keypress", {"key": args.key, "action": args.action, "screenshot_after": args.screenshot}
    if args.command == "sequence":
        return "keypress_sequence", {
            "keys": args.keys,
            "delay_between_ms": args.delay_ms,
            "screenshot_after": not args.no_screenshot,
        }
    if args.command == "type":
        return "type_text", {
            "text": args.text,
            "delay_between_ms": args.delay_ms,
            "submit": args.submit,
            "screenshot_after": args.screenshot,
        }
    if args.command == "screenshot":
        return "screenshot", {"delay_ms": args.delay_ms}
    if args.command == "install":
        return "install_channel", {
            "package_path": str(args.package),
            "screenshot_after": not args.no_screenshot,
            "screenshot_delay_ms": args.screenshot_delay_ms,
        }
    if args.command == "launch":
        return "launch_app", {
            "app_id": args.app_id,
            "params": dict(args.param) or None,
            "screenshot_after": not args.no_screenshot,
            "screenshot_delay_ms": args.screenshot_delay_ms,
        }
    if args.command == "device-info":
        return "device_info", {}
    if args.command == "active-app":
        return "active_app", {}
    if args.command == "apps":
        return "app_list", {}
    if args.command == "console":
        return "console_output", {"lines": args.lines, "wait_ms": args.wait_ms}
    if args.command == "debug":
        return "send_debug_command", {"command": args.debug_command, "wait_ms": args.wait_ms}
    raise ValueError(f"Unknown command: {args.command}")


def write_images(result: ToolResult, output: Path) -> list[Path]:
    """Write the result's images next to ``output``, one file per image."""
    written = []
    for i, image in enumerate(result.images):
        suffix = IMAGE_SUFFIXES.get(image.mime_type, output.suffix or ".png")
        stem = output.stem if i == 0 else f"{output.stem}-{i}"
        path = output.with_name(stem + suffix)
        path.write_bytes(base64.b64decode(image.data))
        written.append(path)
    return written


async def _run_tool(settings, name: str, arguments: dict[str, Any]) -> ToolResult:
    from brsremote.tools import SimulatorSession, ToolDispatcher

    async with SimulatorSession(settings.simulator) as session:
        return await ToolDispatcher(session).call(name, arguments)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the brsremote CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from brsremote.config.settings import load_settings
    from brsremote.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    name, arguments = build_tool_call(args)
    logger.info("Running %s against %s", name, settings.simulator.host)
    result = asyncio.run(_run_tool(settings, name, arguments))

    if result.text:
        print(result.text)
    for path in write_images(result, args.output):
        print(f"Saved screenshot to {path}")

    if result.is_error:
        sys.exit(1)


if __name__ == "__main__":
    main()

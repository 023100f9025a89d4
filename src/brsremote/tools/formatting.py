"""Human-readable summaries of the simulator's ECP query XML."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

logger = logging.getLogger(__name__)


def _parse(xml: str) -> ET.Element | None:
    try:
        return ET.fromstring(xml)
    except ET.ParseError as e:
        logger.debug("Could not parse ECP response as XML: %s", e)
        return None


def format_device_info(xml: str) -> str:
    """One ``tag: value`` line per non-empty leaf element.

    Falls back to the raw response when nothing could be extracted.
    """
    root = _parse(xml)
    if root is None:
        return xml
    lines = [
        f"{element.tag}: {element.text.strip()}"
        for element in root.iter()
        if len(element) == 0 and element.text and element.text.strip()
    ]
    return "\n".join(lines) or xml


def format_active_app(xml: str) -> str:
    root = _parse(xml)
    if root is None:
        return xml
    app = root if root.tag == "app" else root.find(".//app")
    if app is None:
        return "No active app"
    name = (app.text or "").strip()
    return f"Active app: {name} (ID: {app.get('id', '?')})"


def format_app_list(xml: str) -> str:
    root = _parse(xml)
    if root is None:
        return xml
    lines = [
        f"[{app.get('id', '?')}] {(app.text or '').strip()} (v{app.get('version', '?')})"
        for app in root.iter("app")
    ]
    return "\n".join(lines) if lines else "No apps found"

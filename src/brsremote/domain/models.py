"""Core domain models for brsremote.

These models represent the values exchanged with the simulator: key
actions, the console connection state, Digest challenges parsed from the
installer, and the content blocks produced by the tool layer.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class KeyAction(str, enum.Enum):
    """Remote-control key event type."""

    PRESS = "press"
    DOWN = "down"
    UP = "up"

    @property
    def endpoint(self) -> str:
        """ECP path segment for this action (``keypress``, ``keydown``...)."""
        return "keypress" if self is KeyAction.PRESS else f"key{self.value}"


class ConnectionState(str, enum.Enum):
    """Lifecycle state of the debug console connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


# ---------------------------------------------------------------------------
# Installer Models
# ---------------------------------------------------------------------------


class DigestChallenge(BaseModel):
    """Attributes of one ``WWW-Authenticate: Digest`` challenge.

    Recomputed for every authenticated request; never stored.
    """

    model_config = ConfigDict(frozen=True)

    realm: str = ""
    nonce: str = ""
    qop: str = "auth"
    opaque: str = ""


# ---------------------------------------------------------------------------
# Tool Result Models
# ---------------------------------------------------------------------------


class TextContent(BaseModel):
    """Human-readable text returned by a tool."""

    type: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    """A base64-encoded image returned by a tool."""

    type: Literal["image"] = "image"
    data: str = Field(description="Base64-encoded image bytes")
    mime_type: str = Field(default="image/png")


ContentBlock = Annotated[
    Union[TextContent, ImageContent],
    Field(discriminator="type"),
]


class ToolResult(BaseModel):
    """Outcome of one dispatched tool call."""

    content: list[ContentBlock] = Field(default_factory=list)
    is_error: bool = False

    @property
    def text(self) -> str:
        """All text blocks joined by newlines."""
        return "\n".join(block.text for block in self.content if isinstance(block, TextContent))

    @property
    def images(self) -> list[ImageContent]:
        return [block for block in self.content if isinstance(block, ImageContent)]

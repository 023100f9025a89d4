"""Domain models for brsremote.

This package contains the core data structures and enumerations used
throughout the system. All models use Pydantic v2 for validation and
serialization.
"""

from brsremote.domain.models import (
    ConnectionState,
    ContentBlock,
    DigestChallenge,
    ImageContent,
    KeyAction,
    TextContent,
    ToolResult,
)

__all__ = [
    "ConnectionState",
    "ContentBlock",
    "DigestChallenge",
    "ImageContent",
    "KeyAction",
    "TextContent",
    "ToolResult",
]

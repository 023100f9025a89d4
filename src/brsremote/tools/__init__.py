"""Tool layer for brsremote.

Maps named operations (keypress, screenshot, install_channel, ...) onto
the protocol clients and turns their results into content blocks.

Public API:
    SimulatorSession -- holds one instance of each client
    ToolDispatcher -- calls tools by name and formats failures
"""

from brsremote.tools.dispatcher import TOOL_HANDLERS, ToolDispatcher
from brsremote.tools.session import SimulatorSession

__all__ = ["TOOL_HANDLERS", "SimulatorSession", "ToolDispatcher"]

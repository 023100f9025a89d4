"""brsremote -- remote control for the brs-desktop Roku simulator.

This package drives a running simulator over its network services:
remote-control key events and queries (ECP), channel installation and
screenshots through the Digest-protected web installer, and the
BrightScript debug console.
"""

__version__ = "0.1.0"

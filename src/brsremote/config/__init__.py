"""Configuration management for brsremote.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides for the simulator host, ports
and web password.
"""

from brsremote.config.settings import LoggingConfig, Settings, SimulatorConfig, load_settings

__all__ = ["LoggingConfig", "Settings", "SimulatorConfig", "load_settings"]

"""Configuration management for brsremote.

Loads settings from a YAML configuration file with environment variable
overrides. The flat ``BRS_*`` variables understood by the simulator tooling
(``BRS_HOST``, ``BRS_ECP_PORT`` ...) are mapped onto the ``simulator``
section. Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/brsremote.yaml")

# Flat environment variables and the simulator fields they populate
SIMULATOR_ENV_VARS = {
    "BRS_HOST": "host",
    "BRS_ECP_PORT": "ecp_port",
    "BRS_WEB_PORT": "web_port",
    "BRS_CONSOLE_PORT": "console_port",
    "BRS_WEB_PASSWORD": "web_password",
    "BRS_SCREENSHOT_DELAY_MS": "screenshot_delay_ms",
    "BRS_KEYPRESS_DELAY_MS": "keypress_delay_ms",
}


class SimulatorConfig(BaseModel):
    """Connection details shared by the ECP, installer and console clients.

    Frozen: one instance is handed to every client by reference.
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(default="127.0.0.1")
    ecp_port: int = Field(default=8060, ge=1, le=65535)
    web_port: int = Field(default=8888, ge=0, le=65535, description="0 selects default_web_port")
    console_port: int = Field(default=8085, ge=1, le=65535)
    default_web_port: int = Field(default=80, ge=1, le=65535)
    web_password: SecretStr = Field(default=SecretStr("rokudev"))
    screenshot_delay_ms: int = Field(default=500, ge=0)
    keypress_delay_ms: int = Field(default=300, ge=0)

    @property
    def effective_web_port(self) -> int:
        return self.web_port or self.default_web_port

    @property
    def ecp_base_url(self) -> str:
        return f"http://{self.host}:{self.ecp_port}"

    @property
    def web_base_url(self) -> str:
        return f"http://{self.host}:{self.effective_web_port}"


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for brsremote.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "BRS_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs and rank below the environment
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults. Nested
    variables such as ``BRS_SIMULATOR__HOST`` win over the flat ``BRS_HOST``.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Map the flat BRS_* variables onto the simulator section."""
    simulator = yaml_data.get("simulator") or {}
    for env_name, field_name in SIMULATOR_ENV_VARS.items():
        value = os.environ.get(env_name, "")
        if value:
            simulator[field_name] = value
    if simulator:
        yaml_data["simulator"] = simulator

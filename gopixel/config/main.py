import configparser
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gopixel.constants import (
    API_ENDPOINT,
    CONFIG_FILE_USER,
    DEFAULT_FRAME_INTERVAL,
    MAX_BUFFER_SIZE,
    SEND_TASK_RATE,
    UNLOAD_GRACE_PERIOD,
)
from gopixel.errors import ConfigurationError

from .log_codes import (
    CONFIG_ENV_OVERRIDE,
    CONFIG_FILE_MISSING_SECTION,
    CONFIG_FILE_NOT_FOUND,
    CONFIG_FILE_UNKNOWN_KEY,
    CONFIG_INVALID,
    CONFIG_RESOLVED,
)

logger = logging.getLogger(__name__)

CONFIG_SECTION = "pixel"

# Field name -> environment variable
ENV_VARS = {
    "licence": "GOPIXEL_LICENCE",
    "endpoint": "GOPIXEL_API_ENDPOINT",
    "buffer_capacity": "GOPIXEL_BUFFER_CAPACITY",
    "send_rate": "GOPIXEL_SEND_RATE",
    "frame_interval": "GOPIXEL_FRAME_INTERVAL",
    "request_timeout": "GOPIXEL_REQUEST_TIMEOUT",
    "unload_grace_period": "GOPIXEL_UNLOAD_GRACE_PERIOD",
}


class PixelConfig(BaseModel):
    """
    Runtime configuration of a tracker.

    request_timeout defaults to None: a hung request keeps the transport
    busy until it settles.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    licence: str = Field(min_length=1)
    endpoint: str = API_ENDPOINT
    buffer_capacity: int = Field(default=MAX_BUFFER_SIZE, gt=0)
    send_rate: float = Field(default=SEND_TASK_RATE, gt=0)
    frame_interval: float = Field(default=DEFAULT_FRAME_INTERVAL, gt=0)
    request_timeout: Optional[float] = Field(default=None, gt=0)
    unload_grace_period: float = Field(default=UNLOAD_GRACE_PERIOD, ge=0)


def _read_config_file(path: Path) -> Dict[str, str]:
    config = configparser.ConfigParser()

    if not config.read(path):
        logger.debug(CONFIG_FILE_NOT_FOUND, extra={"config_path": str(path)})
        return {}

    if not config.has_section(CONFIG_SECTION):
        logger.debug(
            CONFIG_FILE_MISSING_SECTION,
            extra={"config_path": str(path), "section": CONFIG_SECTION},
        )
        return {}

    values = {}
    for key, value in config.items(CONFIG_SECTION):
        if key not in PixelConfig.model_fields:
            logger.warning(
                CONFIG_FILE_UNKNOWN_KEY, extra={"config_path": str(path), "key": key}
            )
            continue
        values[key] = value

    return values


def _read_environment() -> Dict[str, str]:
    values = {}

    for field_name, env_var in ENV_VARS.items():
        value = os.getenv(env_var)
        if value is None or not value.strip():
            continue
        logger.debug(CONFIG_ENV_OVERRIDE, extra={"field": field_name, "env": env_var})
        values[field_name] = value.strip()

    return values


def load_config(config_path: Optional[Path] = None, **overrides: Any) -> PixelConfig:
    """
    Resolve the tracker configuration.

    Sources are applied in order, later ones winning:
    the [pixel] section of the config file, GOPIXEL_* environment
    variables, then explicit keyword overrides (None values are ignored).

    Args:
        config_path (Optional[Path]): Config file to read. Defaults to ~/.gopixel/config.ini.
        **overrides: Explicit field values.

    Returns:
        PixelConfig: The validated configuration.

    Raises:
        ConfigurationError: If no licence is found or a value is invalid.
    """
    path = config_path or CONFIG_FILE_USER

    values: Dict[str, Any] = {}
    values.update(_read_config_file(path))
    values.update(_read_environment())
    values.update({k: v for k, v in overrides.items() if v is not None})

    if not values.get("licence"):
        raise ConfigurationError("no licence key found")

    try:
        config = PixelConfig(**values)
    except ValidationError as e:
        logger.error(CONFIG_INVALID, extra={"errors": e.errors()})
        raise ConfigurationError(str(e)) from e

    logger.info(
        CONFIG_RESOLVED,
        extra={"config_path": str(path), "endpoint": config.endpoint},
    )
    return config

"""Configuration values sourced from environment variables."""

import os
from typing import Final

from src.constants import DEFAULT_REGIONS_CONFIG_FILE
from src.enums import Region

_default_region = os.getenv(key="DEFAULT_REGION", default=Region.AWS_US_EAST_1.value)


DEFAULT_REGION: Final[str] = Region(_default_region)
REGIONS_CONFIG_PATH: Final[str] = os.getenv(
    key="REGIONS_CONFIG_PATH", default=DEFAULT_REGIONS_CONFIG_FILE
)
LOG_LEVEL: Final[str] = os.getenv(key="LOG_LEVEL", default="INFO")
LOGGER_NAME: Final[str] = os.getenv(key="LOGGER_NAME", default="materialize-engine")
LOG_COLOUR_ENABLED: Final[bool] = bool(
    os.getenv(key="LOG_COLOUR_ENABLED", default="True").upper() == "TRUE"
)

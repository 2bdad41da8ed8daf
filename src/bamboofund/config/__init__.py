"""Configuration schema, defaults and presentation choices."""

from .loader import config_from_dict, config_from_flat_dict, load_config
from .schema import (
    FLAT_FIELD_PATHS,
    MAX_DURATION_YEARS,
    Config,
    InvalidConfiguration,
    validate_config,
)

__all__ = [
    "Config",
    "InvalidConfiguration",
    "FLAT_FIELD_PATHS",
    "MAX_DURATION_YEARS",
    "validate_config",
    "load_config",
    "config_from_dict",
    "config_from_flat_dict",
]

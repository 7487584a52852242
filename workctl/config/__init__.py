from .loader import (
    DEFAULT_CONFIG_TEMPLATE,
    MISSING_KEY_MESSAGE,
    ConfigurationError,
    load_config,
    resolve_api_key,
)
from .models import LLMSettings, WorkctlConfig

__all__ = [
    "ConfigurationError",
    "DEFAULT_CONFIG_TEMPLATE",
    "LLMSettings",
    "MISSING_KEY_MESSAGE",
    "WorkctlConfig",
    "load_config",
    "resolve_api_key",
]

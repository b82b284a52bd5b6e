from .loader import DEFAULT_CONFIG_TEMPLATE, load_config
from .models import LiveFileConfig

__all__ = [
    "DEFAULT_CONFIG_TEMPLATE",
    "LiveFileConfig",
    "load_config",
]

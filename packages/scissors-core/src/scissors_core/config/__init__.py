from .loader import load_config
from .models import (
    ParserConfig,
    ScissorsConfig,
    WatchConfig,
)

__all__ = [
    "ParserConfig",
    "ScissorsConfig",
    "WatchConfig",
    "load_config",
]

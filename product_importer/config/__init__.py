from .loader import ConfigError, HistoryConfig, ImportConfig, ProcessingConfig, load_config

__all__ = [
    "ConfigError",
    "HistoryConfig",
    "ImportConfig",
    "ProcessingConfig",
    "load_config",
]

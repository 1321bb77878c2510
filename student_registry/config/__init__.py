from .loader import ConfigError, DatabaseConfig, ImportConfig, default_config, load_config

__all__ = ["ConfigError", "DatabaseConfig", "ImportConfig", "default_config", "load_config"]

"""
Configuration System - defaults, YAML file and environment overrides.

Provides:
- AppConfig: Explicit configuration value passed to every component
- ConfigLoader: Load and save configuration with precedence
- load_config: Convenience loader
"""

from .loader import CONFIG_FILE, AppConfig, ConfigLoader, load_config

__all__ = ["CONFIG_FILE", "AppConfig", "ConfigLoader", "load_config"]

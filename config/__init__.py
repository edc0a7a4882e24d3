"""Configuration module for ProductScout.

Centralized, environment-driven settings built on pydantic-settings.
"""

from config.settings import GlobalConfig, get_config

__all__ = ["GlobalConfig", "get_config"]

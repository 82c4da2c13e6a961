"""
Configuration management for contextCore.
"""

from .loader import (
    ConfigManager,
    GlobalConfig,
    PathsConfig,
    CompactionConfig,
    TierConfig,
    Tier,
    get_config_manager,
    load_global_config,
)

__all__ = [
    "ConfigManager",
    "GlobalConfig",
    "PathsConfig",
    "CompactionConfig",
    "TierConfig",
    "Tier",
    "get_config_manager",
    "load_global_config",
]

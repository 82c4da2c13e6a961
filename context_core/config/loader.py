"""
CONFIG_LOADER
=============

Configuration management for contextCore.

Handles:
- Compaction settings (threshold, lookback, reserve sizes, summary model)
- Tier settings (recent-tail size per caller tier)
- Storage paths (history, summaries, logs, api keys)

Usage:
    from context_core.config import get_config_manager

    config = get_config_manager().global_config
    print(config.compaction.token_threshold)
    print(config.tiers.limit_for("FAST"))

Environment overrides (applied after the config file is read):
    CONTEXT_TOKEN_THRESHOLD   compaction.token_threshold
    WORKER_FLASH              compaction.summary_model
"""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)


# ============================================================================
# PATH RESOLUTION
# ============================================================================

def _find_project_root() -> Path:
    """
    Find the project root directory.

    Looks for data/contextCore/CONFIG/config.json as the definitive marker,
    since this only exists at the true project root.
    """
    current = Path(__file__).resolve().parent

    for _ in range(5):
        config_file = current / "data" / "contextCore" / "CONFIG" / "config.json"
        if config_file.exists():
            return current
        current = current.parent

    # loader.py is at context_core/config/loader.py
    # so project root is 3 levels up: config -> context_core -> project_root
    return Path(__file__).resolve().parent.parent.parent


def _get_data_dir() -> Path:
    """Get the contextCore data directory path."""
    return _find_project_root() / "data" / "contextCore"


# ============================================================================
# TIERS
# ============================================================================

class Tier(str, Enum):
    """Caller-selected context size."""
    FAST = "FAST"
    LARGE = "LARGE"

    @classmethod
    def parse(cls, value: Union[str, "Tier"]) -> "Tier":
        """Parse a tier name case-insensitively. Raises ValueError if unknown."""
        if isinstance(value, Tier):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown tier '{value}' (expected one of: {valid})")


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass
class PathsConfig:
    """Storage locations.

    - History: data/contextCore/HISTORY/chat_{chat_id}.json
    - Summaries: data/contextCore/SUMMARIES/summaries.json
    - Logs: data/contextCore/LOGS/contextcore.log
    """
    history_dir: str = "./data/contextCore/HISTORY"
    summaries_file: str = "./data/contextCore/SUMMARIES/summaries.json"
    logs_dir: str = "./data/contextCore/LOGS"
    apikeys_dir: str = "./apikeys"

    def to_dict(self) -> Dict:
        return {
            "history_dir": self.history_dir,
            "summaries_file": self.summaries_file,
            "logs_dir": self.logs_dir,
            "apikeys_dir": self.apikeys_dir,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PathsConfig":
        return cls(
            history_dir=data.get("history_dir", "./data/contextCore/HISTORY"),
            summaries_file=data.get("summaries_file", "./data/contextCore/SUMMARIES/summaries.json"),
            logs_dir=data.get("logs_dir", "./data/contextCore/LOGS"),
            apikeys_dir=data.get("apikeys_dir", "./apikeys"),
        )

    def resolve(self, base_path: Path) -> "PathsConfig":
        """Resolve relative paths against base path."""
        return PathsConfig(
            history_dir=str((base_path / self.history_dir).resolve()),
            summaries_file=str((base_path / self.summaries_file).resolve()),
            logs_dir=str((base_path / self.logs_dir).resolve()),
            apikeys_dir=str((base_path / self.apikeys_dir).resolve()),
        )


@dataclass
class CompactionConfig:
    """When and how a chat's older history is summarized."""
    token_threshold: int = 50000
    deep_lookback: int = 100   # tier-independent history fetched for the size check
    min_history: int = 20      # below this many messages, never compact
    keep_recent: int = 10      # newest messages excluded from a compaction pass
    min_reserve: int = 5       # smallest slice worth a summarization call
    summary_model: str = "gemini-2.0-flash"
    summary_timeout_seconds: float = 30.0

    def to_dict(self) -> Dict:
        return {
            "token_threshold": self.token_threshold,
            "deep_lookback": self.deep_lookback,
            "min_history": self.min_history,
            "keep_recent": self.keep_recent,
            "min_reserve": self.min_reserve,
            "summary_model": self.summary_model,
            "summary_timeout_seconds": self.summary_timeout_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "CompactionConfig":
        return cls(
            token_threshold=data.get("token_threshold", 50000),
            deep_lookback=data.get("deep_lookback", 100),
            min_history=data.get("min_history", 20),
            keep_recent=data.get("keep_recent", 10),
            min_reserve=data.get("min_reserve", 5),
            summary_model=data.get("summary_model", "gemini-2.0-flash"),
            summary_timeout_seconds=data.get("summary_timeout_seconds", 30.0),
        )

    def apply_env(self, environ: Optional[Dict[str, str]] = None) -> "CompactionConfig":
        """Apply CONTEXT_TOKEN_THRESHOLD / WORKER_FLASH overrides in place."""
        env = os.environ if environ is None else environ

        threshold = env.get("CONTEXT_TOKEN_THRESHOLD")
        if threshold:
            try:
                self.token_threshold = int(threshold)
            except ValueError:
                logger.warning("Ignoring non-integer CONTEXT_TOKEN_THRESHOLD=%r", threshold)

        model = env.get("WORKER_FLASH")
        if model:
            self.summary_model = model

        return self


@dataclass
class TierConfig:
    """Recent-tail length per tier."""
    fast_limit: int = 20
    large_limit: int = 50

    def limit_for(self, tier: Union[str, Tier]) -> int:
        tier = Tier.parse(tier)
        if tier is Tier.FAST:
            return self.fast_limit
        return self.large_limit

    def to_dict(self) -> Dict:
        return {
            "fast_limit": self.fast_limit,
            "large_limit": self.large_limit,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "TierConfig":
        return cls(
            fast_limit=data.get("fast_limit", 20),
            large_limit=data.get("large_limit", 50),
        )


@dataclass
class GlobalConfig:
    """Global configuration for contextCore."""
    version: str = "1.0.0"
    paths: PathsConfig = field(default_factory=PathsConfig)
    compaction: CompactionConfig = field(default_factory=CompactionConfig)
    tiers: TierConfig = field(default_factory=TierConfig)
    logging_level: str = "INFO"
    logging_file: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "version": self.version,
            "paths": self.paths.to_dict(),
            "compaction": self.compaction.to_dict(),
            "tiers": self.tiers.to_dict(),
            "logging": {
                "level": self.logging_level,
                "file": self.logging_file,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "GlobalConfig":
        logging_cfg = data.get("logging", {})

        return cls(
            version=data.get("version", "1.0.0"),
            paths=PathsConfig.from_dict(data.get("paths", {})),
            compaction=CompactionConfig.from_dict(data.get("compaction", {})),
            tiers=TierConfig.from_dict(data.get("tiers", {})),
            logging_level=logging_cfg.get("level", "INFO"),
            logging_file=logging_cfg.get("file"),
        )


# ============================================================================
# CONFIG MANAGER
# ============================================================================

class ConfigManager:
    """Load and save the global configuration file."""

    def __init__(self, config_dir: Optional[str] = None):
        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            self.config_dir = _get_data_dir() / "CONFIG"

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.global_config: GlobalConfig = GlobalConfig()
        self._project_root = _find_project_root()

    def load_global(self) -> GlobalConfig:
        """Load global configuration from file, creating it with defaults if missing."""
        config_path = self.config_dir / "config.json"

        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                self.global_config = GlobalConfig.from_dict(data)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Could not load global config: %s, using defaults", e)
                self.global_config = GlobalConfig()
        else:
            self.global_config = GlobalConfig()
            self.save_global()

        self.global_config.compaction.apply_env()

        # Resolve paths relative to project root
        self.global_config.paths = self.global_config.paths.resolve(self._project_root)

        return self.global_config

    def save_global(self) -> None:
        """Save global configuration to file."""
        config_path = self.config_dir / "config.json"
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(self.global_config.to_dict(), f, indent=2)


# ============================================================================
# GLOBAL INSTANCE
# ============================================================================

_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_dir: Optional[str] = None) -> ConfigManager:
    """Get or create the global config manager."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_dir)
        _config_manager.load_global()
    return _config_manager


def load_global_config() -> GlobalConfig:
    """Load and return global configuration."""
    return get_config_manager().load_global()

"""
Configuration management for Marketwire.
"""
import os
import copy
import json
import logging
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

ENV_PREFIX = 'MARKETWIRE_'
# Names the config file itself, not a setting
CONFIG_PATH_ENV = 'MARKETWIRE_CONFIG_PATH'

# Default configuration
DEFAULT_CONFIG = {
    "proxy": {
        "endpoint": "https://api.rss2json.com/v1/api.json"
    },
    "fetch": {
        "max_concurrent": 8,
        "timeout_seconds": 15
    },
    "archive": {
        "path": "cache/marketwire.db",
        "key": "market_news_archive_v2",
        "retention_days": 7,
        "overflow_limit": 200,
        "max_bytes": None
    },
    "refresh": {
        "interval_seconds": 60
    },
    "summary": {
        "max_length": 250
    },
    "signals": {
        "bullish": [
            "soars", "jumps", "rallies", "gains", "bull", "buy", "support hold",
            "breakout", "higher", "hawkish", "beats", "positive", "upgrade",
            "surges", "records", "recovers", "record high"
        ],
        "bearish": [
            "plunges", "dives", "drops", "falls", "bear", "sell", "resistance",
            "breakdown", "lower", "dovish", "misses", "negative", "downgrade",
            "retreats", "crash", "sinks", "lows"
        ],
        "breaking": [
            "fed ", "federal reserve", "fomc", "powell",
            "ecb", "lagarde", "boj", "ueda",
            "cpi", "nfp", "rate decision", "hike", "cut", "rates",
            "breaking", "urgent", "alert", "war", "invasion"
        ]
    },
    # None means "use the built-in registry"
    "sources": None
}

class Config:
    """
    Configuration manager for Marketwire.
    """
    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the Config.

        Args:
            config_path: Path to a YAML or JSON configuration file
        """
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> Dict:
        """
        Load configuration from file or use defaults.

        Returns:
            Configuration dictionary
        """
        config = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_path:
            try:
                path = Path(self.config_path)
                if path.exists():
                    if path.suffix.lower() in ['.yaml', '.yml']:
                        with open(path, 'r') as f:
                            user_config = yaml.safe_load(f) or {}
                    elif path.suffix.lower() == '.json':
                        with open(path, 'r') as f:
                            user_config = json.load(f)
                    else:
                        raise ValueError(f"Unsupported config file format: {path.suffix}")

                    self._update_dict(config, user_config)
                else:
                    logger.warning(f"Config file {self.config_path} not found, using defaults")
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.error(f"Error loading config from {self.config_path}: {e}")
                logger.error("Using default configuration")

        self._override_from_env(config)

        return config

    def _update_dict(self, target: Dict, source: Dict) -> None:
        """
        Recursively update a dictionary.

        Args:
            target: Target dictionary to update
            source: Source dictionary with new values
        """
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._update_dict(target[key], value)
            else:
                target[key] = value

    def _override_from_env(self, config: Dict, prefix: str = ENV_PREFIX) -> None:
        """
        Override configuration with environment variables.

        MARKETWIRE_FETCH_TIMEOUT_SECONDS=5 sets fetch.timeout_seconds. The
        first underscore-separated part names the section, the rest is the key.

        Args:
            config: Configuration dictionary to update
            prefix: Prefix for environment variables
        """
        for key, value in os.environ.items():
            if not key.startswith(prefix) or key == CONFIG_PATH_ENV:
                continue
            section, _, name = key[len(prefix):].lower().partition('_')
            if not name:
                continue
            current = config.setdefault(section, {})
            if not isinstance(current, dict):
                continue

            try:
                current[name] = json.loads(value)
            except json.JSONDecodeError:
                current[name] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Dot-separated key path (e.g., 'archive.retention_days')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        parts = key.split('.')
        current = self.config

        for part in parts:
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]

        return current if current is not None else default


# Global configuration instance
config = Config(os.getenv(CONFIG_PATH_ENV))

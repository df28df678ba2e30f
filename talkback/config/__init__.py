"""Simple YAML configuration loader for Talkback."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..errors import MissingCredential

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "openai": {
        "api_key_env": "OPENAI_API_KEY",
        "base_url": "https://api.openai.com/v1",
        "timeout_seconds": 30.0,
    },
    "transcription": {
        "model": "whisper-1",
    },
    "completion": {
        "model": "gpt-3.5-turbo",
    },
    "synthesis": {
        "model": "tts-1",
        "voice": "alloy",
        "response_format": None,
    },
    "audio": {
        "sample_rate": 16000,
        "chunk_size": 1024,
        "channels": 1,
        "recordings_dir": None,
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/talkback.log",
        "console_output": False,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base, recursing into nested dicts."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class TalkbackConfig:
    """Talkback configuration loader."""
    
    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.
        
        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used and relative paths resolve against the
                        current directory.
        """
        self.config_file: Optional[Path] = Path(config_path) if config_path else None
        
        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return
        
        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")
        
        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()
    
    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e
        
        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")
        
        config = _deep_merge(DEFAULT_CONFIG, loaded)
        
        # Resolve relative paths
        self._resolve_paths(config)
        
        logger.info("Configuration loaded successfully")
        return config
    
    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent
        
        recordings_dir = config['audio'].get('recordings_dir')
        if recordings_dir and not os.path.isabs(recordings_dir):
            config['audio']['recordings_dir'] = str(config_dir / recordings_dir)
        
        log_path = config['logging'].get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)
    
    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'synthesis.voice').
        
        Args:
            key_path: Dot-separated key path (e.g., 'openai.base_url')
            default: Default value if key not found
            
        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config
        
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        
        return default if value is None else value
    
    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.
        
        Args:
            key_path: Dot-separated path to config value (e.g., 'completion.model')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config
        
        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]
        
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' updated")
    
    def get_api_key(self) -> str:
        """Get the API bearer credential - raises MissingCredential if not found.

        The environment variable named by ``openai.api_key_env`` wins over an
        ``openai.api_key`` entry in the YAML file.
        """
        env_name = self.get('openai.api_key_env', 'OPENAI_API_KEY')
        api_key = os.environ.get(env_name) or self.get('openai.api_key')
        if not api_key:
            raise MissingCredential(
                f"No API key configured: set ${env_name} or openai.api_key in the config file"
            )
        return api_key
    
    def get_timeout(self) -> float:
        """Get the per-request network timeout in seconds."""
        timeout = float(self.get('openai.timeout_seconds', 30.0))
        if timeout <= 0:
            raise ValueError(f"openai.timeout_seconds must be positive, got {timeout}")
        return timeout
    
    def get_recordings_dir(self) -> Optional[str]:
        """Get recordings directory, or None to record into temp files."""
        recordings_dir = self.get('audio.recordings_dir')
        if not recordings_dir:
            return None
        return str(Path(recordings_dir).absolute())

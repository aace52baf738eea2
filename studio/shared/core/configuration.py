"""
Configuration Management System for Elements Studio

Centralized configuration with a 4-tier precedence hierarchy:
environment → project → user → system defaults.
"""

import logging
import os
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, ValidationError
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_DIR = Path(__file__).resolve().parent.parent / "config" / "settings"


class ValidationLevel(Enum):
    """Configuration validation strictness levels"""
    STRICT = "strict"      # Fail fast on validation errors
    LENIENT = "lenient"    # Log warnings, use defaults


class NavigationConfig(BaseModel):
    """Router and fragment settings"""
    model_config = ConfigDict(extra='forbid')

    default_creation_category: str = Field(default="templates", description="Creation dialog category omitted from fragments")
    folder_chain_max_hops: int = Field(default=32, ge=1, le=256, description="Max parent lookups per breadcrumb rebuild")
    host_hash_prefix: str = Field(default="#", description="Prefix of the value sent to the host frame")


class GalleryConfig(BaseModel):
    """Home gallery filtering"""
    model_config = ConfigDict(extra='forbid')

    recent_window_days: int = Field(default=7, ge=1, le=365, description="Age limit of the Recent view")
    recent_limit: int = Field(default=8, ge=1, le=200, description="Max items in the Recent view")


class ReactionConfig(BaseModel):
    """Reaction registry behaviour"""
    model_config = ConfigDict(extra='forbid')

    centering_action_prefixes: List[str] = Field(
        default_factory=lambda: ["tree:", "comment:"],
        description="User action prefixes allowed to recenter the canvas",
    )
    scroll_debounce_ms: int = Field(default=0, ge=0, le=2000, description="Debounce of the scroll rebinding watcher")


class DebugConfig(BaseModel):
    """Debug tracing"""
    model_config = ConfigDict(extra='forbid')

    max_traces: int = Field(default=1000, ge=10, le=100000)
    editor_log_limit: int = Field(default=500, ge=10, le=100000)
    capture: str = Field(default="", description="Comma separated capture keys, or 'all'")


class LoggingConfig(BaseModel):
    """Logging Configuration"""
    model_config = ConfigDict(extra='forbid')

    level: str = Field(default="DEBUG", description="File log level")
    console_level: str = Field(default="WARNING", description="Console log level")
    log_dir: str = Field(default="data/logs", description="Directory of the rotating log file")
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)
    backup_count: int = Field(default=5, ge=0, le=50)


class SystemConfig(BaseModel):
    """Complete system configuration"""
    model_config = ConfigDict(extra='forbid')

    navigation: NavigationConfig = Field(default_factory=NavigationConfig)
    gallery: GalleryConfig = Field(default_factory=GalleryConfig)
    reactions: ReactionConfig = Field(default_factory=ReactionConfig)
    debug: DebugConfig = Field(default_factory=DebugConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    schema_version: int = Field(default=1, description="Configuration schema version")


class ConfigManager:
    """Centralized configuration manager with 4-tier precedence hierarchy"""

    ENV_MAP = {
        'LOG_LEVEL': ('logging', 'level'),
        'STUDIO_LOG_LEVEL': ('logging', 'level'),
        'STUDIO_LOG_DIR': ('logging', 'log_dir'),
        'STUDIO_FOLDER_MAX_HOPS': ('navigation', 'folder_chain_max_hops'),
        'STUDIO_RECENT_LIMIT': ('gallery', 'recent_limit'),
        'STUDIO_RECENT_DAYS': ('gallery', 'recent_window_days'),
        'STUDIO_DEBUG': ('debug', 'capture'),
    }
    INT_KEYS = {'folder_chain_max_hops', 'recent_limit', 'recent_window_days'}

    def __init__(self, project_root: Optional[Path] = None):
        self.project_root = project_root
        if project_root is None:
            self.config_dir = DEFAULT_SETTINGS_DIR
        else:
            self.config_dir = Path(project_root) / "studio" / "shared" / "config" / "settings"
        self._system_config: Optional[SystemConfig] = None
        self._user_config: Optional[Dict[str, Any]] = None
        self._project_config: Optional[Dict[str, Any]] = None

        self.config_dir.mkdir(parents=True, exist_ok=True)

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load YAML configuration file"""
        if not file_path.exists():
            return {}

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.warning(f"Failed to load {file_path}: {e}")
            return {}

    def _save_yaml_file(self, file_path: Path, data: Dict[str, Any]) -> bool:
        """Save configuration to YAML file"""
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)
            return True
        except OSError as e:
            logger.error(f"Failed to save {file_path}: {e}")
            return False

    def _load_system_defaults(self) -> SystemConfig:
        """Load system default configuration"""
        if self._system_config is None:
            defaults_dict = self._load_yaml_file(self.config_dir / "defaults.yaml")
            try:
                self._system_config = SystemConfig(**defaults_dict)
            except ValidationError as e:
                logger.warning(f"System defaults validation failed: {e}")
                self._system_config = SystemConfig()

        return self._system_config

    def _load_user_config(self) -> Dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml_file(self.config_dir / "user.yaml")
        return self._user_config

    def _load_project_config(self) -> Dict[str, Any]:
        if self._project_config is None:
            self._project_config = self._load_yaml_file(self.config_dir / "project.yaml")
        return self._project_config

    def _merge_configs(self) -> Dict[str, Any]:
        """Merge configurations with precedence: env → project → user → system"""
        merged = self._load_system_defaults().model_dump()
        self._deep_merge(merged, self._load_user_config())
        self._deep_merge(merged, self._load_project_config())
        self._deep_merge(merged, self._get_env_overrides())
        return merged

    def _deep_merge(self, base: Dict[str, Any], updates: Dict[str, Any]) -> None:
        """Deep merge configuration dictionaries"""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _get_env_overrides(self) -> Dict[str, Any]:
        """Extract configuration overrides from environment variables"""
        overrides: Dict[str, Any] = {}
        for env_key, (section, config_key) in self.ENV_MAP.items():
            value = os.getenv(env_key)
            if value is None:
                continue
            if config_key in self.INT_KEYS:
                try:
                    converted: Any = int(value)
                except ValueError:
                    logger.warning(f"Ignoring non-integer {env_key}={value!r}")
                    continue
            elif config_key == 'level':
                converted = value.upper()
            else:
                converted = value
            overrides.setdefault(section, {})[config_key] = converted

        return overrides

    def get_config(self, validation_level: ValidationLevel = ValidationLevel.STRICT) -> SystemConfig:
        """Get merged configuration with validation"""
        merged_config = self._merge_configs()

        try:
            return SystemConfig(**merged_config)
        except ValidationError as e:
            if validation_level == ValidationLevel.STRICT:
                raise ValueError(f"Configuration validation failed: {e}")
            logger.warning(f"Configuration validation failed, using defaults: {e}")
            return SystemConfig()

    def save_project_config(self, config_updates: Dict[str, Any]) -> bool:
        """Save project-specific configuration updates"""
        project_path = self.config_dir / "project.yaml"
        existing_config = self._load_yaml_file(project_path)
        self._deep_merge(existing_config, config_updates)

        success = self._save_yaml_file(project_path, existing_config)
        if success:
            self._project_config = None
        return success

    def reload_config(self) -> None:
        """Clear cached configurations and reload from files"""
        self._system_config = None
        self._user_config = None
        self._project_config = None


_config_manager: Optional[ConfigManager] = None


def get_config_manager(project_root: Optional[Path] = None) -> ConfigManager:
    """Get global configuration manager instance"""
    global _config_manager
    if _config_manager is None or project_root is not None:
        _config_manager = ConfigManager(project_root)
    return _config_manager


def get_config(validation_level: ValidationLevel = ValidationLevel.STRICT) -> SystemConfig:
    """Get current system configuration"""
    return get_config_manager().get_config(validation_level)

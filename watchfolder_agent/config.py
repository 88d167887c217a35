"""
Configuration management for Watch Folder Agent.
Handles loading, validation, and persistence of configuration.
"""

import json
import os
from pathlib import Path
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigError


class Config(BaseModel):
    """Configuration model with validation.

    Field aliases accept the PascalCase keys of the legacy service
    settings (Server, InfoFilePath, WatchFolder, UserID, UserKey, FolderID).
    """

    model_config = ConfigDict(validate_assignment=True, populate_by_name=True)

    # Upload server
    server: str = Field(..., alias='Server', description="Upload server URL or hostname")
    api_timeout: int = Field(300, ge=1, description="API request timeout in seconds")
    verify_ssl: bool = Field(True, description="Verify SSL certificates (False for self-signed servers)")
    max_retries: int = Field(3, ge=1, le=10, description="Attempts per part upload")

    # Identity
    user_id: str = Field(..., min_length=1, alias='UserID', description="Upload user ID")
    user_key: Optional[str] = Field(None, alias='UserKey', description="Upload user key (keychain if omitted)")
    folder_id: str = Field(..., min_length=1, alias='FolderID', description="Destination folder ID")

    # Folder sync
    watch_folder: str = Field(..., alias='WatchFolder', description="Folder to watch")
    info_file_path: str = Field(..., alias='InfoFilePath', description="State record path")
    file_pattern: str = Field("*.mp4", min_length=1, description="Filename glob to upload")
    interval_ms: int = Field(10000, ge=100, description="Polling interval in milliseconds")
    part_size_bytes: int = Field(1048576, ge=1024, description="Upload part size in bytes")
    max_concurrent_uploads: int = Field(1, ge=1, le=10, description="Parallel uploads per cycle")

    # Storage & logging
    log_dir: Optional[str] = Field("~/.watchfolder/logs", description="Log file directory")
    log_level: str = Field("INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")
    event_log_path: Optional[str] = Field("~/.watchfolder/events.jsonl", description="Diagnostic event file")
    pid_file: str = Field("~/.watchfolder/watchfolder-agent.pid", description="PID file")

    @field_validator('server')
    @classmethod
    def validate_server(cls, v):
        """Accept a bare hostname as well as a full URL."""
        v = v.strip()
        if not v:
            raise ValueError('Server must not be empty')
        if not v.startswith('http://') and not v.startswith('https://'):
            v = f'https://{v}'
        return v.rstrip('/')

    @field_validator('watch_folder', 'info_file_path')
    @classmethod
    def validate_path(cls, v):
        """Reject paths that cannot name a filesystem location."""
        if not v or not v.strip():
            raise ValueError('Path must not be empty')
        if '\x00' in v:
            raise ValueError('Path must not contain NUL characters')
        return v

    @field_validator('file_pattern')
    @classmethod
    def validate_file_pattern(cls, v):
        if '/' in v or os.sep in v:
            raise ValueError('File pattern must match file names, not paths')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in allowed:
            raise ValueError(f'Log level must be one of: {", ".join(allowed)}')
        return v.upper()

    @property
    def watch_path(self) -> Path:
        return Path(self.watch_folder).expanduser()

    @property
    def info_path(self) -> Path:
        return Path(self.info_file_path).expanduser()

    def masked(self) -> Dict[str, Any]:
        """Configuration dict with the user key hidden."""
        data = self.model_dump()
        if data.get('user_key'):
            data['user_key'] = '********'
        return data


class ConfigManager:
    """Manages configuration file loading and saving."""

    DEFAULT_CONFIG_PATH = Path.home() / ".watchfolder" / "config.json"

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager.

        Args:
            config_path: Optional custom config path
        """
        self.config_path = Path(config_path).expanduser() if config_path else self.DEFAULT_CONFIG_PATH
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """Load configuration from file.

        Returns:
            Config object

        Raises:
            ConfigError: If the file is missing, not JSON, or invalid
        """
        if not self.config_path.exists():
            raise ConfigError(
                f"Configuration file not found: {self.config_path}\n"
                "Run 'watchfolder-agent setup' or create config manually."
            )

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot read configuration {self.config_path}: {e}") from e

        try:
            self._config = Config(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration {self.config_path}:\n{e}") from e

        return self._config

    def save(self, config: Config) -> None:
        """Save configuration to file.

        Args:
            config: Config object to save
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(
                config.model_dump(exclude_none=True),
                f,
                indent=2,
                sort_keys=True
            )

        # Owner only, the file may hold the user key
        os.chmod(self.config_path, 0o600)

        self._config = config

    def get(self) -> Config:
        """Get current configuration (load if not cached)."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def ensure_directories(self) -> None:
        """Create the directories the agent writes into."""
        config = self.get()

        directories = [config.info_path.parent, Path(config.pid_file).expanduser().parent]
        if config.log_dir:
            directories.append(Path(config.log_dir).expanduser())
        if config.event_log_path:
            directories.append(Path(config.event_log_path).expanduser().parent)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

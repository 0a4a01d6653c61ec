"""Configuration settings and models for the backup application."""

import os
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, validator

from ..exceptions import ConfigurationError

DEFAULT_ROOT_FOLDER = "Videos Backup"

# Graph upload sessions only accept chunks that are multiples of 320 KiB
UPLOAD_CHUNK_ALIGNMENT = 320 * 1024


class LookupScope(str, Enum):
    """How remote folders and files are matched against local names."""
    NAME = "name"  # exact name anywhere in the drive
    PARENT = "parent"  # exact name inside the expected parent folder


class BackupConfig(BaseModel):
    """Main configuration class."""
    root_folder_name: str = DEFAULT_ROOT_FOLDER
    lookup_scope: LookupScope = LookupScope.NAME

    # Graph drive selection: the signed-in user's drive when unset
    drive_user: Optional[str] = None
    graph_endpoint: str = "https://graph.microsoft.com/v1.0"

    chunk_size: int = 32 * UPLOAD_CHUNK_ALIGNMENT  # 10MB
    simple_upload_limit: int = 4 * 1024 * 1024  # 4MB
    request_timeout: int = 300  # seconds

    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @validator('root_folder_name')
    def validate_root_folder_name(cls, v):
        if not v.strip():
            raise ValueError('root_folder_name must not be empty')
        return v

    @validator('chunk_size')
    def validate_chunk_size(cls, v):
        if v <= 0 or v % UPLOAD_CHUNK_ALIGNMENT:
            raise ValueError(f'chunk_size must be a positive multiple of {UPLOAD_CHUNK_ALIGNMENT} bytes')
        return v

    @validator('simple_upload_limit', 'request_timeout')
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError('value must be positive')
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'unknown log level: {v}')
        return level

    @property
    def drive_url(self) -> str:
        """Base URL of the drive that receives the backup."""
        base = self.graph_endpoint.rstrip('/')
        if self.drive_user:
            return f"{base}/users/{self.drive_user}/drive"
        return f"{base}/me/drive"

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "BackupConfig":
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")

        return cls(**config_data)


class CredentialsConfig(BaseModel):
    """Credentials configuration (stored separately for security)."""
    microsoft_app_id: Optional[str] = None
    microsoft_app_secret: Optional[str] = None
    microsoft_tenant_id: Optional[str] = None

    @classmethod
    def from_yaml(cls, credentials_path: Union[str, Path]) -> "CredentialsConfig":
        """Load credentials from YAML file."""
        credentials_path = Path(credentials_path)
        if not credentials_path.exists():
            return cls()  # Return empty config if file doesn't exist

        with open(credentials_path, 'r', encoding='utf-8') as f:
            creds_data = yaml.safe_load(f) or {}

        if not isinstance(creds_data, dict):
            raise ConfigurationError(f"Credentials file must contain a mapping: {credentials_path}")

        return cls(**creds_data)

    @classmethod
    def from_env(cls) -> "CredentialsConfig":
        """Load credentials from environment variables."""
        return cls(
            microsoft_app_id=os.getenv('MICROSOFT_APP_ID'),
            microsoft_app_secret=os.getenv('MICROSOFT_APP_SECRET'),
            microsoft_tenant_id=os.getenv('MICROSOFT_TENANT_ID'),
        )

    def require_app_id(self) -> str:
        """Return the application id or fail when it is not configured."""
        if not self.microsoft_app_id:
            raise ConfigurationError(
                "Microsoft application id missing: set microsoft_app_id in the "
                "credentials file or the MICROSOFT_APP_ID environment variable"
            )
        return self.microsoft_app_id

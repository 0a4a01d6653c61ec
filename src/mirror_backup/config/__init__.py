"""Configuration management for the mirror backup application."""

from .settings import BackupConfig, CredentialsConfig, LookupScope

__all__ = ["BackupConfig", "CredentialsConfig", "LookupScope"]

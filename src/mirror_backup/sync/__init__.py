"""Sync engine for backup operations."""

from .backup_manager import BackupManager
from .hierarchy import DirectoryCache, HierarchySynchronizer
from .scanner import LocalTreeScanner

__all__ = ["BackupManager", "DirectoryCache", "HierarchySynchronizer", "LocalTreeScanner"]

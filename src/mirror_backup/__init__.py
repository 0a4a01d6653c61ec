"""
Local Folder Mirror Backup

Mirrors a local directory tree into a OneDrive folder and uploads every file
that is not already present remotely.
"""

__version__ = "1.0.0"
__author__ = "Mirror Backup Tool"
__description__ = "Back up a local folder tree to OneDrive"

from .config.settings import BackupConfig
from .sync.backup_manager import BackupManager

__all__ = ["BackupConfig", "BackupManager"]

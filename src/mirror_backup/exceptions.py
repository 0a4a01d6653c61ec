"""Error types raised by the backup application."""

from typing import Optional


class BackupError(Exception):
    """Base class for every error the backup run can abort with."""


class ConfigurationError(BackupError):
    """Settings or credentials are missing or invalid."""


class FilesystemError(BackupError):
    """A local path is missing, is not what was expected, or cannot be read."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class RemoteApiError(BackupError):
    """The remote storage API rejected a request or could not be reached.

    Covers authentication failures, network failures, quota and rate-limit
    rejections, and responses that cannot be parsed.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AmbiguousNameError(BackupError):
    """A name lookup returned more than one remote entity.

    Not raised during a run: the first match is used and the condition is
    logged as a warning.
    """

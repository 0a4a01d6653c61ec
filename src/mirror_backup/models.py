"""Records describing remote folders, files and backup runs."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class RemoteEntity:
    """A folder or file returned by a remote lookup."""
    remote_id: str
    name: str
    is_folder: bool
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class RemoteFolder:
    """A folder created in the remote drive. parent_id is None for the drive root."""
    name: str
    remote_id: str
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class RemoteFile:
    """A file uploaded to the remote drive."""
    name: str
    remote_id: str
    parent_id: Optional[str] = None
    size: int = 0


@dataclass
class BackupResult:
    """Counters collected over one backup run."""
    local_root: str
    root_folder_id: Optional[str] = None
    files_found: int = 0
    files_uploaded: int = 0
    files_skipped: int = 0
    folders_created: int = 0
    folders_reused: int = 0
    bytes_transferred: int = 0
    duration: float = 0.0
    uploaded: list = field(default_factory=list)

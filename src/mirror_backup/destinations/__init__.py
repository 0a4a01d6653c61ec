"""Remote storage destinations."""

from .onedrive import OneDriveStorageClient

__all__ = ["OneDriveStorageClient"]

"""Main backup manager orchestrating the backup process."""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from ..auth.microsoft_auth import MicrosoftGraphAuth
from ..config.settings import BackupConfig, CredentialsConfig
from ..destinations.onedrive import OneDriveStorageClient
from ..models import BackupResult
from ..utils.logging import TimedOperation
from ..utils.progress import UploadProgress
from .hierarchy import HierarchySynchronizer
from .scanner import LocalTreeScanner

# Module logger
logger = logging.getLogger(__name__)


class BackupManager:
    """Main backup manager that orchestrates the backup process.

    A run resolves the backup root folder, scans the local tree completely,
    then mirrors and uploads the files one after another. The first error
    from any step ends the run; nothing is retried and no partial state is
    rolled back.
    """

    def __init__(self, config: BackupConfig,
                 client: Optional[OneDriveStorageClient] = None,
                 scanner: Optional[LocalTreeScanner] = None,
                 progress: Optional[UploadProgress] = None):
        """Initialize backup manager.

        Args:
            config: Backup configuration
            client: Storage client; created by initialize_client when omitted
            scanner: Local tree scanner
            progress: Upload progress display (no progress output when omitted)
        """
        self.config = config
        self.client = client
        self.scanner = scanner or LocalTreeScanner()
        self.progress = progress
        self.result: Optional[BackupResult] = None

    def initialize_client(self, credentials_config: CredentialsConfig) -> OneDriveStorageClient:
        """Initialize authentication and the storage client.

        Args:
            credentials_config: Credentials configuration
        """
        auth = MicrosoftGraphAuth.from_credentials(credentials_config)
        self.client = OneDriveStorageClient.from_config(auth, self.config)
        logger.info("Microsoft Graph authentication initialized")
        return self.client

    def find_or_create_root_folder(self) -> str:
        """Return the id of the folder every backup goes into, creating it if needed."""
        root_name = self.config.root_folder_name
        matches = self.client.search_by_name(root_name)

        if matches:
            logger.info(f"preexisting root folder: {matches[0].remote_id}")
            return matches[0].remote_id

        folder = self.client.create_folder(root_name, None)
        logger.info(f"creating root folder: {folder.remote_id}")
        return folder.remote_id

    def backup(self, local_root: Union[str, Path] = ".") -> BackupResult:
        """Back up local_root, raising on the first failure.

        Returns:
            Counters for the completed run
        """
        if self.client is None:
            raise RuntimeError("Storage client not initialized; call initialize_client first")

        local_root = os.fspath(local_root)
        self.result = BackupResult(local_root=local_root)

        try:
            with TimedOperation(logger, f"backup of {local_root}") as timer:
                self.result.root_folder_id = self.find_or_create_root_folder()

                file_list = self.scanner.scan(local_root)
                self.result.files_found = len(file_list)

                synchronizer = HierarchySynchronizer(
                    self.client,
                    self.result.root_folder_id,
                    lookup_scope=self.config.lookup_scope,
                    result=self.result,
                )
                if self.progress is not None:
                    with self.progress:
                        synchronizer.sync_files(local_root, file_list, self.progress.observer)
                else:
                    synchronizer.sync_files(local_root, file_list)
        finally:
            self.client.close()

        self.result.duration = timer.duration
        logger.info(
            f"{self.result.files_uploaded} uploaded, {self.result.files_skipped} skipped, "
            f"{self.result.folders_created} folders created"
        )
        return self.result

    def run(self, local_root: Union[str, Path] = ".") -> int:
        """Back up local_root and return the process exit code.

        Returns:
            0 when every file was processed, 1 when the run was aborted
        """
        try:
            self.backup(local_root)
        except Exception as e:
            logger.error(f"Backup of {local_root} aborted: {e}", exc_info=True)
            return 1
        return 0

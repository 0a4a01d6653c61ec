"""Mirroring of local directory chains as remote folders."""

import logging
import os
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from ..config.settings import LookupScope
from ..destinations.onedrive import OneDriveStorageClient, ProgressCallback
from ..models import BackupResult, RemoteEntity, RemoteFile
from ..utils.file_utils import FileHelper

logger = logging.getLogger(__name__)


class DirectoryCache:
    """Directory key -> remote folder id, filled lazily during one run.

    Keys are bare directory names, or slash-joined path prefixes when the
    synchronizer scopes lookups by parent.
    """

    def __init__(self):
        self._folder_ids: Dict[str, str] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._folder_ids

    def __len__(self) -> int:
        return len(self._folder_ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._folder_ids)

    def get(self, key: str) -> Optional[str]:
        return self._folder_ids.get(key)

    def set(self, key: str, folder_id: str) -> None:
        self._folder_ids[key] = folder_id


class HierarchySynchronizer:
    """Create or reuse the remote folders for each local file and upload missing files.

    With LookupScope.NAME (the default) a folder or file counts as present
    when any item in the drive has the same name, wherever it lives, and the
    cache is keyed by bare name. Directories that share a name across
    different branches therefore map to the same remote folder.
    LookupScope.PARENT looks names up inside the expected parent folder and
    keys the cache by the full relative directory path instead.
    """

    def __init__(self, client: OneDriveStorageClient, root_folder_id: str,
                 lookup_scope: LookupScope = LookupScope.NAME,
                 cache: Optional[DirectoryCache] = None,
                 result: Optional[BackupResult] = None):
        self.client = client
        self.root_folder_id = root_folder_id
        self.lookup_scope = LookupScope(lookup_scope)
        self.cache = cache if cache is not None else DirectoryCache()
        self.result = result

    def _cache_key(self, path_segments: Sequence[str], index: int) -> str:
        if self.lookup_scope is LookupScope.PARENT:
            return "/".join(path_segments[:index + 1])
        return path_segments[index]

    def ensure_hierarchy(self, path_segments: Sequence[str]) -> str:
        """Make sure every directory in path_segments exists remotely.

        Segments are resolved in order so each folder is created inside the
        folder resolved just before it (the backup root for the first one).

        Returns:
            Remote id of the deepest folder, or the root folder id when
            path_segments is empty
        """
        parent_id = self.root_folder_id
        for index, dir_name in enumerate(path_segments):
            key = self._cache_key(path_segments, index)
            folder_id = self.cache.get(key)
            if folder_id is None:
                folder_id = self._resolve_folder(dir_name, parent_id)
                self.cache.set(key, folder_id)
            parent_id = folder_id
        return parent_id

    def _resolve_folder(self, dir_name: str, parent_id: str) -> str:
        existing = self._lookup(dir_name, parent_id, folders_only=True)
        if existing is not None:
            logger.debug(f"Reusing folder {dir_name} ({existing.remote_id})")
            self._count('folders_reused')
            return existing.remote_id

        folder = self.client.create_folder(dir_name, parent_id)
        logger.info(f"created folder\t{dir_name} ({folder.remote_id})")
        self._count('folders_created')
        return folder.remote_id

    def _lookup(self, name: str, parent_id: str, folders_only: bool = False) -> Optional[RemoteEntity]:
        """Find an existing remote item for name according to the lookup scope."""
        if self.lookup_scope is LookupScope.PARENT:
            entity = self.client.find_child(parent_id, name)
            if entity is None or (folders_only and not entity.is_folder):
                return None
            return entity

        matches: List[RemoteEntity] = self.client.search_by_name(name)
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(f"{len(matches)} remote items are named {name!r}; using {matches[0].remote_id}")
        return matches[0]

    def sync_file(self, local_root: str, relative_path: str,
                  progress_callback: Optional[ProgressCallback] = None) -> Optional[RemoteFile]:
        """Mirror the directories of relative_path and upload the file unless it is present.

        Returns:
            The uploaded file, or None when an item with the same name
            already exists remotely
        """
        dir_segments, file_name = FileHelper.split_relative_path(relative_path)
        parent_id = self.ensure_hierarchy(dir_segments)

        if self._lookup(file_name, parent_id) is not None:
            logger.info(f"skipped\t\t{relative_path}")
            self._count('files_skipped')
            return None

        local_path = os.path.join(local_root, *dir_segments, file_name)
        remote_file = self.client.upload_file(local_path, file_name, parent_id, progress_callback)
        logger.info(f"uploaded\t{relative_path} ({FileHelper.format_file_size(remote_file.size)})")
        if self.result is not None:
            self.result.files_uploaded += 1
            self.result.bytes_transferred += remote_file.size
            self.result.uploaded.append(relative_path)
        return remote_file

    def sync_files(self, local_root: str, relative_paths: Sequence[str],
                   progress_factory: Optional[Callable[[str], ProgressCallback]] = None) -> None:
        """Run sync_file over every path in order, stopping at the first error."""
        for relative_path in relative_paths:
            callback = progress_factory(relative_path) if progress_factory else None
            self.sync_file(local_root, relative_path, callback)

    def _count(self, counter: str) -> None:
        if self.result is not None:
            setattr(self.result, counter, getattr(self.result, counter) + 1)

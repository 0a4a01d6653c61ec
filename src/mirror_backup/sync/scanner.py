"""Local directory tree scanning."""

import logging
import os
from pathlib import Path
from typing import List, Union

from ..exceptions import FilesystemError

logger = logging.getLogger(__name__)


class LocalTreeScanner:
    """Collect every file below a root directory before any upload starts.

    Paths are returned relative to the root, '/'-separated, in the order the
    directory listing yields them (depth first, not sorted). Symbolic links
    are never recursed into; a link is listed only when it resolves to a
    regular file.
    """

    def scan(self, root_path: Union[str, Path]) -> List[str]:
        """Return the relative paths of all files below root_path.

        Raises:
            FilesystemError: If root_path is missing, not a directory, or any
                directory below it cannot be listed
        """
        root = os.fspath(root_path)
        if not os.path.exists(root):
            raise FilesystemError(f"Directory not found: {root}", path=root)
        if not os.path.isdir(root):
            raise FilesystemError(f"Not a directory: {root}", path=root)

        files: List[str] = []
        self._scan_directory(root, "", files)
        logger.info(f"Found {len(files)} files in {root}")
        return files

    def _scan_directory(self, directory: str, prefix: str, files: List[str]) -> None:
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    relative = f"{prefix}/{entry.name}" if prefix else entry.name
                    if entry.is_dir(follow_symlinks=False):
                        self._scan_directory(entry.path, relative, files)
                    elif entry.is_file():
                        files.append(relative)
                    else:
                        logger.debug(f"Ignoring {relative}: not a regular file")
        except OSError as e:
            raise FilesystemError(f"Cannot read directory {directory}: {e}", path=directory) from e

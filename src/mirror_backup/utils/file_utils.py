"""File utility functions."""

from typing import List, Tuple


class FileHelper:
    """Helper class for file operations."""

    @staticmethod
    def split_relative_path(relative_path: str) -> Tuple[List[str], str]:
        """Split a '/'-separated relative path into directory segments and file name.

        Args:
            relative_path: Path relative to the scan root, e.g. 'a/b/c.txt'

        Returns:
            Tuple of (['a', 'b'], 'c.txt')
        """
        segments = [segment for segment in relative_path.split('/') if segment not in ('', '.')]
        if not segments:
            raise ValueError(f"Path has no file name: {relative_path!r}")
        return segments[:-1], segments[-1]

    @staticmethod
    def format_file_size(size_bytes: int) -> str:
        """Format file size in human readable format.

        Args:
            size_bytes: Size in bytes

        Returns:
            Formatted size string
        """
        if size_bytes == 0:
            return "0 B"

        size_names = ["B", "KB", "MB", "GB", "TB", "PB"]
        i = 0

        while size_bytes >= 1024 and i < len(size_names) - 1:
            size_bytes /= 1024.0
            i += 1

        return f"{size_bytes:.1f} {size_names[i]}"

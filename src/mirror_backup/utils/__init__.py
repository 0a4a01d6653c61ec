"""Utility functions and helpers."""

from .logging import setup_logging, TimedOperation
from .file_utils import FileHelper

__all__ = ["setup_logging", "TimedOperation", "FileHelper"]

"""
Unit tests for the utils package.
"""
import io
import logging

import pytest
from rich.console import Console

from mirror_backup.utils.file_utils import FileHelper
from mirror_backup.utils.logging import TimedOperation, setup_logging
from mirror_backup.utils.progress import UploadProgress


@pytest.mark.parametrize("path, expected", [
    ("a/b/c.txt", (["a", "b"], "c.txt")),
    ("c.txt", ([], "c.txt")),
    ("./a/c.txt", (["a"], "c.txt")),
    ("a//c.txt", (["a"], "c.txt")),
])
def test_split_relative_path(path, expected):
    assert FileHelper.split_relative_path(path) == expected


def test_split_relative_path_without_file_name():
    with pytest.raises(ValueError):
        FileHelper.split_relative_path("")


@pytest.mark.parametrize("size, expected", [
    (0, "0 B"),
    (512, "512.0 B"),
    (1536, "1.5 KB"),
    (5 * 1024 * 1024, "5.0 MB"),
])
def test_format_file_size(size, expected):
    assert FileHelper.format_file_size(size) == expected


def test_setup_logging_with_file(tmp_path):
    log_file = tmp_path / "logs" / "backup.log"
    logger = setup_logging(log_level="WARNING", log_file=log_file, log_to_console=False)
    try:
        logging.getLogger("mirror_backup.test").debug("detail line")
        for handler in logger.handlers:
            handler.flush()

        assert logger.name == "mirror_backup"
        assert "detail line" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)


@pytest.mark.parametrize("level, noisy_level", [("INFO", logging.WARNING), ("DEBUG", logging.DEBUG)])
def test_setup_logging_console_is_terse(level, noisy_level):
    logger = setup_logging(log_level=level)
    try:
        handler, = logger.handlers
        record = logging.LogRecord("mirror_backup.sync", logging.INFO, __file__, 1, "skipped\t\ta.jpg", None, None)

        assert handler.format(record) == "INFO    skipped\t\ta.jpg"
        assert handler.level == getattr(logging, level)
        assert logging.getLogger("msal").level == noisy_level
        assert logging.getLogger("urllib3").level == noisy_level
    finally:
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        for name in ("msal", "urllib3"):
            logging.getLogger(name).setLevel(logging.NOTSET)


def test_timed_operation_records_duration():
    logger = logging.getLogger("mirror_backup.test")

    with TimedOperation(logger, "scan") as timer:
        pass

    assert timer.duration >= 0.0


def test_timed_operation_logs_failure(caplog):
    logger = logging.getLogger("mirror_backup.test")

    with caplog.at_level(logging.INFO, logger="mirror_backup"):
        with pytest.raises(RuntimeError):
            with TimedOperation(logger, "upload"):
                raise RuntimeError("boom")

    assert "Starting upload" in caplog.text
    assert "Failed upload" in caplog.text
    assert "boom" in caplog.text


def test_upload_progress_observer_tracks_one_file():
    progress = UploadProgress(Console(file=io.StringIO(), force_terminal=False))

    with progress:
        report = progress.observer("photos/2020/a.jpg")
        report(0.0)
        report(50.0)
        report(100.0)
        report(100.0)  # reports after completion are ignored

        assert progress._progress.tasks == []

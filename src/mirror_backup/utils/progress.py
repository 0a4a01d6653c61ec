"""Upload progress display."""

from typing import Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from ..destinations.onedrive import ProgressCallback


class UploadProgress:
    """Show one transient progress bar per file while it uploads.

    Use as a context manager around the upload phase and hand
    ``observer(path)`` to each upload as its progress callback.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}% complete"),
            console=self.console,
            transient=True,
        )

    def __enter__(self) -> "UploadProgress":
        self._progress.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._progress.stop()

    def observer(self, path: str) -> ProgressCallback:
        """Return a callback that tracks the upload of path.

        The bar appears on the first report and is removed at 100%.
        """
        task_id = None
        finished = False

        def report(percent: float) -> None:
            nonlocal task_id, finished
            if finished:
                return
            if task_id is None:
                task_id = self._progress.add_task(path, total=100)
            self._progress.update(task_id, completed=percent)
            if percent >= 100:
                self._progress.remove_task(task_id)
                finished = True

        return report

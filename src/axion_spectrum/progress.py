"""Progress reporting for long-running analysis steps.

Library functions never print.  Instead they accept an optional
callback and report through :class:`ProgressReporter`; the CLI passes a
callback that echoes to the terminal.
"""

from typing import Callable, Optional

ProgressCallback = Callable[[str, float], None]


class ProgressReporter:
    """Forward status updates to an optional callback.

    Attributes:
        message: Most recent status message.
        progress: Most recent completion fraction between 0.0 and 1.0.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        """Initialize the reporter.

        Args:
            callback: Optional callable receiving ``(message, progress)``
                on each update.
        """
        self.message: str = ""
        self.progress: float = 0.0
        self._callback = callback

    def update(self, message: str, progress: float = 0.0) -> None:
        """Record a status message and completion fraction."""
        self.message = message
        self.progress = min(max(progress, 0.0), 1.0)
        if self._callback:
            self._callback(message, self.progress)

    def advance(self, done: int, total: int, message: str) -> None:
        """Report *done* of *total* work items as a fraction."""
        fraction = done / total if total else 1.0
        self.update(f"{message} ({done}/{total})", fraction)

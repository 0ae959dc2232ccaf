from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.import_job import ImportJob

"""Progress display for import jobs with tqdm (TTY only).

A single bar per job, 0-100 %, with processed/success/error counters as the
postfix. In non-TTY environments (CI, redirected output) the bar is disabled
so no control sequences end up in logs.
"""

__all__ = [
    "JobProgressBar",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class JobProgressBar:
    """tqdm bar that mirrors an ImportJob's progress percentage."""

    def __init__(self, file_name: str, *, description: str = "Importando") -> None:
        self.file_name = file_name
        self.description = description
        self.shown = 0.0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=100,
                desc=f"{description} ({file_name})",
                unit="%",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
                bar_format="{l_bar}{bar}| {n:.0f}/{total_fmt}% {postfix}",
            )
        else:
            self.pbar = None

    def update(self, job: ImportJob) -> None:
        """Move the bar to the job's current progress."""
        delta = job.progress - self.shown
        self.shown = job.progress
        if self.enabled and self.pbar is not None:
            if delta > 0:
                self.pbar.update(delta)
            self.pbar.set_postfix(
                processed=job.processed_rows,
                success=job.success_rows,
                errors=job.error_rows,
            )

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> JobProgressBar:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

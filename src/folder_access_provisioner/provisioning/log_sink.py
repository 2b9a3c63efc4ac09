"""Append-only plain-text transcript of provisioning runs."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import structlog

logger = structlog.get_logger()


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as ``yyyy.MM.dd. HH:mm:ss:fff``."""
    return moment.strftime("%Y.%m.%d. %H:%M:%S:") + f"{moment.microsecond // 1000:03d}"


class OutcomeLogSink:
    """Appends lines to a fixed text file, optionally timestamped.

    The file is opened and closed on every append. A line that cannot be
    written is reported to the structured log and dropped; the caller's
    run carries on.
    """

    def __init__(self, path: str | Path, clock: Callable[[], datetime] = datetime.now) -> None:
        self._path = Path(path)
        self._clock = clock
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, message: str, timestamped: bool = True) -> None:
        line = f"{format_timestamp(self._clock())} - {message}" if timestamped else message
        try:
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            logger.exception("outcome_log_write_failed", path=str(self._path), line=line)
            return
        logger.debug("outcome_line_appended", path=str(self._path), timestamped=timestamped)

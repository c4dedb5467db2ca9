# src/opsdesk/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# First matching prefix wins. Anything unlisted only reaches the console at ERROR+.
_CONSOLE_THRESHOLDS: tuple[tuple[str, int], ...] = (
    # Request lines and rejected calls are already rendered by run_command.
    ("opsdesk.api.", logging.WARNING),
    ("opsdesk.core.inflight", logging.WARNING),
    ("opsdesk.", logging.NOTSET),
    ("httpx", logging.WARNING),
    ("httpcore", logging.WARNING),
    ("py.warnings", logging.ERROR),
)


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the interactive console readable:
    - workflow logs (task / order changes, bootstrap) pass at the handler level
    - API request chatter stays in the file log unless WARNING+
    - everything else only shows up on ERROR+
    """

    def __init__(self, thresholds: tuple[tuple[str, int], ...] = _CONSOLE_THRESHOLDS) -> None:
        super().__init__()
        self._thresholds = thresholds

    def filter(self, record: logging.LogRecord) -> bool:
        for prefix, level in self._thresholds:
            if record.name == prefix.rstrip(".") or record.name.startswith(prefix):
                return record.levelno >= level
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/opsdesk",
    app_name: str = "opsdesk",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Console handler (filtered) + file handler (<log_dir>/<app_name>.log, full).

    Call this ONCE, before the first logger.info. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{app_name or 'opsdesk'}.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    # httpcore logs every socket event at DEBUG; the file log only needs request lines.
    logging.getLogger("httpcore").setLevel(logging.INFO)

    logging.captureWarnings(True)
    return log_file

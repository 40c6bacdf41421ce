from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(log_path: Path | None = None, level: int = logging.INFO) -> logging.Logger:
    """Send log records to stderr through rich and, optionally, to a UTF-8 log file.

    Console output goes to stderr so commands like ``info --json`` keep stdout clean.
    """
    console_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        show_time=False,
        show_level=True,
    )
    handlers: list[logging.Handler] = [console_handler]
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S"))
        handlers.append(fh)

    logging.basicConfig(level=level, handlers=handlers, format="%(message)s", force=True)
    return logging.getLogger("docxsplice")

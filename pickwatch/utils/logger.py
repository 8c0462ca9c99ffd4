"""Logging for the sync service.

Call sites tag their messages with a component prefix (``[Poller]``,
``[Sync]``, ``[Cache]``, ...). ``ComponentFilter`` lifts that prefix into
``record.component`` so it lines up in a fixed-width column and can be
matched on by handlers.

Console level comes from ``settings.LOG_LEVEL``. Each process start also
writes a DEBUG-level run file under ``settings.LOGS_DIR``; only the newest
``settings.LOG_KEEP_RUNS`` of those are kept.
"""

import logging
import re
import sys
from datetime import datetime
from pathlib import Path

from pickwatch.config import settings

_TAG = re.compile(r"^\[(?P<component>[A-Za-z]+)\]\s*")
_DEFAULT_COMPONENT = "core"


class ComponentFilter(logging.Filter):
    """Move a leading ``[Tag]`` from the message into ``record.component``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "component", None):
            return True
        match = _TAG.match(record.msg) if isinstance(record.msg, str) else None
        if match:
            record.component = match.group("component").lower()
            record.msg = record.msg[match.end():]
        else:
            record.component = _DEFAULT_COMPONENT
        return True


def _prune_run_files(logs_dir: Path, keep: int) -> list[Path]:
    """Delete all but the ``keep`` newest run files. Returns what was removed."""
    run_files = sorted(logs_dir.glob("pickwatch_*.log"), key=lambda p: p.stat().st_mtime)
    doomed = run_files[:-keep] if keep > 0 else run_files
    removed = []
    for path in doomed:
        try:
            path.unlink()
        except OSError:
            continue
        removed.append(path)
    return removed


def _setup_logger(name: str = "pickwatch") -> logging.Logger:
    log = logging.getLogger(name)
    log.setLevel(logging.DEBUG)

    # Reimport guard
    if log.handlers:
        return log

    fmt = logging.Formatter(
        "[%(asctime)s] %(levelname)-8s %(component)-8s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    tagger = ComponentFilter()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(settings.LOG_LEVEL.upper())
    console.addFilter(tagger)
    console.setFormatter(fmt)
    log.addHandler(console)

    logs_dir = settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    run_log = logs_dir / f"pickwatch_{datetime.now():%Y-%m-%d_%H-%M-%S}.log"

    run_file = logging.FileHandler(run_log, encoding="utf-8")
    run_file.setLevel(logging.DEBUG)
    run_file.addFilter(tagger)
    run_file.setFormatter(fmt)
    log.addHandler(run_file)

    removed = _prune_run_files(logs_dir, settings.LOG_KEEP_RUNS)
    log.info("[Log] Writing %s (pruned %d old runs)", run_log.name, len(removed))
    return log


logger = _setup_logger()

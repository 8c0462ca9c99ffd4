"""Tests for the component-tagging logger."""

from __future__ import annotations

import logging
import os

from pickwatch.config import settings
from pickwatch.utils.logger import ComponentFilter, _prune_run_files, logger


def _record(msg, *args) -> logging.LogRecord:
    return logging.LogRecord("pickwatch", logging.INFO, __file__, 1, msg, args, None)


class TestComponentFilter:

    def test_tag_moves_into_component(self) -> None:
        record = _record("[Poller] Tick issued %d fetches", 3)
        assert ComponentFilter().filter(record) is True
        assert record.component == "poller"
        assert record.getMessage() == "Tick issued 3 fetches"

    def test_untagged_message_gets_default(self) -> None:
        record = _record("plain message")
        ComponentFilter().filter(record)
        assert record.component == "core"
        assert record.getMessage() == "plain message"

    def test_second_handler_sees_same_component(self) -> None:
        record = _record("[Sync] Backend data cleared")
        tagger = ComponentFilter()
        tagger.filter(record)
        tagger.filter(record)
        assert record.component == "sync"
        assert record.getMessage() == "Backend data cleared"

    def test_non_string_message(self) -> None:
        record = _record(ValueError("boom"))
        ComponentFilter().filter(record)
        assert record.component == "core"


class TestRunFiles:

    def test_prune_keeps_newest(self, tmp_path) -> None:
        for i in range(5):
            path = tmp_path / f"pickwatch_2026-10-1{i}_00-00-00.log"
            path.write_text("x")
            os.utime(path, (1_000 + i, 1_000 + i))
        (tmp_path / "other.log").write_text("kept")

        removed = _prune_run_files(tmp_path, keep=2)
        assert len(removed) == 3
        left = sorted(p.name for p in tmp_path.glob("pickwatch_*.log"))
        assert left == ["pickwatch_2026-10-13_00-00-00.log", "pickwatch_2026-10-14_00-00-00.log"]
        assert (tmp_path / "other.log").exists()

    def test_logger_wiring(self) -> None:
        assert logger.name == "pickwatch"
        console = [h for h in logger.handlers if not isinstance(h, logging.FileHandler)]
        files = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert console[0].level == logging.getLevelName(settings.LOG_LEVEL.upper())
        assert len(files) == 1
        assert files[0].level == logging.DEBUG
        assert all(any(isinstance(f, ComponentFilter) for f in h.filters) for h in logger.handlers)

from __future__ import annotations

import logging

from meshhessen.state.debug_log import MAX_DEBUG_LINES, MIRRORED, DebugLog, DebugLogHandler


def test_default_capacity() -> None:
    assert DebugLog().capacity == MAX_DEBUG_LINES == 10_000


def test_oldest_line_evicted_past_capacity() -> None:
    log = DebugLog(capacity=3)
    for i in range(5):
        log.append(f"line {i}")

    assert len(log) == 3
    assert log.lines() == ["line 2", "line 3", "line 4"]


def test_lines_limit() -> None:
    log = DebugLog()
    for i in range(4):
        log.append(str(i))
    assert log.lines(2) == ["2", "3"]
    assert log.lines(0) == []


def test_log_prefixes_timestamp() -> None:
    log = DebugLog()
    log.log("[ACK] something")
    line = log.lines()[0]
    assert line.startswith("[")
    assert line.endswith("] [ACK] something")


def test_clear() -> None:
    log = DebugLog()
    log.append("x")
    log.clear()
    assert len(log) == 0


def test_handler_mirrors_records() -> None:
    log = DebugLog()
    handler = DebugLogHandler(log)
    test_logger = logging.getLogger("meshhessen.tests.debug_log")
    test_logger.addHandler(handler)
    test_logger.setLevel(logging.DEBUG)
    try:
        test_logger.info("radio said hello")
        test_logger.debug("already recorded", extra=MIRRORED)
    finally:
        test_logger.removeHandler(handler)

    assert len(log) == 1
    assert "[meshhessen.tests.debug_log] radio said hello" in log.lines()[0]


def test_handler_respects_level() -> None:
    log = DebugLog()
    handler = DebugLogHandler(log, level=logging.WARNING)
    test_logger = logging.getLogger("meshhessen.tests.debug_log_level")
    test_logger.addHandler(handler)
    test_logger.setLevel(logging.DEBUG)
    try:
        test_logger.info("quiet")
        test_logger.warning("loud")
    finally:
        test_logger.removeHandler(handler)

    assert len(log) == 1
    assert log.lines()[0].endswith("loud")

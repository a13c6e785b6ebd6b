# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for structured logging helpers."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager

import pytest

from scopefs.patch import apply_patch
from scopefs.query import GrepOptions, grep
from scopefs.runtime.logging import (
    StructuredLogger,
    _coerce_level,
    _JsonFormatter,
    configure_logging,
    get_logger,
)
from scopefs.storage import InMemoryStorage


class _CaptureHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@contextmanager
def _capture(logger: logging.Logger, level: int = logging.DEBUG) -> Iterator[list[logging.LogRecord]]:
    handler = _CaptureHandler()
    previous = logger.level
    logger.addHandler(handler)
    logger.setLevel(level)
    try:
        yield handler.records
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous)
        handler.close()


@pytest.fixture(autouse=True)
def reset_logging_state() -> Iterator[None]:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        yield
    finally:
        for handler in root.handlers:
            if handler not in original_handlers:
                handler.close()
        root.handlers = original_handlers
        root.setLevel(original_level)


def test_structured_logger_emits_event_and_context() -> None:
    logger = get_logger("tests.scopefs.logging", context={"component": "unit"})

    with _capture(logger.logger) as records:
        logger.info("hello", event="tests.event", context={"attempt": 1})

    (record,) = records
    assert getattr(record, "event") == "tests.event"
    assert getattr(record, "context") == {"component": "unit", "attempt": 1}


def test_bind_merges_context() -> None:
    logger = get_logger("tests.scopefs.bind").bind(run="r1")

    assert isinstance(logger, StructuredLogger)
    with _capture(logger.logger) as records:
        logger.warning("bound", event="tests.bound", extra={"path": "a.txt"})

    assert getattr(records[0], "context") == {"run": "r1", "path": "a.txt"}


def test_event_is_required() -> None:
    logger = get_logger("tests.scopefs.required")

    with _capture(logger.logger), pytest.raises(TypeError, match="event"):
        logger.info("no event")


def test_context_must_be_a_mapping() -> None:
    logger = get_logger("tests.scopefs.mapping")

    with _capture(logger.logger), pytest.raises(TypeError, match="mapping"):
        logger.info("bad", event="tests.bad", context=["not", "a", "mapping"])


def test_json_formatter_renders_one_object() -> None:
    logger = get_logger("tests.scopefs.json")
    with _capture(logger.logger) as records:
        logger.info("rendered", event="tests.json", context={"n": 2})

    payload = json.loads(_JsonFormatter().format(records[0]))

    assert payload["message"] == "rendered"
    assert payload["event"] == "tests.json"
    assert payload["context"] == {"n": 2}
    assert payload["level"] == "INFO"


def test_configure_logging_from_env() -> None:
    root = logging.getLogger()
    root.handlers = []

    configure_logging(env={"SCOPEFS_LOG_LEVEL": "debug", "SCOPEFS_LOG_FORMAT": "json"})

    assert root.level == logging.DEBUG
    assert isinstance(root.handlers[0].formatter, _JsonFormatter)


def test_configure_logging_keeps_existing_handlers() -> None:
    root = logging.getLogger()
    sentinel = logging.NullHandler()
    root.handlers = [sentinel]

    configure_logging(level="warning", env={})

    assert root.handlers == [sentinel]
    assert root.level == logging.WARNING


def test_coerce_level() -> None:
    assert _coerce_level(10) == 10
    assert _coerce_level("info") == logging.INFO
    assert _coerce_level("30") == 30
    with pytest.raises(ValueError, match="Unknown log level"):
        _ = _coerce_level("chatty")


def test_grep_logs_skips_at_debug() -> None:
    storage = InMemoryStorage.from_files({".hidden/a.txt": "x", "b.txt": "x"})

    with _capture(logging.getLogger("scopefs.query._walk")) as records:
        _ = asyncio.run(grep(storage, GrepOptions("x")))

    skips = [r for r in records if getattr(r, "event", None) == "grep.skip"]
    assert [getattr(r, "context")["path"] for r in skips] == [".hidden"]
    assert skips[0].levelno == logging.DEBUG


def test_patch_logs_failures_at_warning() -> None:
    diff = "--- a/missing.txt\n+++ b/missing.txt\n@@ -1 +1 @@\n-a\n+b\n"

    with _capture(logging.getLogger("scopefs.patch._engine")) as records:
        _ = asyncio.run(apply_patch(InMemoryStorage(), diff))

    events = {getattr(r, "event") for r in records}
    assert {"patch.file_failed", "patch.complete"} <= events
    failed = next(r for r in records if getattr(r, "event") == "patch.file_failed")
    assert failed.levelno == logging.WARNING

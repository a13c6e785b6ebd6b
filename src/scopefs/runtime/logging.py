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

"""Structured logging helpers for :mod:`scopefs`.

Every record emitted through :class:`StructuredLogger` carries an ``event``
name and a ``context`` mapping. The engines log skipped entries at ``DEBUG``
and per-file patch results at ``INFO``/``WARNING``.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from collections.abc import Mapping, MutableMapping
from datetime import UTC, datetime
from typing import Any, Final, cast, override

__all__ = [
    "StructuredLogger",
    "configure_logging",
    "get_logger",
]

LOG_LEVEL_ENV: Final[str] = "SCOPEFS_LOG_LEVEL"
LOG_FORMAT_ENV: Final[str] = "SCOPEFS_LOG_FORMAT"

_TEXT_FORMAT: Final[str] = (
    "%(asctime)s %(levelname)s %(name)s %(event)s %(message)s %(context)s"
)


class StructuredLogger(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that requires an ``event`` keyword on every call.

    Keyword ``context=`` and any ``extra=`` keys are folded into a single
    ``context`` attribute on the record, on top of the adapter's bound context.
    """

    def __init__(
        self,
        logger: logging.Logger,
        *,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(logger, dict(context or {}))

    def bind(self, **context: object) -> StructuredLogger:
        """Return a copy of this adapter with ``context`` merged in."""

        bound = dict(cast(Mapping[str, object], self.extra))
        bound.update(context)
        return type(self)(self.logger, context=bound)

    @override
    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        payload: dict[str, object] = dict(cast(Mapping[str, object], self.extra))

        inline = kwargs.pop("context", None)
        if inline is not None:
            if not isinstance(inline, Mapping):
                raise TypeError("context must be a mapping when provided.")
            payload.update(cast(Mapping[str, object], inline))

        extra = kwargs.get("extra") or {}
        if not isinstance(extra, Mapping):
            raise TypeError("Structured logs require a mapping for extra.")
        extra_items = dict(cast(Mapping[str, object], extra))

        event = kwargs.pop("event", None)
        if event is None:
            event = extra_items.pop("event", None)
        else:
            _ = extra_items.pop("event", None)
        if not isinstance(event, str):
            raise TypeError("Structured logs require an 'event' field.")

        payload.update(extra_items)
        kwargs["extra"] = {"event": event, "context": payload}
        return msg, kwargs


def get_logger(
    name: str,
    *,
    context: Mapping[str, object] | None = None,
) -> StructuredLogger:
    """Return a :class:`StructuredLogger` for ``name`` with bound ``context``."""

    return StructuredLogger(logging.getLogger(name), context=context)


def configure_logging(
    *,
    level: int | str | None = None,
    json_mode: bool | None = None,
    env: Mapping[str, str] | None = None,
    force: bool = False,
) -> None:
    """Install a stderr handler on the root logger.

    ``level`` falls back to ``SCOPEFS_LOG_LEVEL`` and then ``INFO``.
    ``json_mode`` falls back to ``SCOPEFS_LOG_FORMAT`` (``json`` or ``text``).
    When the root logger already has handlers only the level is updated,
    unless ``force`` is set.
    """

    source = os.environ if env is None else env
    resolved_level = _coerce_level(level or source.get(LOG_LEVEL_ENV) or logging.INFO)
    if json_mode is None:
        json_mode = source.get(LOG_FORMAT_ENV, "text").strip().lower() == "json"

    root = logging.getLogger()
    if root.handlers and not force:
        root.setLevel(resolved_level)
        return

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "text": {"format": _TEXT_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
                "json": {"()": "scopefs.runtime.logging._JsonFormatter"},
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "json" if json_mode else "text",
                }
            },
            "root": {"handlers": ["stderr"], "level": resolved_level},
        }
    )


class _JsonFormatter(logging.Formatter):
    """Render records as one compact JSON object per line."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        event = getattr(record, "event", None)
        if event is not None:
            payload["event"] = event
        context = getattr(record, "context", None)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=repr, separators=(",", ":"))


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    resolved = logging.getLevelNamesMapping().get(name)
    if resolved is None:
        msg = f"Unknown log level: {level!r}"
        raise ValueError(msg)
    return resolved

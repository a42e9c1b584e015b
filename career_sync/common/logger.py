"""
Logging for the reconciliation layer.

Lines written while a mutation runs are tagged with the mirror key it
touches and the operation, for example:

    [mockFollowups_42] [upsert 7] Remote POST ... failed (transient): ...

so the local write, remote call and invalidation of one edit read as one
trace. The same tags ride on the log record as ``storage_key``,
``operation`` and ``entity_id`` and appear as fields in the JSON format.

DEBUG_MODE turns on the per-mutation success traces, which are logged at
DEBUG, without lowering the level of every third-party logger.
"""

import json
import logging
import sys
from typing import Any, Optional

from .config import Config

LIBRARY_LOGGER = "career_sync"

MUTATION_FIELDS = ("storage_key", "operation", "entity_id")


class MutationLogger(logging.LoggerAdapter):
    """Logger bound to one operation on one mirrored key."""

    def __init__(
        self,
        logger: logging.Logger,
        storage_key: str,
        operation: Optional[str] = None,
        entity_id: Any = None,
    ):
        super().__init__(logger, {
            "storage_key": storage_key,
            "operation": operation,
            "entity_id": str(entity_id) if entity_id is not None else None,
        })

    def process(self, msg, kwargs):
        tags = [f"[{self.extra['storage_key']}]"]
        operation = self.extra["operation"]
        if operation:
            entity_id = self.extra["entity_id"]
            tags.append(f"[{operation} {entity_id}]" if entity_id else f"[{operation}]")
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return f"{' '.join(tags)} {msg}", kwargs


def mutation_logger(
    name: str,
    storage_key: str,
    operation: Optional[str] = None,
    entity_id: Any = None,
) -> MutationLogger:
    """
    Get a logger that tags every line with a mutation's key and target.

    Args:
        name: Logger name (usually __name__)
        storage_key: Mirror key being changed (e.g. "mockFollowups_42")
        operation: "upsert", "create" or "delete"
        entity_id: Record being changed

    Returns:
        MutationLogger instance
    """
    return MutationLogger(logging.getLogger(name), storage_key, operation, entity_id)


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line, carrying mutation tags when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for name in MUTATION_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(
    level: str = "INFO",
    format: str = "simple",
    debug: Optional[bool] = None,
) -> None:
    """
    Configure global logging settings.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR)
        format: Log format ("simple" or "json")
        debug: Log career_sync at DEBUG regardless of level.
               If None, uses Config.DEBUG_MODE.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    if debug is None:
        debug = Config.DEBUG_MODE

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if format == "json":
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)
    logging.getLogger(LIBRARY_LOGGER).setLevel(logging.DEBUG if debug else logging.NOTSET)

"""
Unit tests for career_sync/common/logger.py
"""

import json
import logging

import pytest

from career_sync.common.config import Config
from career_sync.common.logger import (
    LIBRARY_LOGGER,
    JsonLineFormatter,
    mutation_logger,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    library_level = logging.getLogger(LIBRARY_LOGGER).level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger(LIBRARY_LOGGER).setLevel(library_level)


class TestMutationLogger:
    def test_prefix_names_key_operation_and_record(self, caplog):
        log = mutation_logger("career_sync.test", "mockFollowups_42", "upsert", 7)

        with caplog.at_level(logging.INFO, logger="career_sync.test"):
            log.info("write ok")

        assert caplog.records[-1].getMessage() == "[mockFollowups_42] [upsert 7] write ok"

    def test_prefix_without_operation(self, caplog):
        log = mutation_logger("career_sync.test", "mockContacts")

        with caplog.at_level(logging.WARNING, logger="career_sync.test"):
            log.warning("plain")

        assert caplog.records[-1].getMessage() == "[mockContacts] plain"

    def test_tags_carried_on_record(self, caplog):
        log = mutation_logger("career_sync.test", "notes.3", "delete", "n1")

        with caplog.at_level(logging.ERROR, logger="career_sync.test"):
            log.log(logging.ERROR, "rejected")

        record = caplog.records[-1]
        assert record.levelname == "ERROR"
        assert (record.storage_key, record.operation, record.entity_id) == ("notes.3", "delete", "n1")


class TestJsonLineFormatter:
    def test_includes_mutation_fields(self):
        record = logging.LogRecord(
            "career_sync.x", logging.WARNING, __file__, 1, 'said "no"', None, None
        )
        record.storage_key = "mockJobApplications"
        record.operation = "upsert"

        entry = json.loads(JsonLineFormatter().format(record))

        assert entry["message"] == 'said "no"'
        assert entry["storage_key"] == "mockJobApplications"
        assert entry["operation"] == "upsert"
        assert "entity_id" not in entry


class TestSetupLogging:
    def test_installs_single_stdout_handler(self, restore_root_logger):
        setup_logging("DEBUG", debug=False)
        setup_logging("WARNING", debug=False)

        assert len(restore_root_logger.handlers) == 1
        assert restore_root_logger.level == logging.WARNING

    def test_json_format(self, restore_root_logger):
        setup_logging("INFO", format="json", debug=False)
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonLineFormatter)

    def test_unknown_level_defaults_to_info(self, restore_root_logger):
        setup_logging("chatty", debug=False)
        assert restore_root_logger.level == logging.INFO

    def test_debug_only_lowers_library_logger(self, restore_root_logger):
        setup_logging("WARNING", debug=True)

        assert restore_root_logger.level == logging.WARNING
        assert logging.getLogger(LIBRARY_LOGGER).getEffectiveLevel() == logging.DEBUG
        assert logging.getLogger("httpx").getEffectiveLevel() == logging.WARNING

    def test_debug_defaults_to_config(self, restore_root_logger, monkeypatch):
        monkeypatch.setattr(Config, "DEBUG_MODE", True)

        setup_logging("INFO")

        assert logging.getLogger(LIBRARY_LOGGER).level == logging.DEBUG

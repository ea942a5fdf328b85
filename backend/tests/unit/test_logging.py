"""Unit tests for structured logging and batch id correlation"""

import json
import logging
import sys

from basketmatch.observability.batch_id import (
    generate_batch_id,
    get_batch_id,
    reset_batch_id,
    set_batch_id,
)
from basketmatch.observability.logging_config import BatchIDFilter, JSONFormatter, configure_logging


def make_record(msg="hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="basketmatch.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
        func="test_func",
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestBatchId:

    def test_default(self):
        assert get_batch_id() == "no-batch-id"

    def test_set_and_reset(self):
        batch_id = generate_batch_id()
        token = set_batch_id(batch_id)
        try:
            assert get_batch_id() == batch_id
        finally:
            reset_batch_id(token)
        assert get_batch_id() == "no-batch-id"

    def test_generated_ids_unique(self):
        assert generate_batch_id() != generate_batch_id()


class TestJSONFormatter:

    def test_basic_fields(self):
        record = make_record("matched milk")
        BatchIDFilter().filter(record)
        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "matched milk"
        assert data["level"] == "INFO"
        assert data["batch_id"] == "no-batch-id"
        assert data["function"] == "test_func"
        assert "timestamp" in data

    def test_extra_fields_copied(self):
        record = make_record(query="2L milk", method="exact", product_id="milk", confidence=1.0)
        data = json.loads(JSONFormatter().format(record))

        assert data["query"] == "2L milk"
        assert data["method"] == "exact"
        assert data["product_id"] == "milk"
        assert data["confidence"] == 1.0

    def test_filter_stamps_current_batch_id(self):
        token = set_batch_id("batch-123")
        try:
            record = make_record()
            assert BatchIDFilter().filter(record) is True
        finally:
            reset_batch_id(token)

        assert json.loads(JSONFormatter().format(record))["batch_id"] == "batch-123"

    def test_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))
        assert data["error"] == "boom"
        assert "ValueError" in data["traceback"]


class TestConfigureLogging:

    def test_installs_single_json_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging("DEBUG", json_format=True)
            configure_logging("DEBUG", json_format=True)

            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert root.level == logging.DEBUG
            assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

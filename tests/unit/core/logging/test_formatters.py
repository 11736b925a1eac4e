"""
Tests for log formatters.

Tests JSONFormatter, TextFormatter, ColoredFormatter, and get_formatter.
"""

import json
import logging
import sys

import pytest

from transfer_engine.core.logging.formatters import (
    ColoredFormatter,
    JSONFormatter,
    TextFormatter,
    extra_fields,
    get_formatter,
)


def make_record(msg="Transfer finished", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="transfer_engine.events",
        level=level,
        pathname="lifecycle.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_extra_fields_only_returns_added_attributes():
    record = make_record(status=200, attempt=1)
    record._private = "x"

    assert extra_fields(record) == {"status": 200, "attempt": 1}


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_format(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "transfer_engine.events"
        assert data["message"] == "Transfer finished"
        assert data["timestamp"].endswith("Z")

    def test_extra_fields_included(self):
        data = json.loads(JSONFormatter().format(
            make_record(method="GET", url="https://api.com", status=200)
        ))

        assert data["method"] == "GET"
        assert data["url"] == "https://api.com"
        assert data["status"] == 200

    def test_non_serializable_values_stringified(self):
        data = json.loads(JSONFormatter().format(make_record(state=object)))

        assert "object" in data["state"]

    def test_exception_included(self):
        try:
            raise RuntimeError("callback exploded")
        except RuntimeError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: callback exploded" in data["exception"]


class TestTextFormatter:
    """Tests for TextFormatter."""

    def test_layout(self):
        output = TextFormatter().format(make_record())

        assert "[INFO]" in output
        assert "[transfer_engine.events]" in output
        assert output.endswith("Transfer finished")

    def test_extra_fields_as_pairs(self):
        output = TextFormatter().format(make_record(status=404, attempt=2))

        assert output.endswith("Transfer finished status=404 attempt=2")


class TestColoredFormatter:
    """Tests for ColoredFormatter."""

    def test_level_is_colored(self):
        output = ColoredFormatter().format(make_record(level=logging.WARNING))

        assert "\033[33mWARNING\033[0m" in output

    def test_record_restored(self):
        record = make_record(level=logging.ERROR)
        ColoredFormatter().format(record)

        assert record.levelname == "ERROR"


class TestGetFormatter:

    @pytest.mark.parametrize("name,cls", [
        ("json", JSONFormatter),
        ("TEXT", TextFormatter),
        ("colored", ColoredFormatter),
    ])
    def test_known(self, name, cls):
        assert type(get_formatter(name)) is cls

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown format type"):
            get_formatter("xml")

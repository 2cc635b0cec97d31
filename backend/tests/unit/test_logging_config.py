"""
Unit tests for the logging setup.

Tests cover:
- JSON records carrying extra fields
- Logger lookup by short name
"""

import json
import logging

import pytest

from backend.src.utils.logging_config import JSONFormatter, get_logger


class TestJSONFormatter:

    def test_extra_fields_become_top_level_keys(self):
        record = logging.LogRecord("collabcal.services", logging.WARNING, __file__, 10, "Invitation batch incomplete", (), None)
        record.event_guid = "evt_01hgw2bbg0000000000000000"
        record.failed_user_ids = ["user-c"]

        payload = json.loads(JSONFormatter().format(record))

        assert payload["level"] == "WARNING"
        assert payload["logger"] == "collabcal.services"
        assert payload["message"] == "Invitation batch incomplete"
        assert payload["event_guid"] == "evt_01hgw2bbg0000000000000000"
        assert payload["failed_user_ids"] == ["user-c"]
        assert "args" not in payload


class TestGetLogger:

    def test_known_names_share_namespace(self):
        assert get_logger("services").name == "collabcal.services"
        assert get_logger("db").propagate is False

    def test_unknown_name_is_rejected(self):
        with pytest.raises(ValueError):
            get_logger("tools")

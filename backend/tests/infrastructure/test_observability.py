"""Structured Logging — JSON formatter surfaces the board's extra fields."""

import json
import logging

from issueboard.infrastructure.observability import JSONFormatter


def test_json_formatter_includes_extras():
    record = logging.LogRecord(
        "issueboard.test", logging.INFO, __file__, 1, "Issue #%s created", (3,), None,
    )
    record.issue_id = 3
    record.event_type = "issue_created"

    log = json.loads(JSONFormatter().format(record))

    assert log["message"] == "Issue #3 created"
    assert log["level"] == "INFO"
    assert log["issue_id"] == 3
    assert log["event_type"] == "issue_created"
    assert "observer_id" not in log

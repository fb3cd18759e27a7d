from __future__ import annotations

import logging

from logging_config import ContextualFormatter, build_logging_config


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("datastore.dataset", logging.WARNING, __file__, 1, "Skipping reading: %s", ("missing created_at",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_extras_in_order() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    line = formatter.format(_record(reason="missing created_at", record_index=3, unrelated="x"))

    assert line == "WARNING Skipping reading: missing created_at | record_index=3 reason=missing created_at"


def test_formatter_skips_empty_context() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["window"])

    assert formatter.format(_record(window=None)) == "Skipping reading: missing created_at"


def test_logging_config_quiets_http_client() -> None:
    config = build_logging_config("DEBUG")

    assert config["root"]["level"] == "DEBUG"
    assert config["loggers"]["httpx"] == {"level": "WARNING"}
    assert config["formatters"]["contextual"]["()"] == "logging_config.ContextualFormatter"

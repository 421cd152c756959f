"""Tests for logging setup and contextual records."""

import logging

import orjson

from mapharvest.core.logging import JSONFormatter, RichConsoleHandler, get_contextual_logger, get_logger, setup_logging


def test_json_formatter_includes_query_context():
    record = logging.LogRecord("mapharvest.harvest", logging.INFO, __file__, 1, "Found %d items", (3,), None)
    record.query = "restaurant near Dapto"
    record.chunk = 2

    data = orjson.loads(JSONFormatter().format(record))

    assert data["msg"] == "Found 3 items"
    assert data["query"] == "restaurant near Dapto"
    assert data["chunk"] == 2
    assert data["level"] == "INFO"


def test_contextual_logger_tags_records(caplog):
    log = get_contextual_logger("harvest", query="restaurant near Bulli", chunk=1)

    with caplog.at_level("INFO", logger="mapharvest"):
        log.info("Searching")

    record = caplog.records[-1]
    assert record.name == "mapharvest.harvest"
    assert record.query == "restaurant near Bulli"
    assert record.chunk == 1


def test_setup_logging_writes_json_lines(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    logger = setup_logging(level="info", log_file=log_file, json_format=True, rich_console=False)
    try:
        get_logger("batch").warning("Cooling down")
        for handler in logger.handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        assert orjson.loads(line)["msg"] == "Cooling down"
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_console_lines_prefixed_with_chunk_and_query():
    handler = RichConsoleHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    record = logging.LogRecord("mapharvest.harvest", logging.WARNING, __file__, 1, "No details [item 2]", (), None)
    record.query = "restaurant near Corrimal"
    record.chunk = 4

    assert handler.render(record).plain == "[chunk 4] [restaurant near Corrimal] No details [item 2]"

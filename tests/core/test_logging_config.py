import json
import logging

import pytest
import structlog

from folio_core.logging_config import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    engine_level = logging.getLogger("sqlalchemy.engine").level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(engine_level)


def test_json_format_renders_events(capsys):
    configure_logging(level="info", fmt="json")
    structlog.get_logger("test").info("article.created", article_id="abc")

    record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert record["event"] == "article.created"
    assert record["article_id"] == "abc"
    assert record["level"] == "info"
    assert "timestamp" in record


def test_unknown_level_falls_back_to_info(capsys):
    configure_logging(level="chatty", fmt="console")
    log = structlog.get_logger("test")
    log.debug("hidden")
    log.info("shown")

    err = capsys.readouterr().err
    assert "shown" in err
    assert "hidden" not in err


def test_sql_echo_stays_quiet():
    configure_logging(level="debug", fmt="console")
    assert logging.getLogger("sqlalchemy.engine").getEffectiveLevel() == logging.WARNING

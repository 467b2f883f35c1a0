import json
import logging

import structlog

from earthview.logging_setup import configure_logging, get_logger


def setup_function() -> None:
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


def teardown_function() -> None:
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


def test_json_logging_emits_key_values(capsys) -> None:
    configure_logging(log_level="INFO", json_format=True)
    get_logger("earthview.test", group_id="bts-chronicle").info("group switch", generation=3)

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["event"] == "group switch"
    assert payload["group_id"] == "bts-chronicle"
    assert payload["generation"] == 3
    assert payload["level"] == "info"


def test_level_filtering(capsys) -> None:
    configure_logging(log_level="WARNING", json_format=True)
    get_logger("earthview.test").info("quiet")
    assert "quiet" not in capsys.readouterr().out

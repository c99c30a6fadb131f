"""Test logging configuration.

Tests for mstblob.utils.logging_config:
    - JSON file output carries context fields
    - Repeated setup_logging() does not duplicate handlers
    - push_context / pop_context add and remove fields
    - Human format includes context between pipes
    - Unknown level / format rejected

Run:
    pytest tests/test_logging_config.py -v
"""

import json
import logging
import logging.handlers

import pytest

from mstblob.utils import logging_config


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    level = root.level
    logging_config.pop_context()
    yield
    logging_config.pop_context()
    root.setLevel(level)
    for handler in list(logging_config._installed_handlers):
        logging.getLogger().removeHandler(handler)
        handler.close()
    logging_config._installed_handlers.clear()


def read_json_lines(path):
    return [json.loads(line) for line in path.read_text().strip().splitlines()]


def test_json_file_with_context(tmp_path):
    log_path = tmp_path / "blob.log"
    logging_config.setup_logging(
        log_level="INFO",
        log_file=str(log_path),
        json=True,
        to_stderr=False,
        context={"app": "blob"},
    )
    logging_config.get_logger("blob_test").info("Generated points: 3")

    rec = read_json_lines(log_path)[0]
    assert rec["msg"] == "Generated points: 3"
    assert rec["app"] == "blob"
    assert rec["lvl"] == "INFO"


def test_setup_is_idempotent(tmp_path):
    log_path = tmp_path / "blob.log"
    for _ in range(3):
        info = logging_config.setup_logging(
            log_level="INFO", log_file=str(log_path), json=True, to_stderr=False
        )
    logging_config.get_logger("blob_test").info("once")

    assert len(info["handlers"]) == 1
    assert len(read_json_lines(log_path)) == 1


def test_push_and_pop_context(tmp_path):
    log_path = tmp_path / "blob.log"
    logging_config.setup_logging(log_file=str(log_path), json=True, to_stderr=False)
    logger = logging_config.get_logger("blob_test")

    logging_config.push_context(seed=7, resolution=64)
    logger.info("with")
    logging_config.pop_context(keys=["seed"])
    logger.info("without")

    first, second = read_json_lines(log_path)
    assert first["seed"] == 7 and first["resolution"] == 64
    assert "seed" not in second and second["resolution"] == 64


def test_human_format():
    formatter = logging_config.ContextFormatter("human", use_color=False)
    logging_config.push_context(app="blob")
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "hello %s", ("world",), None)
    line = formatter.format(record)
    assert "| WARNING  |" in line
    assert "app=blob |" in line
    assert line.endswith("hello world")


def test_level_filtering(tmp_path):
    log_path = tmp_path / "blob.log"
    logging_config.setup_logging(log_level="WARNING", log_file=str(log_path), json=True, to_stderr=False)
    logger = logging_config.get_logger("blob_test")
    logger.info("dropped")
    logger.warning("kept")
    assert [r["msg"] for r in read_json_lines(log_path)] == ["kept"]


def test_unknown_level_rejected():
    with pytest.raises(ValueError):
        logging_config.setup_logging(log_level="LOUD", to_stderr=False)


def test_unknown_format_rejected():
    with pytest.raises(ValueError):
        logging_config.ContextFormatter("xml")


def test_size_rotation_handler(tmp_path):
    info = logging_config.setup_logging(
        log_file=str(tmp_path / "r.log"),
        to_stderr=False,
        rotate={"mode": "size", "max_bytes": 1000, "backup_count": 1},
    )
    assert isinstance(info["handlers"][0], logging.handlers.RotatingFileHandler)

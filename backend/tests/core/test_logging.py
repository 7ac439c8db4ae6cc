import logging

from storelens.core.logging import configure_logging


def test_configure_logging_sets_level_and_quiets_libraries():
    root = logging.getLogger()
    before = root.level
    try:
        logger = configure_logging("debug")
        assert logger.name == "storelens"
        assert root.level == logging.DEBUG
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING
    finally:
        root.setLevel(before)


def test_configure_logging_reads_env_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "error")
    root = logging.getLogger()
    before = root.level
    try:
        configure_logging()
        assert root.level == logging.ERROR
    finally:
        root.setLevel(before)

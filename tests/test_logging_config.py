import logging

from formulaopt.logging_config import setup_logging


def test_setup_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "app.log"
    setup_logging("debug", str(log_file))
    setup_logging("DEBUG", str(log_file))

    logger = logging.getLogger("formulaopt")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2

    logging.getLogger("formulaopt.tests").info("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "formulaopt.tests - INFO - hello" in log_file.read_text()

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


def test_unknown_level_falls_back_to_info():
    setup_logging("chatty")
    logger = logging.getLogger("formulaopt")
    assert logger.level == logging.INFO
    logger.handlers.clear()

import logging

import pytest

import sweepcad
from sweepcad.logging_config import setup_logging
from sweepcad.shape import rect
from sweepcad.sweep import extrude


@pytest.fixture
def package_logger():
    logger = logging.getLogger('sweepcad')
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


def test_library_is_silent_by_default(package_logger):
    assert any(isinstance(h, logging.NullHandler) for h in package_logger.handlers)


def test_setup_logging_writes_file(package_logger, tmp_path):
    log_file = tmp_path / 'sweep.log'
    logger = setup_logging(logging.DEBUG, str(log_file))
    assert logger is package_logger
    assert len(logger.handlers) == 2

    extrude(rect(1, 1), 1.0)
    for handler in logger.handlers:
        handler.flush()
    assert 'sweep: 2 samples' in log_file.read_text()


def test_setup_logging_twice_does_not_duplicate(package_logger):
    setup_logging()
    logger = setup_logging()
    assert len(logger.handlers) == 1


def test_version_string():
    assert isinstance(sweepcad.__version__, str)

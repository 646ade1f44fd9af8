import logging

from logging_setup import configure_logging


def test_configure_logging_sets_root_level():
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging('debug')
        assert root.level == logging.DEBUG
        configure_logging('not-a-level')
        assert root.level == logging.INFO
    finally:
        root.setLevel(previous)

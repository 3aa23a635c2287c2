"""Tests for openapi_toolset/utils/log.py"""

import logging
import os
import sys
from unittest.mock import patch

from openapi_toolset.utils.log import get_logger


def test_logger_writes_to_stderr():
    logger = get_logger("openapi_toolset.test.stderr")

    assert logger.propagate is False
    assert len(logger.handlers) == 1
    assert logger.handlers[0].stream is sys.stderr


def test_handler_added_once():
    get_logger("openapi_toolset.test.once")
    logger = get_logger("openapi_toolset.test.once")
    assert len(logger.handlers) == 1


@patch.dict(os.environ, {"OPENAPI_TOOLSET_LOG_LEVEL": "debug"})
def test_level_from_env():
    assert get_logger("openapi_toolset.test.level").level == logging.DEBUG


@patch.dict(os.environ, {"OPENAPI_TOOLSET_LOG_LEVEL": "nonsense"})
def test_unknown_level_falls_back_to_info():
    assert get_logger("openapi_toolset.test.bad").level == logging.INFO

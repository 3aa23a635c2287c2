"""日志模块 / Logging Module

提供 openapi_toolset 包级别的 logger。
Provides the package level logger for openapi_toolset.

日志输出到 stderr，stdout 留给基于行的协议传输使用。
Logs go to stderr; stdout is reserved for line-oriented protocol transports.
"""

import logging
import os
import sys

LOG_LEVEL_ENV = "OPENAPI_TOOLSET_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str = "openapi_toolset") -> logging.Logger:
    """获取包 logger / Get the package logger

    Args:
        name: logger 名称 / Logger name

    Returns:
        logging.Logger: 已配置的 logger / Configured logger
    """
    _logger = logging.getLogger(name)
    if not _logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        _logger.addHandler(handler)
        _logger.propagate = False

    level = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    _logger.setLevel(getattr(logging, level, logging.INFO))
    return _logger


logger = get_logger()

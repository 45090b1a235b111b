import logging
import sys
import time

import coloredlogs

from aliasbox.config import (
    COLOR_LOG,
)

# "path:line" is quoted so IDE consoles turn it into a link to the source
_log_format = (
    "%(asctime)s - %(name)s - %(levelname)s - %(process)d - "
    '"%(pathname)s:%(lineno)d" - %(funcName)s() - %(request_user)s - %(message)s'
)
_log_formatter = logging.Formatter(_log_format)

# id of the user the request being served is authenticated as, empty otherwise
_REQUEST_USER = ""


def set_request_user(user_id):
    global _REQUEST_USER
    _REQUEST_USER = user_id or ""


class RequestUserFilter(logging.Filter):
    """Put the request user id on every record, so one user's calls can be grepped"""

    def filter(self, record):
        record.request_user = _REQUEST_USER
        return True


def _get_console_handler():
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_log_formatter)
    console_handler.formatter.converter = time.gmtime

    return console_handler


def _get_logger(name) -> logging.Logger:
    logger = logging.getLogger(name)

    logger.setLevel(logging.DEBUG)

    # handler stays at NOTSET, the logger level decides
    logger.addHandler(_get_console_handler())

    logger.addFilter(RequestUserFilter())

    # keep records away from the root logger handlers
    logger.propagate = False

    if COLOR_LOG:
        coloredlogs.install(level="DEBUG", logger=logger, fmt=_log_format)

    return logger


# werkzeug access lines duplicate the after_request debug line
logging.getLogger("werkzeug").disabled = True

# short aliases: LOG.d, LOG.i, LOG.w, LOG.e
logging.Logger.d = logging.Logger.debug
logging.Logger.i = logging.Logger.info
logging.Logger.w = logging.Logger.warning
logging.Logger.e = logging.Logger.exception

LOG = _get_logger("aliasbox")

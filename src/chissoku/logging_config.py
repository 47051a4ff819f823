"""
Process wide logging for the chissoku command. Log records go to standard error so that samples written
to standard output stay machine readable.
"""
import logging
from logging.config import dictConfig
from typing import Iterable, Sequence

_DEFAULT_EXTRA_KEYS = (
    "port",
    "command",
    "outputter",
    "line",
)


class ContextualFormatter(logging.Formatter):
    """ appends the listed `extra` values of a record to the message, as key=value pairs. """

    def __init__(self, fmt=None, datefmt=None, style="%", extra_keys: Iterable[str]=None):
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context_parts = []
        for key in self._extra_keys:
            value = getattr(record, key, None)
            if value is None:
                continue
            context_parts.append("%s=%s" % (key, value))
        if context_parts:
            return "%s | %s" % (message, " ".join(context_parts))
        return message


def configure_logging(debug=False, quiet=False):
    """
    Configures the root logger.
    :param debug: log at DEBUG rather than INFO
    :param quiet: discard all log output
    """
    level = "DEBUG" if debug else "INFO"
    handler = {
        "class": "logging.StreamHandler",
        "level": level,
        "formatter": "contextual",
    }
    if quiet:
        handler = {"class": "logging.NullHandler"}

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": ContextualFormatter,
                    "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S%z",
                    "extra_keys": list(_DEFAULT_EXTRA_KEYS),
                }
            },
            "handlers": {"default": handler},
            "root": {"handlers": ["default"], "level": level},
        }
    )

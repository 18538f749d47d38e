"""JSON log output for the ``authgrant`` logger."""

import logging
from typing import Union

from pythonjsonlogger import jsonlogger

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'
RENAMED_FIELDS = {'levelname': 'level', 'asctime': 'timestamp'}


def setup_logger(level: Union[int, str] = logging.INFO) -> None:
    """Send ``authgrant`` records to stderr as JSON, at ``level``."""
    logger = logging.getLogger('authgrant')
    logger.setLevel(level)
    if any(isinstance(h.formatter, jsonlogger.JsonFormatter)
           for h in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(jsonlogger.JsonFormatter(
        LOG_FORMAT, rename_fields=RENAMED_FIELDS
    ))
    logger.addHandler(handler)

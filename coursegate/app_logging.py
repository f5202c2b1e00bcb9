"""Log record formatting for the service."""

import logging
from typing import Union

from pythonjsonlogger.json import JsonFormatter

FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logging(level: Union[int, str] = logging.INFO,
                  json: bool = True) -> None:
    """Install a single stream handler on the root logger."""
    handler = logging.StreamHandler()
    if json:
        formatter: logging.Formatter = JsonFormatter(
            FORMAT,
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        )
    else:
        formatter = logging.Formatter(FORMAT)
    handler.setFormatter(formatter)
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, '_coursegate', False):
            root.removeHandler(existing)
    handler._coursegate = True  # type: ignore
    root.addHandler(handler)
    if isinstance(level, str) and level.isdigit():
        level = int(level)
    root.setLevel(level)

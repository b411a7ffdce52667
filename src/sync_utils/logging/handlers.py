"""
Logger wrappers that carry contextual fields.

ContextLogger binds fields such as the entity name and run id once, so
every message emitted during a batch run can be correlated.
"""

import logging
from typing import Any


class ContextLogger:
    """
    Logger wrapper that adds bound context to every message

    Usage:
        log = ContextLogger(__name__, entity="tickets", run_id="ab12")
        log.info("Row inserted", key="T-100")
        # extra = {"entity": "tickets", "run_id": "ab12", "key": "T-100"}
    """

    def __init__(self, name: str, **context):
        self.logger = logging.getLogger(name)
        self.context = context

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        extra = {**self.context, **kwargs}
        # stacklevel=3 reports the caller of debug()/info(), not this wrapper
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra, stacklevel=3)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def bind(self, **context) -> "ContextLogger":
        """Return a new ContextLogger with additional bound fields."""
        return ContextLogger(self.logger.name, **{**self.context, **context})

    def get_context(self) -> dict[str, Any]:
        return self.context.copy()

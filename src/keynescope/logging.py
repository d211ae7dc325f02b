"""
Loggers for keynescope.

Every module logs through ``getLogger(__name__)``, which hands out a
:class:`ScopeLogger`. Besides the standard levels it has ``deep()`` for
``DEEP_DEBUG`` (5), the level used for individual slider edits.

What goes where
---------------
- WARNING: narrator failures
- INFO: one line per settled session
- DEBUG: regime switches, dropped stale explanations, close()
- DEEP_DEBUG: every edit inside a burst

Levels are applied from a :class:`~keynescope.config.LoggingConfig` by
:func:`configure`; :meth:`Explorer.init <keynescope.explorer.Explorer.init>`
does that with the ``logging`` section of the merged configuration.

>>> from keynescope import logging
>>> log = logging.getLogger("keynescope.session")
>>> log.deep("G=210.0")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from keynescope.config.schema import LoggingConfig

DEEP_DEBUG = 5
logging.addLevelName(DEEP_DEBUG, "DEEP")

ROOT = "keynescope"


class ScopeLogger(logging.Logger):
    """Logger with a ``deep()`` method for DEEP_DEBUG records."""

    def deep(self, msg: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(DEEP_DEBUG):
            self._log(DEEP_DEBUG, msg, args, **kwargs)


logging.setLoggerClass(ScopeLogger)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)


def getLogger(name: str | None = None) -> ScopeLogger:
    """Return the :class:`ScopeLogger` called *name*."""
    return logging.getLogger(name)  # type: ignore[return-value]


def level_value(name: str) -> int:
    """
    Numeric value of a level name.

    Accepts the standard names in any case plus ``DEEP_DEBUG`` / ``DEEP``.

    Raises
    ------
    ValueError
        If *name* is not a known level.
    """
    key = name.upper()
    if key in ("DEEP_DEBUG", "DEEP"):
        return DEEP_DEBUG
    value = logging.getLevelName(key)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level {name!r}")
    return value


def configure(config: LoggingConfig) -> None:
    """
    Set the package level and the per-module levels of *config*.

    Module names are relative to the package (``"session"`` means
    ``keynescope.session``).
    """
    for logger_name, level in config.levels(ROOT).items():
        logging.getLogger(logger_name).setLevel(level)

#########################################################################################
##
##                              CENTRALIZED LOGGER MANAGEMENT
##                                  (utils/logger.py)
##
#########################################################################################

# IMPORTS ===============================================================================

import logging
import sys


# CLASS =================================================================================

class LoggerManager:
    """Singleton that owns the ``audiogrowth`` logger hierarchy.

    All modules request child loggers through :meth:`get_logger`, so a single
    call to :meth:`configure` controls the output of the whole package.
    Logging is disabled by default (a ``NullHandler`` is attached) so that
    library use stays silent until an application opts in.

    Example
    -------
    .. code-block:: python

        from audiogrowth import LoggerManager

        LoggerManager().configure(enabled=True, level=logging.INFO)
        log = LoggerManager().get_logger("opt.grouped")
        log.info("fitting %d groups", 3)
    """

    ROOT_NAME = "audiogrowth"
    DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance


    def __init__(self):
        if self._initialized:
            return
        self._initialized = True

        self.root_logger = logging.getLogger(self.ROOT_NAME)
        self.root_logger.addHandler(logging.NullHandler())
        self.root_logger.propagate = True
        self._handler = None
        self._loggers = {}


    def configure(
        self,
        enabled: bool = True,
        level: int = logging.INFO,
        output=None,
        fmt: str | None = None,
    ) -> None:
        """Attach (or remove) the package handler.

        Parameters
        ----------
        enabled : bool
            Install a handler when true, remove it when false.
        level : int
            Level applied to the package root logger.
        output : str or stream, optional
            File path or stream; defaults to ``sys.stdout``.
        fmt : str, optional
            Record format; defaults to :attr:`DEFAULT_FORMAT`.
        """
        if self._handler is not None:
            self.root_logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None

        if not enabled:
            self.root_logger.setLevel(logging.WARNING)
            return

        if isinstance(output, str):
            handler = logging.FileHandler(output)
        else:
            handler = logging.StreamHandler(output or sys.stdout)

        handler.setFormatter(logging.Formatter(fmt or self.DEFAULT_FORMAT))
        self.root_logger.addHandler(handler)
        self.root_logger.setLevel(level)
        self._handler = handler


    def get_logger(self, name: str) -> logging.Logger:
        """Return the child logger ``audiogrowth.<name>``."""
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(f"{self.ROOT_NAME}.{name}")
        return self._loggers[name]


    def set_level(self, level: int, name: str | None = None) -> None:
        """Set the level of the root logger or of a single child logger."""
        if name is None:
            self.root_logger.setLevel(level)
        else:
            self.get_logger(name).setLevel(level)

import logging
import sys
import threading
from typing import Optional, TextIO

from .log_service import get_log_service


def configure_logging(
    level: int = logging.INFO,
    *,
    name: str = "CollectionImporter",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Create or fetch the application logger and route all records through the LogService.

    The LogService writes to ``stream`` (stderr by default) itself, so no
    separate StreamHandler is added. Library loggers (``backend.importing.*``)
    propagate to the root and end up there too.
    """

    service = get_log_service()
    service.set_stream(stream if stream is not None else sys.stderr)
    service.ensure_installed()
    logging.getLogger().setLevel(level)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger


def install_global_exception_hooks() -> None:
    """Install process-wide hooks so uncaught exceptions are always logged."""

    def _handle_exception(exc_type, exc_value, exc_tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logging.getLogger("CollectionImporter.unhandled").critical(
            "Unhandled exception",
            exc_info=(exc_type, exc_value, exc_tb),
        )

    def _handle_thread_exception(args: threading.ExceptHookArgs) -> None:
        _handle_exception(args.exc_type, args.exc_value, args.exc_traceback)

    sys.excepthook = _handle_exception
    threading.excepthook = _handle_thread_exception


__all__ = ["configure_logging", "install_global_exception_hooks"]

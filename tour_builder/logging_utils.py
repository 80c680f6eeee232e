"""Logging setup shared by the CLI and the API."""
import logging
from typing import Iterable, List, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log every font lookup or pooled connection at DEBUG
NOISY_LOGGERS = ("reportlab", "PIL", "urllib3")

_CONFIGURED = False


def _handlers(log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def quiet_loggers(level: int, names: Iterable[str] = NOISY_LOGGERS) -> None:
    """Keep third-party loggers at INFO or above even when we run at DEBUG."""
    for name in names:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger once: console always, plus `log_file` when
    given. Later calls are ignored.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return
    logging.basicConfig(level=level, handlers=_handlers(log_file), force=True)
    quiet_loggers(level)
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

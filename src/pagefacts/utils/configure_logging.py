# src/pagefacts/utils/configure_logging.py
import logging
import sys
from typing import Dict, Optional, Union

from tqdm import tqdm

from pagefacts.managers.config_manager import config_manager

Level = Union[str, int]


class LogWithTqdm(logging.Handler):
    """
    A logging handler that redirects output to `tqdm.write()`, so log lines
    emitted during a batch extraction do not break the progress bar.
    """

    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg, file=sys.stderr)
            self.flush()
        except Exception:
            self.handleError(record)


def _to_level(level: Level, fallback: int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), fallback)
    return level


def configure_logger(
        general_level: Optional[Level] = None,
        module_specific_levels: Optional[Dict[str, Level]] = None,
        silenced_loggers: Optional[Dict[str, Level]] = None,
) -> logging.Logger:
    """
    Configures the root logger with a TQDM-friendly handler.

    Arguments left as None fall back to the 'logging' section of settings.json.
    Returns the configured root logger.
    """
    cfg = config_manager.get_nested("logging", {}) or {}
    general_level = general_level if general_level is not None else cfg.get("level", "INFO")
    module_specific_levels = module_specific_levels if module_specific_levels is not None else cfg.get("module_levels", {})
    silenced_loggers = silenced_loggers if silenced_loggers is not None else cfg.get("silenced", {})

    handler = LogWithTqdm()
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(_to_level(general_level, logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name, level in (module_specific_levels or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.INFO))

    # Muzzle noisy loggers by setting their level high.
    for name, level in (silenced_loggers or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.CRITICAL))

    return root_logger

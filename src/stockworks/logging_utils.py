"""Log file setup shared by the Stock Studio CLI and GUI.

The CLI writes ``stock_studio.log`` and the Streamlit app
``stock_studio_gui.log``, both under ``STOCKWORKS_LOG_DIR`` or ``<project>/logs``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

__all__ = ["configure_logging"]

_MANAGED_HANDLER_FLAG = "_stockworks_managed_handler"


def _default_log_directory() -> Path:
    """``STOCKWORKS_LOG_DIR`` if set, else ``logs/`` in the project root."""

    env_override = os.environ.get("STOCKWORKS_LOG_DIR")
    if env_override:
        return Path(env_override).expanduser()

    module_path = Path(__file__).resolve()
    for candidate in module_path.parents:
        if (candidate / "pyproject.toml").exists() or (candidate / ".git").exists():
            return candidate / "logs"

    return Path.cwd() / "logs"


def _remove_managed_handlers(logger: logging.Logger) -> None:
    """Detach any handlers previously installed by :func:`configure_logging`."""

    for handler in list(logger.handlers):
        if getattr(handler, _MANAGED_HANDLER_FLAG, False):
            logger.removeHandler(handler)
            handler.close()


def configure_logging(
    log_name: str,
    *,
    level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    include_console: bool = True,
) -> Path:
    """Route root logging to ``<log_dir>/<log_name>.log`` (and the console).

    Calling this again replaces the handlers installed by the previous call,
    so a process can switch log files without duplicating output.
    """

    target_directory = (
        Path(log_dir).expanduser() if log_dir else _default_log_directory()
    )
    target_directory.mkdir(parents=True, exist_ok=True)
    log_path = target_directory / f"{log_name}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _remove_managed_handlers(root_logger)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    setattr(file_handler, _MANAGED_HANDLER_FLAG, True)
    root_logger.addHandler(file_handler)

    if include_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        setattr(console_handler, _MANAGED_HANDLER_FLAG, True)
        root_logger.addHandler(console_handler)

    logging.captureWarnings(True)

    return log_path

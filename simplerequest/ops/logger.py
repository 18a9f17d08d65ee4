"""
Logging setup for applications that use simplerequest.

The library modules only log through ``logging.getLogger(__name__)`` and
never install handlers themselves. Call ``setup_logger`` once at startup to
see request timings, transport failures and cookie file warnings, e.g.
``setup_logger("nightly-check", logs_dir=None, name="simplerequest")``.
"""
import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional


def setup_logger(
    run_id: str,
    logs_dir: Optional[str] = "logs",
    name: Optional[str] = None,
    console_level: int = logging.INFO,
) -> logging.Logger:
    """
    Configures a logger (the root logger unless ``name`` is given):
    - Console: console_level (INFO by default)
    - File: DEBUG level (logs_dir/debug_{timestamp}_{run_id}.log), skipped when logs_dir is None
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Re-running setup must not stack handlers
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logs_dir is not None:
        log_path = Path(logs_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        filename = f"debug_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{run_id}.log"
        file_handler = logging.FileHandler(log_path / filename, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

"""
Logging Configuration
Sets up the application logger.
"""
import logging
import sys
from typing import Optional

_HANDLER_TAG = "_pareto_handler"


def setup_logging(level=logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configures the root logger (the app modules are flat, so there is no
    package namespace to hang handlers on).

    Args:
        level: Logging level, as an int (logging.DEBUG) or a name ("DEBUG").
        log_file: Optional path to save logs to a file.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger()
    logger.setLevel(level)

    # Streamlit re-executes the script on every interaction
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    setattr(console_handler, _HANDLER_TAG, True)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_TAG, True)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")

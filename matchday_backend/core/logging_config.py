import logging

import colorlog

from matchday_backend.core.config import TEST_MODE


def setup_logging(level: int = None):
    """Configure console logging with colours for the whole application."""
    if level is None:
        level = logging.DEBUG if TEST_MODE else logging.INFO

    console_formatter = colorlog.ColoredFormatter(
        "%(green)s%(asctime)s%(reset)s - %(purple)s%(name)s - %(log_color)s%(levelname)s%(reset)s - %(message)s",
        log_colors={
            'DEBUG':    'cyan',
            'INFO':     'blue',
            'WARNING':  'yellow',
            'ERROR':    'red',
            'CRITICAL': 'red,bg_white',
        },
        style='%'
    )

    console_handler = colorlog.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers
    root_logger.handlers = []
    root_logger.addHandler(console_handler)

    # SQL echo is too noisy for match-day logs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

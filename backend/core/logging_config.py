import logging
import sys

from backend.core import config


def configure_logging(level: str | None = None) -> None:
    """Install a single stdout handler with ISO timestamps on the root logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%dT%H:%M:%S',
        )
    )

    root_logger.setLevel(level or config.LOG_LEVEL)
    root_logger.addHandler(handler)

    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('multipart').setLevel(logging.WARNING)

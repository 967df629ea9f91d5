from pythonjsonlogger import jsonlogger
from logging.handlers import RotatingFileHandler
from pathlib import Path
import logging

from API.config import settings

LOGGER_NAME = "mql_generator"


def setup_logger(name: str = LOGGER_NAME) -> None:
    logger = logging.getLogger(name)
    if logger.handlers:
        return

    logger.setLevel(settings.LOG_LEVEL.upper())

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(message)s"
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if not settings.LOG_FILE:
        return

    log_path = Path(settings.LOG_FILE)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        filename=log_path,
        maxBytes=10_000_000,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

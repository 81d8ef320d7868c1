# backend/floodwatch/logging_setup.py
import logging
from logging.handlers import RotatingFileHandler
import os

LOG_DIR = os.getenv("FLOODWATCH_LOG_DIR", "logs")
LOG_LEVEL = os.getenv("FLOODWATCH_LOG_LEVEL", "INFO").upper()
LOG_TO_CONSOLE = os.getenv("FLOODWATCH_LOG_CONSOLE", "false").lower() in ("1", "true", "yes")
os.makedirs(LOG_DIR, exist_ok=True)

FORMAT = "%(asctime)s - [%(levelname)s] - %(name)s - %(message)s"


def setup_logger(name: str = "floodwatch"):
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    # uvicorn --reload and test runs import this module more than once
    if logger.handlers:
        return logger

    formatter = logging.Formatter(FORMAT)
    file_handler = RotatingFileHandler(
        os.path.join(LOG_DIR, f"{name}.log"),
        maxBytes=5_000_000,
        backupCount=3,
        encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if LOG_TO_CONSOLE:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)
    return logger

logger = setup_logger()

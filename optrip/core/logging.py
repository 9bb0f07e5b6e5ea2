import logging
from fastapi.logger import logger as fastapi_logger

from optrip.core.settings import get_settings


def setup_logging(level: str | None = None):
    # Configure logging format
    logging_format = "%(asctime)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    log_level = (level or get_settings().LOG_LEVEL).upper()

    # Configure root logger
    logging.basicConfig(
        level=log_level,
        format=logging_format,
        datefmt=date_format
    )

    # Configure FastAPI logger
    fastapi_logger.handlers = logging.getLogger("uvicorn").handlers
    fastapi_logger.setLevel(log_level)

import sys

from loguru import logger

from momentum.core.config import settings

logger.configure(
    handlers=[
        {
            "sink": sys.stdout,
            "level": settings.log_level.upper(),
            "format": "{time:YYYY-MM-DD HH:mm:ss} - {level} - {message}",
        }
    ]
)

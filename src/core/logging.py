import logging
import sys

from src.core.config import get_settings

def setup_logging(level=None):
    level = (level or get_settings().LOG_LEVEL).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - [%(levelname)s] - %(name)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Silence chatty third-party loggers; cloudinary rides on urllib3
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)

    service_logger = logging.getLogger("vidtube")
    service_logger.setLevel(level)
    return service_logger

logger = setup_logging()

import uvicorn

from app.logging_config import get_logger, setup_logging
from app.settings import get_settings

settings = get_settings()

# Setup logging before uvicorn imports app.main
setup_logging(log_level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)

logger = get_logger(__name__)

if __name__ == "__main__":
    logger.info("Starting %s on %s:%s", settings.APP_NAME, settings.HOST, settings.PORT)
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())

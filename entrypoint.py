import uvicorn
import os
from constants import HOST, PORT, LOG_FILE
from logging_config import setup_logging

# Setup logging before importing app
log_level = os.getenv("LOG_LEVEL", "DEBUG")
setup_logging(log_level=log_level, log_file=LOG_FILE)

from app import app  # noqa: E402,F401
from logging_config import get_logger  # noqa: E402

logger = get_logger(__name__)

if __name__ == "__main__":
    logger.info(f"Starting Live Classroom relay on {HOST}:{PORT}")
    # Single worker: room membership is per-process memory
    uvicorn.run("app:app", host=HOST, port=PORT, workers=1)

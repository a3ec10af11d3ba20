import logging
import sys
from blog_enhancer.json_log_formatter import JsonFormatter

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PLAIN_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "LiteLLM", "litellm", "asyncio", "uvicorn.access")

def setup_logging(log_level="INFO", json_format=False):
    """
    Sets up logging for the application.

    Args:
        log_level (str): The minimum log level to capture (e.g., "DEBUG", "INFO").
        json_format (bool): Emit JSON lines instead of plain text.
    """
    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Remove any existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    if json_format:
        stream_handler.setFormatter(JsonFormatter())
    else:
        stream_handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=PLAIN_DATEFMT))
    logger.addHandler(stream_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"Logging setup complete with level {log_level}")

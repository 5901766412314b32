import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach a stdout handler to the ``app`` logger.

    The root logger is left to uvicorn; only this package's loggers are
    raised to *level* so SQLAlchemy and httpx stay quiet.
    """
    logger = logging.getLogger("app")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.propagate = False

    logger.info("Logging is set up (level=%s)", level.upper())
    return logger

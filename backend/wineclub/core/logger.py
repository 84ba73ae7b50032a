import logging
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    """
    Route standard logging records (uvicorn, fastapi, sqlalchemy) into loguru.
    """

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller the record originated from
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(level: str = "INFO", serialize: bool = True) -> None:
    logger.remove()

    # JSON lines on stdout; the hosting platform collects stdout
    logger.add(
        sys.stdout,
        serialize=serialize,
        enqueue=True,
        level=level.upper(),
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for _log in ["uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"]:
        _logger = logging.getLogger(_log)
        _logger.handlers = [InterceptHandler()]
        _logger.propagate = False

    logger.info("Structured logging (Loguru) initialized")

import logging
import logging.handlers
import sys
from recipe_api.config import log_file_path
from recipe_api.settings import settings

QUIET_LIBRARIES = ("httpx", "httpcore", "urllib3", "apscheduler")


def setup_logging(
    log_file_path: str, enable_console_logging: bool = True, log_level: str = "INFO"
):
    """
    Send every log record of the process to a rotating file, and optionally stdout.

    Args:
        log_file_path: Where the rotating log file lives
        enable_console_logging: Also log to stdout; leave off when uvicorn already does
        log_level: Name of the level for the root logger; unknown names fall back to INFO

    Safe to call more than once: an existing handler for the same file (or an
    existing stdout handler) is reused rather than duplicated.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers = []
    if not any(
        isinstance(h, logging.handlers.RotatingFileHandler)
        and h.baseFilename == log_file_path
        for h in root_logger.handlers
    ):
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_file_path,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8",
            )
        )

    if enable_console_logging and not any(
        type(h) is logging.StreamHandler for h in root_logger.handlers
    ):
        handlers.append(logging.StreamHandler(sys.stdout))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


# uvicorn owns the console
logger = setup_logging(
    log_file_path, enable_console_logging=False, log_level=settings.log_level
)

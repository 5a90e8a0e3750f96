import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional
import structlog
from structlog.stdlib import ProcessorFormatter, BoundLogger, add_logger_name
from structlog.processors import (
    JSONRenderer,
    TimeStamper,
    add_log_level,
    StackInfoRenderer,
    format_exc_info,
)
from rich.console import Console
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer


LOGGER_NAME = "switchrun"


def _shared_processors() -> list:
    return [
        add_log_level,
        TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        StackInfoRenderer(),
        format_exc_info,
    ]


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True,
) -> BoundLogger:
    """
    Configures structlog on top of the stdlib "switchrun" logger and returns
    a bound logger for the caller to hand to the engine.

    Args:
        level: Threshold applied to the logger and every handler.
        log_file: Path of a rotating JSON log file. No file handler when None.
        console: Attach a rich console handler.
    """
    shared_processors = _shared_processors()

    structlog.configure(
        processors=shared_processors
        + [
            add_logger_name,
            ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    std_logger = logging.getLogger(LOGGER_NAME)
    std_logger.setLevel(level)
    std_logger.propagate = False
    teardown_logging()

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=1024 * 1024,
            backupCount=2,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        json_formatter = ProcessorFormatter(
            foreign_pre_chain=shared_processors + [add_logger_name],
            processor=JSONRenderer(),
        )
        file_handler.setFormatter(json_formatter)
        std_logger.addHandler(file_handler)

    if console:
        console_handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            markup=False,
            show_path=False,
            show_time=False,
        )
        console_handler.setLevel(level)
        console_formatter_final = ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processor=ConsoleRenderer(colors=False),
            fmt="%(message)s",
        )
        console_handler.setFormatter(console_formatter_final)
        std_logger.addHandler(console_handler)

    return structlog.get_logger(LOGGER_NAME)


def teardown_logging() -> None:
    """Detaches and closes every handler installed by setup_logging."""
    std_logger = logging.getLogger(LOGGER_NAME)
    for handler in std_logger.handlers[:]:
        std_logger.removeHandler(handler)
        handler.close()

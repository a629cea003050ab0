"""
Loguru configuration for the booking engine.

- One bound logger carries the service context plus the Logger.io chain fields
- stdout always; an hourly rotated file as well when DEBUG is on (or under TEST_LOG_DIR)
- stdlib logging (uvicorn, sqlalchemy, confluent-kafka, httpx) is routed into loguru
"""

from contextvars import ContextVar
from datetime import datetime, timezone
from enum import StrEnum
import logging
import os
import re
import sys
from typing import TYPE_CHECKING

from loguru import logger as loguru_logger


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.constant.path import LOG_DIR
from src.platform.logging.service_context import get_service_context


LOG_DIR = os.environ.get('TEST_LOG_DIR', LOG_DIR)

# Argument names whose values never reach the log
SENSITIVE_KEYWORDS = {
    'password',
    'secret',
    'token',
    'authorization',
    'card_number',
    'cvv',
}

# Loggers that are only useful when debugging the library itself
QUIET_LOGGERS = ('aiosqlite', 'asyncio', 'httpcore', 'confluent_kafka')

chain_start_time_var: ContextVar[float] = ContextVar('chain_start_time_var', default=0)
call_depth_var: ContextVar[int] = ContextVar('call_depth_var', default=0)


class ExtraField(StrEnum):
    SERVICE_CONTEXT = 'service_context'
    CHAIN_START_TIME = 'chain_start_time'
    CALL_TARGET = 'call_target'


# uvicorn access line: '127.0.0.1:50412 - "POST /api/booking HTTP/1.1" 201'
_ACCESS_LOG_STATUS = re.compile(r'"[A-Z]+ \S+ HTTP/[\d.]+" (\d{3})')


def access_log_level(message: str) -> str | None:
    """Log level for an access line by status class; None for anything else."""
    match = _ACCESS_LOG_STATUS.search(message)
    if not match:
        return None
    status_code = int(match.group(1))
    if status_code >= 500:
        return 'ERROR'
    if status_code >= 400:
        return 'WARNING'
    return 'SUCCESS'


def _bind_defaults() -> 'LoguruLogger':
    return loguru_logger.bind(
        **{
            ExtraField.SERVICE_CONTEXT: get_service_context(),
            ExtraField.CHAIN_START_TIME: '',
            ExtraField.CALL_TARGET: '',
        }
    )


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno <= logging.DEBUG and record.name.startswith(QUIET_LOGGERS):
            return

        message = record.getMessage()
        level: str | int | None = access_log_level(message)
        if level is None:
            try:
                level = loguru_logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

        # Walk back to the frame that called the stdlib logger
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        custom_logger.opt(depth=depth, exception=record.exc_info).log(level, message)


io_log_format = ' | '.join(
    (
        f'<c>{{extra[{ExtraField.SERVICE_CONTEXT}]}}</>',
        '<lvl>{level:<8}</>',
        f'<c>{{file}}::{{function}}:{{line}}</>=><y>{{extra[{ExtraField.CALL_TARGET}]}}</>',
        '{message}',
        '<lk>{elapsed}</>',
        f'<lk>{{extra[{ExtraField.CHAIN_START_TIME}]:<18}}</>',
    )
)


loguru_logger.remove()
custom_logger = _bind_defaults()

min_log_level = 'DEBUG' if settings.DEBUG else 'INFO'
custom_logger.add(sys.stdout, format=io_log_format, level=min_log_level, enqueue=True)

# Production ships stdout only
if settings.DEBUG:
    hour = datetime.now(timezone.utc).strftime('%Y-%m-%d_%H')
    prefix = 'test_' if os.environ.get('TEST_LOG_DIR') else ''
    custom_logger.add(
        f'{LOG_DIR}/{prefix}{hour}.log',
        format=io_log_format,
        rotation='1 hour',
        retention='7 days',
        compression='gz',
        enqueue=True,
        level=min_log_level,
    )

logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

"""
Service context stamped on every log line: `{service}@{env}:{instance}`.

The instance part is the container hostname when running under Docker or
Kubernetes, so lines from parallel API replicas and reaper workers can be told apart.
"""

from functools import lru_cache
import os
import socket

from src.platform.config.core_setting import settings


@lru_cache(maxsize=1)
def get_service_context() -> str:
    instance = os.getenv('HOSTNAME') or socket.gethostname() or str(os.getpid())
    return f'{settings.SERVICE_NAME}@{settings.DEPLOY_ENV}:{instance[:12]}'

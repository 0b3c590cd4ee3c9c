"""JSON log output for the service process."""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from swish_connect.settings import settings


class ServiceFilter(logging.Filter):
    """Stamp app name and environment on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.app_name = settings.APP_NAME
        record.app_env = settings.APP_ENV
        return True


def configure_logging() -> None:
    """Configure the root logger once per process."""

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ServiceFilter())
    handler.setFormatter(
        JsonFormatter("%(asctime)s %(levelname)s %(app_name)s %(app_env)s %(name)s %(message)s")
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.LOG_LEVEL)

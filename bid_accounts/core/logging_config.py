"""
Logging setup shared by the API process and the Alembic environment
"""
import logging

from bid_accounts.core.request_id import request_id_ctx


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamp every record with the id of the request being served"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = request_id_ctx.get() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())

    # Idempotent so that repeated app factories (tests) do not stack handlers
    for handler in root.handlers:
        if getattr(handler, "_bid_accounts", False):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    handler._bid_accounts = True
    root.addHandler(handler)

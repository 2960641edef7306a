"""
Structured logging for the CPQ pricing backend.

One JSON object per line in production (LOG_FORMAT=json), a compact text line
for local runs. Pricing, bulk-guard and request logs pass their identifiers
(quotation, bulk operation, team, request) as LogRecord extras; the formatter
lifts the known ones to top-level keys so log search can filter on them.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

# LogRecord extras lifted into the JSON line when present
CPQ_LOG_FIELDS = (
    "quotation_id", "operation_id", "operation_type", "team_id", "request_id",
    "duration_ms", "http_method", "http_path", "http_status",
)

# Third-party loggers kept at WARNING; SQL echo and per-request access logs
# duplicate what the middleware already reports
QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "sqlalchemy.engine", "aiosqlite", "asyncpg")


class JSONFormatter(logging.Formatter):
    """JSON structured log formatter for production."""

    def __init__(self, fields: Sequence[str] = CPQ_LOG_FIELDS):
        super().__init__()
        self.fields = tuple(fields)

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        for name in self.fields:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        return json.dumps(log_entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable line with the request / team / operation ids appended."""

    def __init__(self):
        super().__init__("%(asctime)s [%(name)s] %(levelname)s: %(message)s")

    def format(self, record):
        line = super().format(record)
        tags = [
            f"{name}={getattr(record, name)}"
            for name in ("request_id", "team_id", "operation_id", "quotation_id")
            if getattr(record, name, None) is not None
        ]
        return f"{line} [{' '.join(tags)}]" if tags else line


def setup_logging(
    level: str = "INFO",
    json_output: bool = True,
    quiet: Optional[Iterable[str]] = None,
):
    """Configure application logging (call once at app start)."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else TextFormatter())
    root.handlers = [handler]

    for name in QUIET_LOGGERS if quiet is None else quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

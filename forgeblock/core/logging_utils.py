import logging
import json
import datetime as dt
from typing import Dict, Any, Optional, Set

# Attributes every LogRecord has; anything else on a record came in via `extra=`
LOG_RECORD_BUILTIN_ATTRS: Set[str] = {
    "args", "asctime", "created", "exc_info", "exc_text", "filename",
    "funcName", "levelname", "levelno", "lineno", "module", "msecs",
    "message", "msg", "name", "pathname", "process", "processName",
    "relativeCreated", "stack_info", "thread", "threadName", "taskName",
}

# Extra fields that must never reach a log sink verbatim
REDACTED_KEYS: Set[str] = {"token", "auth_token", "password", "current_password", "authorization"}


class JSONLineFormatter(logging.Formatter):
    """Formats each record as one JSON object per line, with `extra=` fields included."""

    def __init__(self, *, fmt_keys: Optional[Dict[str, str]] = None, datefmt: Optional[str] = None):
        super().__init__(datefmt=datefmt)
        # Output key -> LogRecord attribute, e.g. {"level": "levelname"}
        self.fmt_keys = fmt_keys if fmt_keys is not None else {}

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self._prepare_log_dict(record), default=str)

    def _prepare_log_dict(self, record: logging.LogRecord) -> Dict[str, Any]:
        if self.datefmt:
            timestamp = self.formatTime(record, self.datefmt)
        else:
            timestamp = dt.datetime.fromtimestamp(record.created, tz=dt.timezone.utc).isoformat()

        log_dict: Dict[str, Any] = {"timestamp": timestamp, "message": record.getMessage()}
        for key, attr in self.fmt_keys.items():
            if attr in ("message", "timestamp"):
                log_dict[key] = log_dict[attr]
                continue
            value = getattr(record, attr, None)
            if value is not None:
                log_dict[key] = value

        if record.exc_info:
            log_dict["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_dict["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in LOG_RECORD_BUILTIN_ATTRS or key in log_dict or key in self.fmt_keys.values():
                continue
            log_dict[key] = "[redacted]" if key.lower() in REDACTED_KEYS else value

        return log_dict

"""JSON log formatting for condexpr.

One JSON object per line. Records emitted inside an evaluation carry the
expression (and caller label, when known) as top-level keys, so log
pipelines can filter on them directly.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord has, plus those added by formatting and by
# EvaluationContextFilter. Anything else came from `extra=`.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName", "expression", "caller", "expr_tag"}

_EVALUATION_FIELDS = ("expression", "caller")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON objects.

    Keys: timestamp (ISO-8601 UTC), level, logger, message, then
    expression and caller during an evaluation, extra (fields passed via
    `extra=`) and exception.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in _EVALUATION_FIELDS:
            value = getattr(record, field, None)
            if value:
                entry[field] = value

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)

"""
Logging setup for the API and the CLI scripts.

LOG_FORMAT=json emits one JSON object per line for log aggregators; anything
else gives the human-readable text format. LOG_LEVEL defaults to INFO.
Both are read at call time so tests can patch the environment.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone

# Context attributes passed via `extra=` that are copied into JSON output
CONTEXT_FIELDS = ('client_id', 'execution_id', 'mode')

# Third-party loggers that are noisy at INFO
_NOISY_LOGGERS = [
    'urllib3',
    'sqlalchemy.engine',
    'redis',
    'werkzeug',
]

TEXT_FORMAT = '[%(asctime)s] %(levelname)s %(name)s — %(message)s'


class JSONFormatter(logging.Formatter):
    """Single-line JSON log formatter."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _resolve_level():
    level_name = os.getenv('LOG_LEVEL', 'INFO').upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(app=None):
    """
    Install a single stderr handler on the root logger.

    When a Flask app is passed its own logger is routed through the root
    handler instead of Flask's default one.
    """
    level = _resolve_level()
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if os.getenv('LOG_FORMAT', 'text').lower() == 'json':
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.handlers.clear()
        app.logger.propagate = True

import logging
from http.client import HTTPConnection
from sys import stderr
from typing import Optional

from mqcloud.common.environments import env
from mqcloud.feature_flags import in_global_debug_mode

LOG_FORMAT = '[ %(asctime)s | %(levelname)s ] %(name)s: %(message)s'
_LEVEL_NAMES = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def _parse_level(raw_level: str) -> int:
    level_name = raw_level.strip().upper()
    return getattr(logging, level_name) if level_name in _LEVEL_NAMES else logging.WARNING


default_logging_level: int = env('MQCLOUD_LOG_LEVEL',
                                 default=logging.WARNING,
                                 transform=_parse_level,
                                 description='Log level of the library (ignored in the debug mode)')

if in_global_debug_mode:
    default_logging_level = logging.DEBUG
    # Dump the raw HTTP exchanges.
    HTTPConnection.debuglevel = 1

logging.getLogger('urllib3').setLevel(default_logging_level)

_stderr_handler = logging.StreamHandler(stderr)
_stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))


class TraceableLogger(logging.Logger):
    """ Logger named "<name>,<trace ID>,<span ID>" while it belongs to a span """

    def __init__(self,
                 base_name: str,
                 level: int = logging.NOTSET,
                 trace_id: Optional[str] = None,
                 span_id: Optional[str] = None):
        super().__init__(f'{base_name},{trace_id},{span_id}' if trace_id and span_id else base_name, level)

        self.base_name = base_name
        self.trace_id = trace_id
        self.span_id = span_id

        self.addHandler(_stderr_handler)

    def fork(self,
             trace_id: Optional[str] = None,
             span_id: Optional[str] = None,
             level: Optional[int] = None) -> 'TraceableLogger':
        """ Create a logger with the same base name for the given span """
        return TraceableLogger(self.base_name, level or self.level, trace_id, span_id)


def get_logger(name: str, level: Optional[int] = None) -> TraceableLogger:
    return TraceableLogger(name, level or default_logging_level)

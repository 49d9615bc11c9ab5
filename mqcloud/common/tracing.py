import random
import time
from typing import Any, Dict, List, Optional

from mqcloud.common.logger import TraceableLogger


def _random_hex(bits: int) -> str:
    return f'{random.getrandbits(bits):0{bits // 4}x}'


def _generate_trace_id() -> str:
    """ 128-bit trace ID where the upper 32 bits are the current epoch time in seconds """
    return f'{(int(time.time()) << 96) | random.getrandbits(96):032x}'


class Span:
    """ Distributed tracing span

        Every API call opens one span and every HTTP attempt (including retries) opens a child span, so that the
        B3 headers of all attempts share the same trace ID.
    """

    def __init__(self,
                 trace_id: Optional[str] = None,
                 span_id: Optional[str] = None,
                 parent: Optional['Span'] = None,
                 origin: Any = None,
                 metadata: Optional[Dict[str, Any]] = None):
        self.__parent = parent
        self.__trace_id = (parent.trace_id if parent is not None else trace_id) or _generate_trace_id()
        self.__span_id = span_id or _random_hex(64)
        self.__children: List[Span] = []
        self.__metadata = metadata or dict()
        self.__active = True

        if parent is not None:
            self.__origin = parent.origin
        elif origin is None or isinstance(origin, str):
            self.__origin = origin
        else:
            self.__origin = f'{type(origin).__module__}.{type(origin).__name__}'

    @property
    def active(self) -> bool:
        return self.__active

    @property
    def origin(self) -> Optional[str]:
        return self.__origin

    @property
    def parent(self) -> Optional['Span']:
        return self.__parent

    @property
    def children(self) -> List['Span']:
        return list(self.__children)

    @property
    def trace_id(self) -> str:
        return self.__trace_id

    @property
    def span_id(self) -> str:
        return self.__span_id

    @property
    def metadata(self) -> Dict[str, Any]:
        return self.__metadata

    def __enter__(self):
        assert self.__active, 'This span has already been closed.'
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.__active = False

    def new_span(self, metadata: Optional[Dict[str, Any]] = None) -> 'Span':
        child_span = Span(parent=self, metadata=metadata)
        self.__children.append(child_span)
        return child_span

    def create_http_headers(self) -> Dict[str, str]:
        headers = {
            'X-B3-TraceId': self.trace_id,
            'X-B3-SpanId': self.span_id,
            'X-B3-Sampled': '0',
        }

        if self.parent:
            headers['X-B3-ParentSpanId'] = self.parent.span_id

        return headers

    def create_span_logger(self, parent_logger: TraceableLogger) -> TraceableLogger:
        return parent_logger.fork(trace_id=self.trace_id, span_id=self.span_id)

    def __repr__(self):
        parent_span_id = self.parent.span_id if self.parent else None
        return (f'Span(trace_id={self.trace_id}, span_id={self.span_id}, parent_span_id={parent_span_id}, '
                f'origin={self.origin}, metadata={self.metadata})')

from threading import Event
from time import monotonic
from typing import Optional


class DeadlineExceededError(RuntimeError):
    """ Raised when the request context expires before a response is received """


class RequestCancelledError(DeadlineExceededError):
    """ Raised when the request context is cancelled by the caller """


class RequestContext:
    """
    Cancellation and deadline for one API call, including all of its retries.

    The context is checked before every attempt, and the remaining time bounds the wait for the response of the
    in-flight attempt. Cancellation is cooperative: an attempt that is already waiting for a response is abandoned
    only when the deadline passes.

    This is safe to cancel from another thread.
    """

    def __init__(self, timeout: Optional[float] = None, deadline: Optional[float] = None):
        """
        :param timeout: Seconds from now until the context expires
        :param deadline: Absolute expiry time, on the clock of :func:`time.monotonic`
        """
        if timeout is not None and deadline is not None:
            raise ValueError('Either timeout or deadline can be given, but not both.')

        self.__deadline = monotonic() + timeout if timeout is not None else deadline
        self.__cancelled = Event()

    @classmethod
    def with_timeout(cls, seconds: float) -> 'RequestContext':
        return cls(timeout=seconds)

    @property
    def deadline(self) -> Optional[float]:
        return self.__deadline

    @property
    def cancelled(self) -> bool:
        return self.__cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.__deadline is not None and monotonic() >= self.__deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def cancel(self):
        self.__cancelled.set()

    def remaining(self) -> Optional[float]:
        """ Seconds left before the deadline, or None without a deadline """
        if self.__deadline is None:
            return None
        return max(0.0, self.__deadline - monotonic())

    def raise_if_done(self):
        if self.cancelled:
            raise RequestCancelledError('The request context has been cancelled.')
        if self.expired:
            raise DeadlineExceededError('The deadline of the request context has been exceeded.')

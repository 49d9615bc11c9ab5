from abc import ABC, abstractmethod
from collections import deque
from logging import Logger
from threading import Lock
from typing import Any, Callable, Deque, Generic, List, Optional, TypeVar
from uuid import uuid4

from mqcloud.client.base_exceptions import InvalidParameterError, MissingRequiredParameterError
from mqcloud.client.models import BaseListOptions, DetailedResponse, PaginatedCollection
from mqcloud.common.logger import get_logger
from mqcloud.http.context import RequestContext

T = TypeVar('T')


class InactiveLoaderError(StopIteration):
    """ Raised when the loader is asked for more results after it has been exhausted """


class ResultLoader(ABC):
    """ Source of results, loaded one batch at a time """
    _logger: Optional[Logger] = None

    @property
    def logger(self) -> Logger:
        if self._logger is None:
            self._logger = get_logger(f'{type(self).__name__}/{uuid4()}')
        return self._logger

    @abstractmethod
    def load(self) -> List[Any]:
        """ Load the next batch """

    @abstractmethod
    def has_more(self) -> bool:
        """ Whether another batch can be loaded """


class ResultIterator(Generic[T]):
    """ Iterate through the items of a loader, loading the next batch only when the buffer runs out """

    def __init__(self, loader: ResultLoader):
        self._lock = Lock()
        self._loader = loader
        self._pending: Deque[T] = deque()
        self._depleted = False

    def __iter__(self):
        return self

    def __next__(self) -> T:
        with self._lock:
            while not self._pending:
                if self._depleted or not self._loader.has_more():
                    self._depleted = True
                    raise StopIteration()
                self._pending.extend(self._loader.load())
            return self._pending.popleft()


ListFunction = Callable[..., DetailedResponse]


class OffsetPager(ResultLoader, Generic[T]):
    """
    Drive a list operation with the "offset" query parameter found in the "next" link of each page

    The pager starts with the given list options, which must not have the offset set. After each page, the offset
    of the next request is taken from ``next.href``. The pager is exhausted when a page has no next link, or when the
    next link has no offset.

    Pages are fetched one at a time, in order.
    """

    def __init__(self,
                 list_function: ListFunction,
                 list_options: Optional[BaseListOptions],
                 context: Optional[RequestContext] = None):
        if list_options is None:
            raise MissingRequiredParameterError('list_options')

        if list_options.offset is not None:
            raise InvalidParameterError('The "offset" of the list options must not be set as the pager controls it.')

        list_options.check_required()

        self._list_function = list_function
        self._list_options = list_options.model_copy(deep=True)
        self._context = context
        self._has_next = True
        self._next_offset: Optional[int] = None
        self._page_count = 0

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def next_offset(self) -> Optional[int]:
        return self._next_offset

    def has_next(self) -> bool:
        return self._has_next

    def get_next(self) -> List[T]:
        """
        Fetch the next page

        :raises InactiveLoaderError: when the pager is already exhausted
        :raises MalformedPaginationLinkError: when the next link has a non-integer offset
        """
        if not self._has_next:
            raise InactiveLoaderError('No more results available')

        page_options = self._list_options.model_copy(update={'offset': self._next_offset})
        response = self._list_function(page_options, context=self._context)
        page: Optional[PaginatedCollection] = response.result

        if page is None:
            self.logger.warning(f'Page #{self._page_count + 1} (offset: {self._next_offset}) has no content. '
                                f'The pager stops here.')
            self._has_next = False
            return []

        next_offset = page.get_next_offset()

        self._page_count += 1
        self._next_offset = next_offset
        self._has_next = next_offset is not None

        self.logger.debug(f'Page #{self._page_count}: {len(page.items())} item(s), next offset: {next_offset}')

        return page.items()

    def get_all(self) -> List[T]:
        """ Fetch all remaining pages and return every item in order """
        all_items: List[T] = []
        while self.has_next():
            all_items.extend(self.get_next())
        return all_items

    def iter_items(self) -> ResultIterator[T]:
        return ResultIterator(self)

    # Implement ResultLoader
    def load(self) -> List[T]:
        return self.get_next()

    def has_more(self) -> bool:
        return self.has_next()

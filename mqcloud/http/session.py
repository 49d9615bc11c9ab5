import platform
import sys
from contextlib import AbstractContextManager
from typing import Any, Dict, List, Optional
from uuid import uuid4

import backoff
from pydantic import BaseModel, Field
from requests import PreparedRequest, Request, RequestException, Response, Session

from mqcloud.common.logger import get_logger
from mqcloud.common.tracing import Span
from mqcloud.constants import __version__
from mqcloud.feature_flags import detailed_error, in_global_debug_mode
from mqcloud.http.authenticators.abstract import Authenticator, AuthenticationError
from mqcloud.http.context import RequestContext, DeadlineExceededError


class TransportError(RuntimeError):
    """ Raised when the request cannot be delivered or the response cannot be received (connection, DNS, socket) """


class HttpError(RuntimeError):
    """ Raised when the server responds with a non-2xx status code """

    def __init__(self, response: Response, trace_context: Optional[Span] = None):
        super(HttpError, self).__init__(response, trace_context)

    @property
    def response(self) -> Response:
        return self.args[0]

    @property
    def trace(self) -> Optional[Span]:
        return self.args[1]

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def details(self) -> Any:
        """ The decoded error payload, or None when the body is not JSON """
        try:
            return self.response.json()
        except ValueError:
            return None

    @property
    def message(self) -> Optional[str]:
        """ The error message extracted from the common shapes of error payloads """
        details = self.details

        if not isinstance(details, dict):
            return None

        errors = details.get('errors')
        if isinstance(errors, list) and errors and isinstance(errors[0], dict) and errors[0].get('message'):
            return errors[0]['message']

        for key in ('error', 'message', 'errorMessage'):
            if isinstance(details.get(key), str):
                return details[key]

        return None

    def __str__(self):
        response: Response = self.response

        error_feedback = f'HTTP {response.status_code}'

        message = self.message
        response_text = response.text.strip()

        if message:
            error_feedback = f'{error_feedback}: {message}'
        elif len(response_text) == 0:
            error_feedback = f'{error_feedback} (empty response)'
        else:
            error_feedback = f'{error_feedback}: {response_text}'

        if detailed_error or in_global_debug_mode:
            error_feedback = f'{error_feedback}\n\nURL: {response.url}\nResponse Body:\n{response_text}'

        return error_feedback


class ClientError(HttpError):
    pass


class ServerError(HttpError):
    pass


class RetryPolicy(BaseModel):
    """ Automatic retry with exponential backoff for transient failures """
    max_retries: int = Field(default=4, ge=0)
    """ Maximum number of retries after the first attempt """

    max_retry_interval: float = Field(default=30.0, gt=0)
    """ Maximum total time (in seconds) spent on one call, including all retries and waiting """

    backoff_factor: float = Field(default=1.0, gt=0)
    """ Multiplier of the exponential wait between attempts (1, 2, 4, ... seconds by default) """

    retryable_status_codes: List[int] = Field(default_factory=lambda: [429, 500, 502, 503, 504])


class HttpSession(AbstractContextManager):
    def __init__(self,
                 uuid: Optional[str] = None,
                 authenticator: Optional[Authenticator] = None,
                 retry_policy: Optional[RetryPolicy] = None,
                 verify_ssl: bool = True,
                 timeout: Optional[float] = None,
                 session: Optional[Session] = None):
        super().__init__()

        self.__id = uuid or str(uuid4())
        self.__logger = get_logger(f'{type(self).__name__}/{self.__id}')
        self.__authenticator = authenticator
        self.__session: Optional[Session] = session
        self.__owns_session = False
        self.__retry_policy = retry_policy
        self.__verify_ssl = verify_ssl
        self.__timeout = timeout

        if not self.__authenticator:
            self.__logger.info('No authenticator is given to this session.')

    @property
    def _session(self) -> Session:
        if not self.__session:
            self.__session = Session()
            self.__owns_session = True
            self.__session.headers.update({
                'User-Agent': self.generate_http_user_agent()
            })

        return self.__session

    @property
    def authenticator(self) -> Optional[Authenticator]:
        return self.__authenticator

    @property
    def retry_policy(self) -> Optional[RetryPolicy]:
        return self.__retry_policy

    @retry_policy.setter
    def retry_policy(self, policy: Optional[RetryPolicy]):
        self.__retry_policy = policy

    def __enter__(self):
        super().__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        super().__exit__(exc_type, exc_val, exc_tb)
        self.close()

    def submit(self,
               method: str,
               url: str,
               context: Optional[RequestContext] = None,
               stream: bool = False,
               trace_context: Optional[Span] = None,
               **kwargs) -> Response:
        """
        Send one API call, retrying the transient failures according to the retry policy

        The keyword arguments are the ones of :class:`requests.Request` (params, headers, json, data, files).

        :raises AuthenticationError: when the authenticator fails to decorate the request
        :raises DeadlineExceededError: when the context expires or is cancelled before a response is received
        :raises TransportError: when the request cannot be delivered
        :raises ClientError: when the server responds with HTTP 4xx
        :raises ServerError: when the server responds with HTTP 5xx
        """
        trace_context = trace_context or Span(origin=self)
        logger = trace_context.create_span_logger(self.__logger)

        # The request is prepared once so that a streamed multipart body is read only once across all retries.
        try:
            prepared_request = self._session.prepare_request(Request(method.upper(), url, **kwargs))
        except RequestException as e:
            raise TransportError(f'Unable to prepare the request for {url}: {e}') from e

        logger.debug(f'{prepared_request.method} {prepared_request.url}')

        policy = self.__retry_policy

        if not policy or policy.max_retries == 0:
            return self._submit_once(prepared_request, context, stream, trace_context)

        def give_up(e: Exception) -> bool:
            if context and context.done:
                return True
            elif isinstance(e, HttpError):
                return e.status_code not in policy.retryable_status_codes
            else:
                return False

        def report_retry(details: Dict[str, Any]):
            logger.warning(f'{prepared_request.method} {prepared_request.url}: attempt #{details["tries"]} failed '
                           f'({details.get("exception")}); retrying in {details["wait"]:.2f}s')

        sender = backoff.on_exception(backoff.expo,
                                      (HttpError, TransportError),
                                      max_tries=policy.max_retries + 1,
                                      max_time=policy.max_retry_interval,
                                      giveup=give_up,
                                      on_backoff=report_retry,
                                      logger=None,
                                      factor=policy.backoff_factor)(self._submit_once)

        return sender(prepared_request, context, stream, trace_context)

    def _submit_once(self,
                     prepared_request: PreparedRequest,
                     context: Optional[RequestContext],
                     stream: bool,
                     trace_context: Span) -> Response:
        if context:
            context.raise_if_done()

        attempt = prepared_request.copy()

        if self.__authenticator:
            try:
                self.__authenticator.authenticate(attempt)
            except AuthenticationError:
                raise
            except Exception as e:
                raise AuthenticationError(f'The authenticator ({self.__authenticator.authentication_type}) failed '
                                          f'to authenticate the request: {e}') from e

        if context:
            # The authenticator may have used up the rest of the deadline.
            context.raise_if_done()

        timeout = self.__timeout
        remaining = context.remaining() if context else None
        if remaining is not None:
            if remaining <= 0:
                raise DeadlineExceededError('The deadline of the request context has been exceeded.')
            timeout = remaining if timeout is None else min(timeout, remaining)

        with trace_context.new_span(metadata={'method': attempt.method, 'url': attempt.url}) as sub_span:
            sub_logger = sub_span.create_span_logger(self.__logger)
            attempt.headers.update(sub_span.create_http_headers())

            try:
                response = self._session.send(attempt, stream=stream, timeout=timeout, verify=self.__verify_ssl)
            except RequestException as e:
                if context and context.done:
                    raise DeadlineExceededError(f'{attempt.method} {attempt.url}: the deadline of the request '
                                                f'context has been exceeded while waiting for the response') from e
                raise TransportError(f'{attempt.method} {attempt.url}: {e}') from e

            if stream and response.ok:
                sub_logger.debug(f'Response/HTTP {response.status_code} (streaming)')
            else:
                # Error responses are read in full, so that the connection is released before any retry.
                sub_logger.debug(f'Response/HTTP {response.status_code} ({len(response.content)}B)')
                sub_logger.debug(f'Response/Body:\n{response.text}')

        if response.ok:
            return response

        self._raise_http_error(response, trace_context=trace_context)

    def close(self):
        """ Release the HTTP session. A session given by the caller is left open. """
        if self.__session and self.__owns_session:
            self.__session.close()
        self.__session = None
        self.__owns_session = False

    def _raise_http_error(self, response: Response, trace_context: Span):
        raise (ClientError if response.status_code < 500 else ServerError)(response, trace_context=trace_context)

    def __del__(self):
        self.close()

    @staticmethod
    def generate_http_user_agent(comments: Optional[List[str]] = None) -> str:
        final_comments = [
            f'Platform/{platform.platform()}',
            'Python/{}.{}.{}'.format(*sys.version_info),
            *(comments or list()),
        ]

        return f'mqcloud-python-sdk/{__version__} {" ".join(final_comments)}'.strip()

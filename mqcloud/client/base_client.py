from abc import ABC
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import quote
from uuid import uuid4

from pydantic import ValidationError
from requests import Response, Session

from mqcloud.client.base_exceptions import MissingRequiredParameterError, MissingServiceUrlError, \
    ResponseProcessingError, InvalidParameterError
from mqcloud.client.models import ApiRequest, ClientConfiguration, DetailedResponse
from mqcloud.common.logger import get_logger
from mqcloud.common.tracing import Span
from mqcloud.feature_flags import in_global_debug_mode
from mqcloud.http.authenticators.abstract import Authenticator
from mqcloud.http.context import RequestContext
from mqcloud.http.session import HttpSession, RetryPolicy


class BaseServiceClient(ABC):
    """ The base class of all service clients """

    def __init__(self,
                 configuration: ClientConfiguration,
                 authenticator: Authenticator,
                 session: Optional[Session] = None):
        if authenticator is None:
            raise InvalidParameterError('The authenticator is required.')

        authenticator.validate()

        self._uuid = str(uuid4())
        self._configuration = configuration.model_copy(deep=True)
        self._configuration.url = self._configuration.url.rstrip('/')
        self._authenticator = authenticator
        self._logger = get_logger(f'{self._configuration.service_name}/{self._uuid}'
                                  if in_global_debug_mode
                                  else self._configuration.service_name)
        self._external_session = session
        self._http_session: Optional[HttpSession] = None

    @property
    def configuration(self) -> ClientConfiguration:
        return self._configuration

    @property
    def authenticator(self) -> Authenticator:
        return self._authenticator

    def get_service_url(self) -> str:
        return self._configuration.url

    def set_service_url(self, url: Optional[str]):
        self._configuration.url = (url or '').rstrip('/')

    def set_default_headers(self, headers: Optional[Dict[str, str]]):
        self._configuration.headers = dict(headers or dict())

    def enable_retries(self, max_retries: int = 4, max_retry_interval: float = 30.0, **kwargs):
        """ Retry the transient failures (network errors, HTTP 429 and 5xx) with exponential backoff """
        self._configuration.retry = RetryPolicy(max_retries=max_retries,
                                                max_retry_interval=max_retry_interval,
                                                **kwargs)
        if self._http_session:
            self._http_session.retry_policy = self._configuration.retry

    def disable_retries(self):
        self._configuration.retry = None
        if self._http_session:
            self._http_session.retry_policy = None

    def create_http_session(self) -> HttpSession:
        """ Create the HTTP session wrapper """
        return HttpSession(self._uuid,
                           authenticator=self._authenticator,
                           retry_policy=self._configuration.retry,
                           verify_ssl=self._configuration.verify_ssl,
                           timeout=self._configuration.timeout,
                           session=self._external_session)

    @property
    def http_session(self) -> HttpSession:
        if not self._http_session:
            self._http_session = self.create_http_session()
        return self._http_session

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self._http_session:
            self._http_session.close()
            self._http_session = None

    def send_request(self, request: ApiRequest, context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Build, send and decode one API call """
        trace = Span(origin=self, metadata={'operation': request.operation_id})
        url = self._build_url(request)

        response = self.http_session.submit(request.method,
                                            url,
                                            context=context,
                                            stream=request.binary_response,
                                            trace_context=trace,
                                            params=self._build_query(request.query),
                                            headers=self._build_headers(request),
                                            json=request.json_body,
                                            data=request.form,
                                            files=request.files)

        return DetailedResponse(result=self._decode(request, response, trace),
                                status_code=response.status_code,
                                headers=dict(response.headers),
                                response=response)

    def _build_url(self, request: ApiRequest) -> str:
        base_url = self._configuration.url

        if not base_url:
            raise MissingServiceUrlError()

        encoded_params: Dict[str, str] = dict()

        for name, value in request.path_params.items():
            if value is None or str(value) == '':
                raise MissingRequiredParameterError(name, request.operation_id)
            encoded_params[name] = quote(str(value), safe='')

        return base_url + request.path.format(**encoded_params)

    @staticmethod
    def _build_query(query: Dict[str, Any]) -> Dict[str, str]:
        params: Dict[str, str] = dict()

        for name, value in query.items():
            if value is None:
                continue
            elif isinstance(value, Enum):
                params[name] = str(value.value)
            elif isinstance(value, bool):
                params[name] = 'true' if value else 'false'
            elif isinstance(value, (list, tuple)):
                params[name] = ','.join(str(v) for v in value)
            else:
                params[name] = str(value)

        return params

    def _build_headers(self, request: ApiRequest) -> Dict[str, str]:
        headers = dict(self._configuration.headers)
        headers['Accept'] = request.accept

        accept_language = request.accept_language or self._configuration.accept_language
        if accept_language:
            headers['Accept-Language'] = accept_language

        headers.update(request.headers or dict())

        return headers

    def _decode(self, request: ApiRequest, response: Response, trace: Span) -> Any:
        logger = trace.create_span_logger(self._logger)

        if request.binary_response:
            if response.headers.get('Content-Length') == '0':
                response.close()
                return None
            # The caller owns the stream.
            return response.raw

        if not response.content:
            return None

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f'{request.operation_id}: the response body is not a valid JSON string.')
            logger.error(f'\nHTTP {response.status_code} (Content-Type: {response.headers.get("Content-Type")})'
                         f'\n\n{response.text}\n')
            raise ResponseProcessingError(f'invalid JSON response body ({e})', response) from e

        if request.result_type is None:
            return body

        try:
            return request.result_type.model_validate(body)
        except ValidationError as e:
            logger.error(f'{request.operation_id}: unexpected response body:\n{response.text}')
            raise ResponseProcessingError(f'unable to interpret the response body as '
                                          f'{request.result_type.__name__} ({e})', response) from e

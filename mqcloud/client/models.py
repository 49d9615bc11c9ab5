from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type
from urllib.parse import urlparse, parse_qs

from pydantic import BaseModel, ConfigDict, Field
from requests import Response

from mqcloud.client.base_exceptions import MissingRequiredParameterError, MalformedPaginationLinkError
from mqcloud.constants import DEFAULT_SERVICE_NAME, DEFAULT_SERVICE_URL
from mqcloud.http.session import RetryPolicy


class ClientConfiguration(BaseModel):
    """ Static configuration of a service client """
    url: str = DEFAULT_SERVICE_URL
    """ Base URL of the service """

    service_name: str = DEFAULT_SERVICE_NAME

    accept_language: Optional[str] = None
    """ Default value of the Accept-Language header (e.g., "en-US") """

    headers: Dict[str, str] = Field(default_factory=dict)
    """ Headers sent with every request """

    verify_ssl: bool = True

    timeout: Optional[float] = None
    """ Default socket timeout in seconds (None to wait indefinitely) """

    retry: Optional[RetryPolicy] = None
    """ Retry policy (None to disable retries) """


class OperationOptions(BaseModel):
    """
    Base class of the options of a single API operation

    Every field is optional at the type level where None means "unset". The fields listed in ``required_fields`` are
    checked right before the request is built.
    """
    model_config = ConfigDict(validate_assignment=True, arbitrary_types_allowed=True)

    required_fields: ClassVar[Tuple[str, ...]] = tuple()

    headers: Optional[Dict[str, str]] = None
    """ Custom headers for this call only """

    accept_language: Optional[str] = None
    """ Accept-Language for this call only (overriding the client default) """

    def check_required(self, operation: Optional[str] = None):
        for field_name in self.required_fields:
            value = getattr(self, field_name)
            if value is None or (isinstance(value, str) and not value):
                raise MissingRequiredParameterError(field_name, operation)


class BaseListOptions(OperationOptions):
    offset: Optional[int] = Field(default=None, ge=0)
    """ Number of items to skip before the first item of the page """

    limit: Optional[int] = Field(default=None, ge=1)
    """ Maximum number of items on a page """


class Link(BaseModel):
    href: Optional[str] = None


class PaginatedCollection(BaseModel):
    """ One page of a list operation """
    offset: Optional[int] = None
    limit: Optional[int] = None
    total_count: Optional[int] = None
    first: Optional[Link] = None
    next: Optional[Link] = None
    previous: Optional[Link] = None

    def items(self) -> List[Any]:
        raise NotImplementedError()

    def get_next_offset(self) -> Optional[int]:
        """
        The offset of the next page, or None when this is the last page

        :raises MalformedPaginationLinkError: when the "offset" of the next link is not an integer
        """
        if not self.next or not self.next.href:
            return None
        return extract_offset(self.next.href)


def extract_offset(href: str) -> Optional[int]:
    """ Extract the "offset" query parameter from a (relative or absolute) URL """
    offsets = parse_qs(urlparse(href).query).get('offset')

    if not offsets:
        return None

    raw_offset = offsets[0]

    try:
        return int(raw_offset)
    except ValueError:
        raise MalformedPaginationLinkError(href, raw_offset)


class ApiRequest(BaseModel):
    """ Everything needed to send one API call """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    operation_id: str
    method: str
    path: str
    """ Path template relative to the service URL, e.g., "/v1/{service_instance_guid}/users" """

    path_params: Dict[str, Optional[str]] = Field(default_factory=dict)
    query: Dict[str, Any] = Field(default_factory=dict)
    headers: Optional[Dict[str, str]] = None
    accept_language: Optional[str] = None
    accept: str = 'application/json'

    json_body: Optional[Any] = None
    form: Optional[Dict[str, Any]] = None
    files: Optional[Dict[str, Any]] = None

    result_type: Optional[Type[BaseModel]] = None
    """ Model of the JSON response body (None to return the decoded JSON as-is) """

    binary_response: bool = False
    """ Return the undecoded response stream instead of decoding the body """


class DetailedResponse(BaseModel):
    """ The result of an API call along with the HTTP response """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    result: Optional[Any] = None
    """ The result model, the binary stream (for downloads), or None when the response body is empty """

    status_code: int
    headers: Dict[str, str] = Field(default_factory=dict)
    response: Optional[Response] = Field(default=None, exclude=True, repr=False)

    def get_result(self) -> Any:
        return self.result

    def get_header(self, name: str) -> Optional[str]:
        return self.response.headers.get(name) if self.response is not None else self.headers.get(name)

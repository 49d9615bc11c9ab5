from typing import Optional

from requests import Response


class MissingRequiredParameterError(ValueError):
    """ Raised when a required option of an operation is not set or empty. No request is sent. """

    def __init__(self, parameter_name: str, operation: Optional[str] = None):
        feedback = f'Missing required parameter: {parameter_name}'
        if operation:
            feedback = f'{feedback} (operation: {operation})'
        super(MissingRequiredParameterError, self).__init__(feedback)
        self.parameter_name = parameter_name


class InvalidParameterError(ValueError):
    """ Raised when the given options cannot be used for the requested operation """


class MissingServiceUrlError(ValueError):
    """ Raised when the client is asked to make a request without the base service URL """

    def __init__(self):
        super(MissingServiceUrlError, self).__init__('The service URL is required but not set.')


class ResponseProcessingError(RuntimeError):
    """ Raised when a successful (2xx) response has a body that cannot be decoded into the expected result """

    def __init__(self, message: str, response: Response):
        super(ResponseProcessingError, self).__init__(f'An error occurred while processing the operation response: '
                                                      f'{message}')
        self.__response = response

    @property
    def response(self) -> Response:
        return self.__response

    @property
    def status_code(self) -> int:
        return self.__response.status_code


class MalformedPaginationLinkError(ValueError):
    """ Raised when the "offset" query parameter of a pagination link is not an integer """

    def __init__(self, href: str, raw_offset: str):
        super(MalformedPaginationLinkError, self).__init__(f'Unable to extract the offset from {href}: '
                                                           f'{raw_offset!r} is not an integer.')
        self.href = href
        self.raw_offset = raw_offset

from abc import ABC

from requests import PreparedRequest
from requests.auth import AuthBase

from mqcloud.common.logger import get_logger


class AuthenticationError(RuntimeError):
    """ Raised when the authenticator cannot produce valid credentials for the outgoing request """


class InvalidAuthenticatorConfigurationError(ValueError):
    """ Raised when the authenticator is constructed with unusable settings """


class Authenticator(AuthBase, ABC):
    """
    Base class for all authenticators

    The HTTP session invokes :meth:`authenticate` on every prepared request right before it is sent. Since this is
    also a :class:`requests.auth.AuthBase`, an authenticator can be given to plain ``requests`` calls as ``auth``.
    """

    def __init__(self):
        self._logger = get_logger(type(self).__name__)

    @property
    def authentication_type(self) -> str:
        raise NotImplementedError()

    def validate(self):
        """
        Check the configuration of the authenticator

        :raises InvalidAuthenticatorConfigurationError: when the authenticator cannot be used
        """
        pass

    def authenticate(self, request: PreparedRequest):
        """
        Decorate the request with the credentials

        :raises AuthenticationError: when the credentials cannot be obtained
        """
        raise NotImplementedError()

    def __call__(self, r: PreparedRequest) -> PreparedRequest:
        self.authenticate(r)
        return r

from typing import Optional

from requests import PreparedRequest
from requests.auth import HTTPBasicAuth

from mqcloud.http.authenticators.abstract import Authenticator, InvalidAuthenticatorConfigurationError


class NoAuthAuthenticator(Authenticator):
    """ Send requests without credentials (local servers and tests) """

    @property
    def authentication_type(self) -> str:
        return 'noAuth'

    def authenticate(self, request: PreparedRequest):
        pass


class BearerTokenAuthenticator(Authenticator):
    """ Send a caller-managed bearer token. The token is never refreshed by this authenticator. """

    def __init__(self, bearer_token: Optional[str]):
        super().__init__()
        self.bearer_token = bearer_token

    @property
    def authentication_type(self) -> str:
        return 'bearerToken'

    def validate(self):
        if not self.bearer_token:
            raise InvalidAuthenticatorConfigurationError('The bearer token is required.')

    def authenticate(self, request: PreparedRequest):
        request.headers['Authorization'] = f'Bearer {self.bearer_token}'


class BasicAuthenticator(Authenticator):
    def __init__(self, username: Optional[str], password: Optional[str]):
        super().__init__()
        self.username = username
        self.password = password

    @property
    def authentication_type(self) -> str:
        return 'basic'

    def validate(self):
        if not self.username or not self.password:
            raise InvalidAuthenticatorConfigurationError('Both username and password are required.')

        # Credentials copied from a configuration file are often wrapped in quotes or braces.
        for value in (self.username, self.password):
            if value[0] in ('"', '{') or value[-1] in ('"', '}'):
                raise InvalidAuthenticatorConfigurationError('The username and password must not start or end with '
                                                             'a curly bracket or a quotation mark.')

    def authenticate(self, request: PreparedRequest):
        HTTPBasicAuth(self.username, self.password)(request)

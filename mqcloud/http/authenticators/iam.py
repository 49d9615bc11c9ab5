from threading import Lock
from time import time
from typing import Optional
from urllib.parse import urljoin

import requests
from pydantic import BaseModel, ValidationError
from requests import PreparedRequest

from mqcloud.constants import DEFAULT_IAM_URL
from mqcloud.http.authenticators.abstract import Authenticator, AuthenticationError, \
    InvalidAuthenticatorConfigurationError

IAM_APIKEY_GRANT_TYPE = 'urn:ibm:params:oauth:grant-type:apikey'


class IamToken(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = 'Bearer'
    expires_in: int
    expiration: int  # Epoch timestamp (UTC)

    def needs_refresh(self, now: Optional[float] = None) -> bool:
        """ A token is refreshed once 80% of its lifetime has passed """
        now = now if now is not None else time()
        return now >= self.expiration - (self.expires_in * 0.2)


class IamAuthenticator(Authenticator):
    """
    Exchange an API key for an IAM access token and send it as a bearer token

    The token is cached by the authenticator and shared by all requests; it is refreshed when it is about to
    expire.
    """

    def __init__(self,
                 apikey: Optional[str],
                 url: Optional[str] = None,
                 client_id: Optional[str] = None,
                 client_secret: Optional[str] = None,
                 scope: Optional[str] = None,
                 verify_ssl: bool = True,
                 timeout: float = 60.0):
        super().__init__()
        self.apikey = apikey
        self.url = url or DEFAULT_IAM_URL
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self.verify_ssl = verify_ssl
        self.timeout = timeout

        self.__token: Optional[IamToken] = None
        self.__lock = Lock()

    @property
    def authentication_type(self) -> str:
        return 'iam'

    @property
    def token_endpoint(self) -> str:
        return urljoin(self.url.rstrip('/') + '/', 'identity/token')

    def validate(self):
        if not self.apikey:
            raise InvalidAuthenticatorConfigurationError('The API key is required.')
        if bool(self.client_id) != bool(self.client_secret):
            raise InvalidAuthenticatorConfigurationError('Both client_id and client_secret must be given together.')

    def authenticate(self, request: PreparedRequest):
        request.headers['Authorization'] = f'Bearer {self.get_token()}'

    def get_token(self) -> str:
        with self.__lock:
            if self.__token is None or self.__token.needs_refresh():
                self.__token = self.request_token()
            return self.__token.access_token

    def request_token(self) -> IamToken:
        form = dict(grant_type=IAM_APIKEY_GRANT_TYPE, apikey=self.apikey, response_type='cloud_iam')
        if self.scope:
            form['scope'] = self.scope

        auth = (self.client_id, self.client_secret) if self.client_id else None

        self._logger.debug(f'Requesting an access token from {self.token_endpoint}')

        try:
            response = requests.post(self.token_endpoint,
                                     data=form,
                                     auth=auth,
                                     headers={'Accept': 'application/json'},
                                     verify=self.verify_ssl,
                                     timeout=self.timeout)
        except requests.RequestException as e:
            raise AuthenticationError(f'Unable to reach the token endpoint at {self.token_endpoint}: {e}') from e

        if not response.ok:
            raise AuthenticationError(f'The token endpoint responds with HTTP {response.status_code}:\n\n'
                                      f'{response.text}\n')

        try:
            return IamToken(**response.json())
        except (TypeError, ValueError, ValidationError) as e:
            raise AuthenticationError(f'Unexpected response from the token endpoint: {response.text}') from e

from mqcloud.http.authenticators.abstract import Authenticator, AuthenticationError, \
    InvalidAuthenticatorConfigurationError
from mqcloud.http.authenticators.iam import IamAuthenticator
from mqcloud.http.authenticators.static import NoAuthAuthenticator, BearerTokenAuthenticator, BasicAuthenticator

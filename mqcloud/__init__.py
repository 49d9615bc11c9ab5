from mqcloud.client.base_exceptions import MissingRequiredParameterError, InvalidParameterError, \
    MissingServiceUrlError, ResponseProcessingError, MalformedPaginationLinkError
from mqcloud.client.models import ClientConfiguration, DetailedResponse
from mqcloud.client.mqcloud.client import MqcloudV1, QueueManagersPager, UsersPager, ApplicationsPager
from mqcloud.client.result_iterator import InactiveLoaderError
from mqcloud.constants import __version__
from mqcloud.http.authenticators import Authenticator, AuthenticationError, InvalidAuthenticatorConfigurationError, \
    IamAuthenticator, NoAuthAuthenticator, BearerTokenAuthenticator, BasicAuthenticator
from mqcloud.http.context import RequestContext, DeadlineExceededError, RequestCancelledError
from mqcloud.http.session import HttpError, ClientError, ServerError, TransportError, RetryPolicy

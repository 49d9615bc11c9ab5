import base64
import time
from unittest import TestCase
from urllib.parse import parse_qs

from requests import Request

from mqcloud.http.authenticators import IamAuthenticator, NoAuthAuthenticator, BearerTokenAuthenticator, \
    BasicAuthenticator, AuthenticationError, InvalidAuthenticatorConfigurationError
from mqcloud.http.authenticators.iam import IamToken
from tests.mock_server import MockServer, ScriptedResponse


def _prepare():
    return Request('GET', 'https://api.example.com/v1/abc/usage').prepare()


def _token_response(access_token: str, expires_in: int = 3600) -> ScriptedResponse:
    now = int(time.time())
    return ScriptedResponse(body=dict(access_token=access_token,
                                      refresh_token='not-used',
                                      token_type='Bearer',
                                      expires_in=expires_in,
                                      expiration=now + expires_in))


class TestStaticAuthenticators(TestCase):
    def test_no_auth(self):
        request = _prepare()
        NoAuthAuthenticator().authenticate(request)
        self.assertNotIn('Authorization', request.headers)

    def test_bearer_token(self):
        authenticator = BearerTokenAuthenticator('s3cr3t')
        authenticator.validate()

        request = _prepare()
        authenticator.authenticate(request)
        self.assertEqual(request.headers['Authorization'], 'Bearer s3cr3t')

        with self.assertRaises(InvalidAuthenticatorConfigurationError):
            BearerTokenAuthenticator(None).validate()

    def test_basic(self):
        authenticator = BasicAuthenticator('alice', 'pa55w0rd')
        authenticator.validate()

        request = _prepare()
        authenticator(request)

        expected = base64.b64encode(b'alice:pa55w0rd').decode('ascii')
        self.assertEqual(request.headers['Authorization'], f'Basic {expected}')

    def test_basic_rejects_invalid_credentials(self):
        for username, password in [('', 'pa55w0rd'), ('alice', None), ('"alice"', 'pa55w0rd'),
                                   ('alice', '{pa55w0rd}')]:
            with self.subTest(username=username, password=password):
                with self.assertRaises(InvalidAuthenticatorConfigurationError):
                    BasicAuthenticator(username, password).validate()


class TestIamToken(TestCase):
    def test_needs_refresh(self):
        token = IamToken(access_token='t', expires_in=1000, expiration=10_000)

        self.assertFalse(token.needs_refresh(now=9_000))
        self.assertFalse(token.needs_refresh(now=9_799))
        self.assertTrue(token.needs_refresh(now=9_800))
        self.assertTrue(token.needs_refresh(now=10_001))


class TestIamAuthenticator(TestCase):
    def setUp(self):
        self.server = MockServer().start()

    def tearDown(self):
        self.server.stop()

    def test_validate(self):
        with self.assertRaises(InvalidAuthenticatorConfigurationError):
            IamAuthenticator(None).validate()

        with self.assertRaises(InvalidAuthenticatorConfigurationError):
            IamAuthenticator('key', client_id='bx').validate()

        IamAuthenticator('key', client_id='bx', client_secret='bx').validate()

    def test_exchange_api_key_for_token(self):
        self.server.expect('POST', '/identity/token', _token_response('token-1'))
        authenticator = IamAuthenticator('my-api-key', url=self.server.url + '/')

        self.assertEqual(authenticator.token_endpoint, f'{self.server.url}/identity/token')

        first_request = _prepare()
        second_request = _prepare()
        authenticator.authenticate(first_request)
        authenticator.authenticate(second_request)

        self.assertEqual(first_request.headers['Authorization'], 'Bearer token-1')
        self.assertEqual(second_request.headers['Authorization'], 'Bearer token-1')

        # The token is cached.
        handled_requests = self.server.handled_requests
        self.assertEqual(len(handled_requests), 1)

        form = parse_qs(handled_requests[0].body.decode('utf-8'))
        self.assertEqual(form['grant_type'], ['urn:ibm:params:oauth:grant-type:apikey'])
        self.assertEqual(form['apikey'], ['my-api-key'])
        self.assertEqual(form['response_type'], ['cloud_iam'])
        self.assertIsNone(handled_requests[0].header('Authorization'))

    def test_refresh_expiring_token(self):
        self.server.expect('POST', '/identity/token',
                           _token_response('token-1', expires_in=1),
                           _token_response('token-2'))
        authenticator = IamAuthenticator('my-api-key', url=self.server.url)

        self.assertEqual(authenticator.get_token(), 'token-1')
        time.sleep(1.1)
        self.assertEqual(authenticator.get_token(), 'token-2')
        self.assertEqual(authenticator.get_token(), 'token-2')
        self.assertEqual(len(self.server.handled_requests), 2)

    def test_client_credentials(self):
        self.server.expect('POST', '/identity/token', _token_response('token-1'))
        authenticator = IamAuthenticator('my-api-key', url=self.server.url, client_id='bx', client_secret='bx',
                                         scope='openid')

        authenticator.get_token()

        handled_request = self.server.handled_requests[0]
        self.assertEqual(handled_request.header('Authorization'),
                         'Basic ' + base64.b64encode(b'bx:bx').decode('ascii'))
        self.assertEqual(parse_qs(handled_request.body.decode('utf-8'))['scope'], ['openid'])

    def test_token_endpoint_rejects_api_key(self):
        self.server.expect('POST', '/identity/token',
                           ScriptedResponse(status=400, body={'errorCode': 'BXNIM0415E',
                                                              'errorMessage': 'Provided API key could not be found'}))
        authenticator = IamAuthenticator('bad-key', url=self.server.url)

        with self.assertRaises(AuthenticationError) as cm:
            authenticator.authenticate(_prepare())

        self.assertIn('HTTP 400', str(cm.exception))

    def test_unexpected_token_response(self):
        self.server.expect('POST', '/identity/token', ScriptedResponse(body={'token': 'abc'}))

        with self.assertRaises(AuthenticationError):
            IamAuthenticator('my-api-key', url=self.server.url).get_token()

    def test_unreachable_token_endpoint(self):
        with self.assertRaises(AuthenticationError):
            IamAuthenticator('my-api-key', url='http://localhost:1', timeout=5).get_token()

import time
from unittest import TestCase

from mqcloud.client.base_exceptions import InvalidParameterError, MissingRequiredParameterError, \
    MissingServiceUrlError, ResponseProcessingError
from mqcloud.client.models import ClientConfiguration
from mqcloud.client.mqcloud.client import MqcloudV1
from mqcloud.client.mqcloud.models import GetQueueManagerOptions, ListQueueManagersOptions, GetUsageDetailsOptions, \
    Usage, DeleteUserOptions, QueueManagerDetails
from mqcloud.http.authenticators import BearerTokenAuthenticator, InvalidAuthenticatorConfigurationError
from mqcloud.http.authenticators.abstract import Authenticator, AuthenticationError
from mqcloud.http.context import DeadlineExceededError, RequestContext, RequestCancelledError
from mqcloud.http.session import ClientError, ServerError, TransportError
from tests.mock_server import MockServer, ScriptedResponse

GUID = 'a2b4d4bc-dadb-4637-bcec-9b7d1e723af8'
QM_PATH = f'/v1/{GUID}/queue_managers/qm-1'


class BrokenAuthenticator(Authenticator):
    @property
    def authentication_type(self) -> str:
        return 'broken'

    def authenticate(self, request):
        raise AuthenticationError('The credentials have been revoked.')


class SlowAuthenticator(Authenticator):
    """ Take longer than the deadline of the caller to produce the credentials """

    @property
    def authentication_type(self) -> str:
        return 'slow'

    def authenticate(self, request):
        time.sleep(0.2)
        request.headers['Authorization'] = 'Bearer s3cr3t'


class TestBaseServiceClient(TestCase):
    def setUp(self):
        self.server = MockServer().start()
        self.client = MqcloudV1.make(url=self.server.url + '/', authenticator=BearerTokenAuthenticator('s3cr3t'))

    def tearDown(self):
        self.client.close()
        self.server.stop()

    def test_decode_result(self):
        self.server.expect('GET', QM_PATH, ScriptedResponse(body={'id': 'qm-1', 'name': 'alpha', 'size': 'small'},
                                                            headers={'X-Correlation-ID': 'corr-1'}))

        response = self.client.get_queue_manager(GetQueueManagerOptions(service_instance_guid=GUID,
                                                                         queue_manager_id='qm-1'))

        self.assertEqual(response.status_code, 200)
        self.assertIsInstance(response.get_result(), QueueManagerDetails)
        self.assertEqual(response.result.name, 'alpha')
        self.assertEqual(response.get_header('x-correlation-id'), 'corr-1')

        handled_requests = self.server.handled_requests
        self.assertEqual(len(handled_requests), 1)
        self.assertEqual(handled_requests[0].method, 'GET')
        self.assertEqual(handled_requests[0].path, QM_PATH)

    def test_request_headers(self):
        self.server.expect('GET', f'/v1/{GUID}/usage', ScriptedResponse(body={'vpc_usage': 1.5}))
        self.client.set_default_headers({'X-Default': 'default', 'X-Override': 'client'})
        self.client.configuration.accept_language = 'en-US'

        self.client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID))
        self.client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID,
                                                             accept_language='fr-FR',
                                                             headers={'X-Override': 'call'}))

        first, second = self.server.handled_requests

        self.assertEqual(first.header('Authorization'), 'Bearer s3cr3t')
        self.assertEqual(first.header('Accept'), 'application/json')
        self.assertEqual(first.header('Accept-Language'), 'en-US')
        self.assertEqual(first.header('X-Default'), 'default')
        self.assertEqual(first.header('X-Override'), 'client')
        self.assertTrue(first.header('User-Agent').startswith('mqcloud-python-sdk/'))
        self.assertIsNotNone(first.header('X-B3-TraceId'))
        self.assertIsNotNone(first.header('X-B3-SpanId'))

        self.assertEqual(second.header('Accept-Language'), 'fr-FR')
        self.assertEqual(second.header('X-Default'), 'default')
        self.assertEqual(second.header('X-Override'), 'call')
        self.assertNotEqual(first.header('X-B3-TraceId'), second.header('X-B3-TraceId'))

    def test_query_parameters(self):
        self.server.expect('GET', f'/v1/{GUID}/queue_managers', ScriptedResponse(body={'queue_managers': []}))

        self.client.list_queue_managers(ListQueueManagersOptions(service_instance_guid=GUID, limit=10))
        self.client.list_queue_managers(ListQueueManagersOptions(service_instance_guid=GUID, offset=20, limit=10))

        first, second = self.server.handled_requests
        self.assertEqual(first.query, {'limit': ['10']})
        self.assertEqual(second.query, {'offset': ['20'], 'limit': ['10']})

    def test_path_parameters_are_encoded(self):
        self.server.default_response = ScriptedResponse(body={})

        self.client.get_queue_manager(GetQueueManagerOptions(service_instance_guid=GUID,
                                                             queue_manager_id='qm/1 2'))

        self.assertEqual(self.server.handled_requests[0].path, f'/v1/{GUID}/queue_managers/qm%2F1%202')

    def test_missing_required_parameter(self):
        with self.assertRaises(MissingRequiredParameterError) as cm:
            self.client.get_queue_manager(GetQueueManagerOptions(service_instance_guid=GUID))
        self.assertEqual(cm.exception.parameter_name, 'queue_manager_id')

        with self.assertRaises(MissingRequiredParameterError):
            self.client.get_queue_manager(None)

        self.assertEqual(len(self.server.handled_requests), 0)

    def test_missing_service_url(self):
        self.client.set_service_url('')

        with self.assertRaises(MissingServiceUrlError):
            self.client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID))

        self.assertEqual(len(self.server.handled_requests), 0)

    def test_service_url(self):
        self.assertEqual(self.client.get_service_url(), self.server.url)

        self.client.set_service_url('https://api.example.com/')
        self.assertEqual(self.client.get_service_url(), 'https://api.example.com')

    def test_empty_body(self):
        self.server.expect('DELETE', f'/v1/{GUID}/users/user-1', ScriptedResponse(status=204))

        response = self.client.delete_user(DeleteUserOptions(service_instance_guid=GUID, user_id='user-1'))

        self.assertEqual(response.status_code, 204)
        self.assertIsNone(response.result)

    def test_invalid_json(self):
        self.server.expect('GET', f'/v1/{GUID}/usage', ScriptedResponse(body='} this is not valid json {',
                                                                          content_type='application/json'))

        for retry_enabled in (False, True):
            with self.subTest(retry_enabled=retry_enabled):
                if retry_enabled:
                    self.client.enable_retries(max_retries=3, backoff_factor=0.01)
                else:
                    self.client.disable_retries()

                request_count = len(self.server.handled_requests)

                with self.assertRaises(ResponseProcessingError) as cm:
                    self.client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID))

                self.assertEqual(cm.exception.status_code, 200)
                self.assertIsNotNone(cm.exception.response)
                self.assertTrue(str(cm.exception).startswith('An error occurred while processing the operation '
                                                             'response'))
                # Decoding errors are never retried.
                self.assertEqual(len(self.server.handled_requests), request_count + 1)

    def test_unexpected_result_shape(self):
        self.server.expect('GET', f'/v1/{GUID}/usage', ScriptedResponse(body={'vpc_usage': 'lots'}))

        with self.assertRaises(ResponseProcessingError):
            self.client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID))

    def test_deadline_exceeded(self):
        self.server.expect('GET', f'/v1/{GUID}/usage', ScriptedResponse(body={'vpc_usage': 1.5}, delay=0.1))

        with self.assertRaises(DeadlineExceededError):
            self.client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID),
                                          context=RequestContext(timeout=0.08))

        response = self.client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID))
        self.assertIsInstance(response.result, Usage)
        self.assertEqual(response.result.vpc_usage, 1.5)

    def test_deadline_exceeded_with_retries(self):
        self.client.enable_retries(max_retries=5, backoff_factor=0.01)
        self.server.expect('GET', f'/v1/{GUID}/usage', ScriptedResponse(body={'vpc_usage': 1.5}, delay=0.1))

        with self.assertRaises(DeadlineExceededError):
            self.client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID),
                                          context=RequestContext(timeout=0.08))

    def test_deadline_exceeded_while_authenticating(self):
        self.server.expect('GET', f'/v1/{GUID}/usage', ScriptedResponse(body={'vpc_usage': 1.5}))
        client = MqcloudV1.make(url=self.server.url, authenticator=SlowAuthenticator())

        for retry_enabled in (False, True):
            with self.subTest(retry_enabled=retry_enabled):
                if retry_enabled:
                    client.enable_retries(max_retries=3, backoff_factor=0.01)

                with self.assertRaises(DeadlineExceededError):
                    client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID),
                                             context=RequestContext(timeout=0.1))

        client.close()
        self.assertEqual(len(self.server.handled_requests), 0)

    def test_cancelled_context(self):
        context = RequestContext()
        context.cancel()

        with self.assertRaises(RequestCancelledError):
            self.client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID), context=context)

        self.assertEqual(len(self.server.handled_requests), 0)

    def test_client_error(self):
        self.server.expect('GET', QM_PATH, ScriptedResponse(status=404, body={
            'errors': [{'code': 'not_found', 'message': 'Queue manager qm-1 not found'}],
            'trace': 'abc',
        }))
        self.client.enable_retries(max_retries=3, backoff_factor=0.01)

        with self.assertRaises(ClientError) as cm:
            self.client.get_queue_manager(GetQueueManagerOptions(service_instance_guid=GUID,
                                                                 queue_manager_id='qm-1'))

        self.assertEqual(cm.exception.status_code, 404)
        self.assertEqual(cm.exception.message, 'Queue manager qm-1 not found')
        self.assertIn('HTTP 404: Queue manager qm-1 not found', str(cm.exception))
        self.assertEqual(cm.exception.details['trace'], 'abc')
        # HTTP 404 is not retryable.
        self.assertEqual(len(self.server.handled_requests), 1)

    def test_server_error_without_retries(self):
        self.server.expect('GET', QM_PATH, ScriptedResponse(status=503, body='Service Unavailable',
                                                            content_type='text/plain'))

        with self.assertRaises(ServerError) as cm:
            self.client.get_queue_manager(GetQueueManagerOptions(service_instance_guid=GUID,
                                                                 queue_manager_id='qm-1'))

        self.assertEqual(cm.exception.status_code, 503)
        self.assertIsNone(cm.exception.details)
        self.assertEqual(len(self.server.handled_requests), 1)

    def test_retry_transient_errors(self):
        self.server.expect('GET', QM_PATH,
                           ScriptedResponse(status=503, body={'error': 'busy'}),
                           ScriptedResponse(status=429, body={'error': 'slow down'}),
                           ScriptedResponse(body={'id': 'qm-1'}))
        self.client.enable_retries(max_retries=3, backoff_factor=0.01)

        response = self.client.get_queue_manager(GetQueueManagerOptions(service_instance_guid=GUID,
                                                                         queue_manager_id='qm-1'))

        self.assertEqual(response.result.id, 'qm-1')

        handled_requests = self.server.handled_requests
        self.assertEqual(len(handled_requests), 3)

        # All attempts belong to the same trace.
        trace_ids = {r.header('X-B3-TraceId') for r in handled_requests}
        span_ids = {r.header('X-B3-SpanId') for r in handled_requests}
        self.assertEqual(len(trace_ids), 1)
        self.assertEqual(len(span_ids), 3)

    def test_give_up_after_max_retries(self):
        self.server.expect('GET', QM_PATH, ScriptedResponse(status=502, body={'error': 'bad gateway'}))
        self.client.enable_retries(max_retries=2, backoff_factor=0.01)

        with self.assertRaises(ServerError):
            self.client.get_queue_manager(GetQueueManagerOptions(service_instance_guid=GUID,
                                                                 queue_manager_id='qm-1'))

        self.assertEqual(len(self.server.handled_requests), 3)

    def test_authentication_error(self):
        client = MqcloudV1.make(url=self.server.url, authenticator=BrokenAuthenticator())
        client.enable_retries(max_retries=3, backoff_factor=0.01)

        with self.assertRaises(AuthenticationError):
            client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID))

        client.close()
        self.assertEqual(len(self.server.handled_requests), 0)

    def test_transport_error(self):
        self.client.set_service_url('http://localhost:1')

        with self.assertRaises(TransportError):
            self.client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID))

    def test_invalid_authenticator(self):
        with self.assertRaises(InvalidParameterError):
            MqcloudV1(ClientConfiguration(), None)

        with self.assertRaises(InvalidAuthenticatorConfigurationError):
            MqcloudV1(ClientConfiguration(), BearerTokenAuthenticator(''))

    def test_context_manager(self):
        self.server.expect('GET', f'/v1/{GUID}/usage', ScriptedResponse(body={'vpc_usage': 2}))

        with MqcloudV1.make(url=self.server.url, authenticator=BearerTokenAuthenticator('s3cr3t')) as client:
            self.assertEqual(client.get_usage_details(GetUsageDetailsOptions(service_instance_guid=GUID))
                             .result.vpc_usage, 2)

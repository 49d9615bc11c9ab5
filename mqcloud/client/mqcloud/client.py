import os
from typing import List, Optional, Set, Type

from pydantic import BaseModel
from requests import Session

from mqcloud.client.base_client import BaseServiceClient
from mqcloud.client.base_exceptions import MissingRequiredParameterError
from mqcloud.client.models import ApiRequest, ClientConfiguration, DetailedResponse, OperationOptions
from mqcloud.client.mqcloud.models import (
    ApplicationApiKeyCreated, ApplicationCreated, ApplicationDetails, ApplicationDetailsCollection, ChannelsDetails,
    ConfigurationOptions, ConnectionInfo, CreateApplicationApikeyOptions, CreateApplicationOptions,
    CreateKeyStorePemCertificateOptions, CreatePemCertificateOptions, CreateQueueManagerOptions,
    CreateTrustStorePemCertificateOptions, CreateUserOptions, DeleteApplicationOptions,
    DeleteKeyStoreCertificateOptions, DeleteQueueManagerOptions, DeleteTrustStoreCertificateOptions,
    DeleteUserOptions, DownloadKeyStoreCertificateOptions, DownloadTrustStoreCertificateOptions,
    GetApplicationOptions, GetCertificateAmsChannelsOptions, GetKeyStoreCertificateOptions, GetOptionsOptions,
    GetQueueManagerAvailableUpgradeVersionsOptions, GetQueueManagerConnectionInfoOptions, GetQueueManagerOptions,
    GetQueueManagerStatusOptions, GetTrustStoreCertificateOptions, GetUsageDetailsOptions, GetUserOptions,
    KeyStoreCertificateDetails, KeyStoreCertificateDetailsCollection, ListApplicationsOptions,
    ListKeyStoreCertificatesOptions, ListQueueManagersOptions, ListTrustStoreCertificatesOptions, ListUsersOptions,
    QueueManagerDetails, QueueManagerDetailsCollection, QueueManagerStatus, QueueManagerTaskStatus,
    QueueManagerVersionUpgrades, SetCertificateAmsChannelsOptions, SetQueueManagerVersionOptions,
    TrustStoreCertificateDetails, TrustStoreCertificateDetailsCollection, Usage, UserDetails, UserDetailsCollection,
)
from mqcloud.client.result_iterator import OffsetPager
from mqcloud.constants import DEFAULT_SERVICE_URL
from mqcloud.http.authenticators.abstract import Authenticator
from mqcloud.http.context import RequestContext

_INSTANCE_PATH = '/v1/{service_instance_guid}'
_QUEUE_MANAGER_PATH = _INSTANCE_PATH + '/queue_managers/{queue_manager_id}'
_TRUST_STORE_PATH = _QUEUE_MANAGER_PATH + '/certificates/trust_store'
_KEY_STORE_PATH = _QUEUE_MANAGER_PATH + '/certificates/key_store'


class QueueManagersPager(OffsetPager[QueueManagerDetails]):
    def __init__(self,
                 client: 'MqcloudV1',
                 list_options: Optional[ListQueueManagersOptions],
                 context: Optional[RequestContext] = None):
        super().__init__(client.list_queue_managers, list_options, context)


class UsersPager(OffsetPager[UserDetails]):
    def __init__(self,
                 client: 'MqcloudV1',
                 list_options: Optional[ListUsersOptions],
                 context: Optional[RequestContext] = None):
        super().__init__(client.list_users, list_options, context)


class ApplicationsPager(OffsetPager[ApplicationDetails]):
    def __init__(self,
                 client: 'MqcloudV1',
                 list_options: Optional[ListApplicationsOptions],
                 context: Optional[RequestContext] = None):
        super().__init__(client.list_applications, list_options, context)


class MqcloudV1(BaseServiceClient):
    """
    Client for the MQ on Cloud management API (v1)

    Every operation takes its options model and an optional :class:`RequestContext`, and returns a
    :class:`DetailedResponse` whose ``result`` is the decoded response body.
    """

    def __init__(self,
                 configuration: ClientConfiguration,
                 authenticator: Authenticator,
                 session: Optional[Session] = None):
        super().__init__(configuration, authenticator, session)

    @classmethod
    def make(cls,
             authenticator: Authenticator,
             url: str = DEFAULT_SERVICE_URL,
             accept_language: Optional[str] = None,
             **kwargs) -> 'MqcloudV1':
        """ Create this client with the given settings (see :class:`ClientConfiguration`) """
        return cls(ClientConfiguration(url=url, accept_language=accept_language, **kwargs), authenticator)

    def _call(self,
              operation_id: str,
              method: str,
              path: str,
              options: Optional[OperationOptions],
              path_params: List[str],
              result_type: Optional[Type[BaseModel]] = None,
              context: Optional[RequestContext] = None,
              query_params: Optional[List[str]] = None,
              body_params: Optional[Set[str]] = None,
              **kwargs) -> DetailedResponse:
        if options is None:
            raise MissingRequiredParameterError('options', operation_id)

        options.check_required(operation_id)

        json_body = None
        if body_params:
            json_body = options.model_dump(mode='json', include=body_params, exclude_none=True)

        request = ApiRequest(operation_id=operation_id,
                             method=method,
                             path=path,
                             path_params={name: getattr(options, name) for name in path_params},
                             query={name: getattr(options, name) for name in (query_params or [])},
                             headers=options.headers,
                             accept_language=options.accept_language,
                             json_body=json_body,
                             result_type=result_type,
                             **kwargs)

        return self.send_request(request, context)

    def _upload_pem_certificate(self,
                                operation_id: str,
                                path: str,
                                options: Optional[CreatePemCertificateOptions],
                                result_type: Type[BaseModel],
                                context: Optional[RequestContext]) -> DetailedResponse:
        if options is None:
            raise MissingRequiredParameterError('options', operation_id)

        options.check_required(operation_id)

        certificate_file = options.certificate_file
        file_name = os.path.basename(getattr(certificate_file, 'name', None) or 'certificate_file')

        return self._call(operation_id,
                          'POST',
                          path,
                          options,
                          ['service_instance_guid', 'queue_manager_id'],
                          result_type,
                          context,
                          form=dict(label=options.label),
                          files=dict(certificate_file=(file_name, certificate_file, 'application/octet-stream')))

    ####################################################################################################################
    # Service instance
    ####################################################################################################################

    def get_usage_details(self,
                          options: GetUsageDetailsOptions,
                          context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Get the usage details of the service instance """
        return self._call('get_usage_details', 'GET', _INSTANCE_PATH + '/usage', options,
                          ['service_instance_guid'], Usage, context)

    def get_options(self,
                    options: GetOptionsOptions,
                    context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Get the configuration options (e.g., available deployment locations, queue manager sizes) """
        return self._call('get_options', 'GET', _INSTANCE_PATH + '/options', options,
                          ['service_instance_guid'], ConfigurationOptions, context)

    ####################################################################################################################
    # Queue managers
    ####################################################################################################################

    def create_queue_manager(self,
                             options: CreateQueueManagerOptions,
                             context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Create a new queue manager. The queue manager is provisioned asynchronously (HTTP 202). """
        return self._call('create_queue_manager', 'POST', _INSTANCE_PATH + '/queue_managers', options,
                          ['service_instance_guid'], QueueManagerTaskStatus, context,
                          body_params={'name', 'location', 'size', 'display_name', 'version'})

    def list_queue_managers(self,
                            options: ListQueueManagersOptions,
                            context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Get one page of queue managers """
        return self._call('list_queue_managers', 'GET', _INSTANCE_PATH + '/queue_managers', options,
                          ['service_instance_guid'], QueueManagerDetailsCollection, context,
                          query_params=['offset', 'limit'])

    def new_queue_managers_pager(self,
                                 options: ListQueueManagersOptions,
                                 context: Optional[RequestContext] = None) -> QueueManagersPager:
        return QueueManagersPager(self, options, context)

    def get_queue_manager(self,
                          options: GetQueueManagerOptions,
                          context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('get_queue_manager', 'GET', _QUEUE_MANAGER_PATH, options,
                          ['service_instance_guid', 'queue_manager_id'], QueueManagerDetails, context)

    def delete_queue_manager(self,
                             options: DeleteQueueManagerOptions,
                             context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Delete a queue manager. The queue manager is removed asynchronously (HTTP 202). """
        return self._call('delete_queue_manager', 'DELETE', _QUEUE_MANAGER_PATH, options,
                          ['service_instance_guid', 'queue_manager_id'], QueueManagerTaskStatus, context)

    def set_queue_manager_version(self,
                                  options: SetQueueManagerVersionOptions,
                                  context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Upgrade a queue manager to the given version """
        return self._call('set_queue_manager_version', 'PUT', _QUEUE_MANAGER_PATH + '/version', options,
                          ['service_instance_guid', 'queue_manager_id'], QueueManagerTaskStatus, context,
                          body_params={'version'})

    def get_queue_manager_available_upgrade_versions(
            self,
            options: GetQueueManagerAvailableUpgradeVersionsOptions,
            context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('get_queue_manager_available_upgrade_versions', 'GET',
                          _QUEUE_MANAGER_PATH + '/available_versions', options,
                          ['service_instance_guid', 'queue_manager_id'], QueueManagerVersionUpgrades, context)

    def get_queue_manager_connection_info(self,
                                          options: GetQueueManagerConnectionInfoOptions,
                                          context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Get the client channel definition table (CCDT) of a queue manager """
        return self._call('get_queue_manager_connection_info', 'GET', _QUEUE_MANAGER_PATH + '/connection_info',
                          options, ['service_instance_guid', 'queue_manager_id'], ConnectionInfo, context)

    def get_queue_manager_status(self,
                                 options: GetQueueManagerStatusOptions,
                                 context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('get_queue_manager_status', 'GET', _QUEUE_MANAGER_PATH + '/status', options,
                          ['service_instance_guid', 'queue_manager_id'], QueueManagerStatus, context)

    ####################################################################################################################
    # Users
    ####################################################################################################################

    def list_users(self,
                   options: ListUsersOptions,
                   context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('list_users', 'GET', _INSTANCE_PATH + '/users', options,
                          ['service_instance_guid'], UserDetailsCollection, context,
                          query_params=['offset', 'limit'])

    def new_users_pager(self,
                        options: ListUsersOptions,
                        context: Optional[RequestContext] = None) -> UsersPager:
        return UsersPager(self, options, context)

    def create_user(self,
                    options: CreateUserOptions,
                    context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('create_user', 'POST', _INSTANCE_PATH + '/users', options,
                          ['service_instance_guid'], UserDetails, context,
                          body_params={'email', 'name'})

    def get_user(self,
                 options: GetUserOptions,
                 context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('get_user', 'GET', _INSTANCE_PATH + '/users/{user_id}', options,
                          ['service_instance_guid', 'user_id'], UserDetails, context)

    def delete_user(self,
                    options: DeleteUserOptions,
                    context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('delete_user', 'DELETE', _INSTANCE_PATH + '/users/{user_id}', options,
                          ['service_instance_guid', 'user_id'], None, context)

    ####################################################################################################################
    # Applications
    ####################################################################################################################

    def list_applications(self,
                          options: ListApplicationsOptions,
                          context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('list_applications', 'GET', _INSTANCE_PATH + '/applications', options,
                          ['service_instance_guid'], ApplicationDetailsCollection, context,
                          query_params=['offset', 'limit'])

    def new_applications_pager(self,
                               options: ListApplicationsOptions,
                               context: Optional[RequestContext] = None) -> ApplicationsPager:
        return ApplicationsPager(self, options, context)

    def create_application(self,
                           options: CreateApplicationOptions,
                           context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Add an application to the service instance. The result carries the first API key of the application. """
        return self._call('create_application', 'POST', _INSTANCE_PATH + '/applications', options,
                          ['service_instance_guid'], ApplicationCreated, context,
                          body_params={'name'})

    def get_application(self,
                        options: GetApplicationOptions,
                        context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('get_application', 'GET', _INSTANCE_PATH + '/applications/{application_id}', options,
                          ['service_instance_guid', 'application_id'], ApplicationDetails, context)

    def delete_application(self,
                           options: DeleteApplicationOptions,
                           context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('delete_application', 'DELETE', _INSTANCE_PATH + '/applications/{application_id}', options,
                          ['service_instance_guid', 'application_id'], None, context)

    def create_application_apikey(self,
                                  options: CreateApplicationApikeyOptions,
                                  context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('create_application_apikey', 'POST',
                          _INSTANCE_PATH + '/applications/{application_id}/api_key', options,
                          ['service_instance_guid', 'application_id'], ApplicationApiKeyCreated, context,
                          body_params={'name'})

    ####################################################################################################################
    # Trust store certificates
    ####################################################################################################################

    def create_trust_store_pem_certificate(self,
                                           options: CreateTrustStorePemCertificateOptions,
                                           context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Upload a PEM certificate to the trust store of a queue manager """
        return self._upload_pem_certificate('create_trust_store_pem_certificate', _TRUST_STORE_PATH, options,
                                            TrustStoreCertificateDetails, context)

    def list_trust_store_certificates(self,
                                      options: ListTrustStoreCertificatesOptions,
                                      context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('list_trust_store_certificates', 'GET', _TRUST_STORE_PATH, options,
                          ['service_instance_guid', 'queue_manager_id'], TrustStoreCertificateDetailsCollection,
                          context)

    def get_trust_store_certificate(self,
                                    options: GetTrustStoreCertificateOptions,
                                    context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('get_trust_store_certificate', 'GET', _TRUST_STORE_PATH + '/{certificate_id}', options,
                          ['service_instance_guid', 'queue_manager_id', 'certificate_id'],
                          TrustStoreCertificateDetails, context)

    def delete_trust_store_certificate(self,
                                       options: DeleteTrustStoreCertificateOptions,
                                       context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('delete_trust_store_certificate', 'DELETE', _TRUST_STORE_PATH + '/{certificate_id}',
                          options, ['service_instance_guid', 'queue_manager_id', 'certificate_id'], None, context)

    def download_trust_store_certificate(self,
                                         options: DownloadTrustStoreCertificateOptions,
                                         context: Optional[RequestContext] = None) -> DetailedResponse:
        """
        Download a certificate from the trust store of a queue manager

        The result is an open binary stream (or None for an empty body). The caller must close it.
        """
        return self._call('download_trust_store_certificate', 'GET', _TRUST_STORE_PATH + '/{certificate_id}/download',
                          options, ['service_instance_guid', 'queue_manager_id', 'certificate_id'], None, context,
                          accept='application/octet-stream',
                          binary_response=True)

    ####################################################################################################################
    # Key store certificates
    ####################################################################################################################

    def create_key_store_pem_certificate(self,
                                         options: CreateKeyStorePemCertificateOptions,
                                         context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Upload a PEM certificate (with its private key) to the key store of a queue manager """
        return self._upload_pem_certificate('create_key_store_pem_certificate', _KEY_STORE_PATH, options,
                                            KeyStoreCertificateDetails, context)

    def list_key_store_certificates(self,
                                    options: ListKeyStoreCertificatesOptions,
                                    context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('list_key_store_certificates', 'GET', _KEY_STORE_PATH, options,
                          ['service_instance_guid', 'queue_manager_id'], KeyStoreCertificateDetailsCollection,
                          context)

    def get_key_store_certificate(self,
                                  options: GetKeyStoreCertificateOptions,
                                  context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('get_key_store_certificate', 'GET', _KEY_STORE_PATH + '/{certificate_id}', options,
                          ['service_instance_guid', 'queue_manager_id', 'certificate_id'],
                          KeyStoreCertificateDetails, context)

    def delete_key_store_certificate(self,
                                     options: DeleteKeyStoreCertificateOptions,
                                     context: Optional[RequestContext] = None) -> DetailedResponse:
        return self._call('delete_key_store_certificate', 'DELETE', _KEY_STORE_PATH + '/{certificate_id}', options,
                          ['service_instance_guid', 'queue_manager_id', 'certificate_id'], None, context)

    def download_key_store_certificate(self,
                                       options: DownloadKeyStoreCertificateOptions,
                                       context: Optional[RequestContext] = None) -> DetailedResponse:
        """
        Download a certificate from the key store of a queue manager

        The result is an open binary stream (or None for an empty body). The caller must close it.
        """
        return self._call('download_key_store_certificate', 'GET', _KEY_STORE_PATH + '/{certificate_id}/download',
                          options, ['service_instance_guid', 'queue_manager_id', 'certificate_id'], None, context,
                          accept='application/octet-stream',
                          binary_response=True)

    def get_certificate_ams_channels(self,
                                     options: GetCertificateAmsChannelsOptions,
                                     context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Get the AMS channels configured with a key store certificate """
        return self._call('get_certificate_ams_channels', 'GET', _KEY_STORE_PATH + '/{certificate_id}/config/ams',
                          options, ['service_instance_guid', 'queue_manager_id', 'certificate_id'], ChannelsDetails,
                          context)

    def set_certificate_ams_channels(self,
                                     options: SetCertificateAmsChannelsOptions,
                                     context: Optional[RequestContext] = None) -> DetailedResponse:
        """ Append or replace the AMS channels configured with a key store certificate """
        return self._call('set_certificate_ams_channels', 'PUT', _KEY_STORE_PATH + '/{certificate_id}/config/ams',
                          options, ['service_instance_guid', 'queue_manager_id', 'certificate_id'], ChannelsDetails,
                          context,
                          query_params=['update_strategy'],
                          body_params={'channels'})

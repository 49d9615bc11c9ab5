from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from mqcloud.client.models import BaseListOptions, OperationOptions, PaginatedCollection


class QueueManagerSize(str, Enum):
    XSMALL = 'xsmall'
    SMALL = 'small'
    MEDIUM = 'medium'
    LARGE = 'large'


class UpdateStrategy(str, Enum):
    APPEND = 'append'
    REPLACE = 'replace'


########################################################################################################################
# Results
########################################################################################################################

class Usage(BaseModel):
    """ Usage of the service instance """
    vpc_entitlement_limit: Optional[float] = None
    vpc_usage: Optional[float] = None


class ConfigurationOptions(BaseModel):
    """ Available deployment locations, queue manager sizes and versions """
    locations: List[str] = Field(default_factory=list)
    sizes: List[str] = Field(default_factory=list)
    versions: List[str] = Field(default_factory=list)
    latest_version: Optional[str] = None


class QueueManagerTaskStatus(BaseModel):
    """ Acknowledgement of an asynchronous queue manager task (creation, deletion, upgrade) """
    queue_manager_uri: Optional[str] = None
    queue_manager_status_uri: Optional[str] = None
    queue_manager_id: Optional[str] = None


class QueueManagerDetails(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    display_name: Optional[str] = None
    location: Optional[str] = None
    size: Optional[str] = None
    status_uri: Optional[str] = None
    version: Optional[str] = None
    web_console_url: Optional[str] = None
    rest_api_endpoint_url: Optional[str] = None
    administrator_api_endpoint_url: Optional[str] = None
    connection_info_uri: Optional[str] = None
    date_created: Optional[datetime] = None
    upgrade_available: Optional[bool] = None
    available_upgrade_versions_uri: Optional[str] = None
    href: Optional[str] = None


class QueueManagerDetailsCollection(PaginatedCollection):
    queue_managers: List[QueueManagerDetails] = Field(default_factory=list)

    def items(self) -> List[QueueManagerDetails]:
        return self.queue_managers


class QueueManagerStatus(BaseModel):
    status: Optional[str] = None


class QueueManagerVersionUpgrade(BaseModel):
    version: Optional[str] = None
    target_date: Optional[str] = None


class QueueManagerVersionUpgrades(BaseModel):
    total_count: Optional[int] = None
    versions: List[QueueManagerVersionUpgrade] = Field(default_factory=list)


class ConnectionInfo(BaseModel):
    """ Client channel definition table (CCDT) of a queue manager """
    channel: List[Dict[str, Any]] = Field(default_factory=list)


class UserDetails(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    iam_service_id: Optional[str] = None
    iam_managed: Optional[bool] = None
    roles: List[str] = Field(default_factory=list)
    href: Optional[str] = None


class UserDetailsCollection(PaginatedCollection):
    users: List[UserDetails] = Field(default_factory=list)

    def items(self) -> List[UserDetails]:
        return self.users


class ApplicationDetails(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    iam_service_id: Optional[str] = None
    create_api_key_uri: Optional[str] = None
    href: Optional[str] = None


class ApplicationCreated(ApplicationDetails):
    """ A new application along with its first API key. The API key is only revealed once. """
    api_key_name: Optional[str] = None
    api_key_id: Optional[str] = None
    api_key: Optional[str] = None


class ApplicationApiKeyCreated(BaseModel):
    api_key_name: Optional[str] = None
    api_key_id: Optional[str] = None
    api_key: Optional[str] = None


class ApplicationDetailsCollection(PaginatedCollection):
    applications: List[ApplicationDetails] = Field(default_factory=list)

    def items(self) -> List[ApplicationDetails]:
        return self.applications


class ChannelDetails(BaseModel):
    name: Optional[str] = None


class ChannelsDetails(BaseModel):
    """ AMS channels configured with a key store certificate """
    channels: List[ChannelDetails] = Field(default_factory=list)


class CertificateConfiguration(BaseModel):
    ams: Optional[ChannelsDetails] = None


class TrustStoreCertificateDetails(BaseModel):
    id: Optional[str] = None
    label: Optional[str] = None
    certificate_type: Optional[str] = None
    fingerprint_sha256: Optional[str] = None
    subject_dn: Optional[str] = None
    subject_cn: Optional[str] = None
    issuer_dn: Optional[str] = None
    issuer_cn: Optional[str] = None
    issued: Optional[datetime] = None
    expiry: Optional[datetime] = None
    trusted: Optional[bool] = None
    href: Optional[str] = None


class TrustStoreCertificateDetailsCollection(BaseModel):
    total_count: Optional[int] = None
    trust_store: List[TrustStoreCertificateDetails] = Field(default_factory=list)


class KeyStoreCertificateDetails(BaseModel):
    id: Optional[str] = None
    label: Optional[str] = None
    certificate_type: Optional[str] = None
    fingerprint_sha256: Optional[str] = None
    subject_dn: Optional[str] = None
    subject_cn: Optional[str] = None
    issuer_dn: Optional[str] = None
    issuer_cn: Optional[str] = None
    issued: Optional[datetime] = None
    expiry: Optional[datetime] = None
    is_default: Optional[bool] = None
    dns_names_total_count: Optional[int] = None
    dns_names: List[str] = Field(default_factory=list)
    config: Optional[CertificateConfiguration] = None
    href: Optional[str] = None


class KeyStoreCertificateDetailsCollection(BaseModel):
    total_count: Optional[int] = None
    key_store: List[KeyStoreCertificateDetails] = Field(default_factory=list)


########################################################################################################################
# Options
########################################################################################################################

class ServiceInstanceOptions(OperationOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid',)

    service_instance_guid: Optional[str] = None
    """ GUID that uniquely identifies the MQ on Cloud service instance """


class QueueManagerOptions(ServiceInstanceOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid', 'queue_manager_id')

    queue_manager_id: Optional[str] = None


class CertificateOptions(QueueManagerOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid', 'queue_manager_id', 'certificate_id')

    certificate_id: Optional[str] = None


class GetUsageDetailsOptions(ServiceInstanceOptions):
    pass


class GetOptionsOptions(ServiceInstanceOptions):
    pass


class CreateQueueManagerOptions(ServiceInstanceOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid', 'name', 'location', 'size')

    name: Optional[str] = None
    location: Optional[str] = None
    size: Optional[QueueManagerSize] = None
    display_name: Optional[str] = None
    version: Optional[str] = None


class ListQueueManagersOptions(BaseListOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid',)

    service_instance_guid: Optional[str] = None


class GetQueueManagerOptions(QueueManagerOptions):
    pass


class DeleteQueueManagerOptions(QueueManagerOptions):
    pass


class SetQueueManagerVersionOptions(QueueManagerOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid', 'queue_manager_id', 'version')

    version: Optional[str] = None


class GetQueueManagerAvailableUpgradeVersionsOptions(QueueManagerOptions):
    pass


class GetQueueManagerConnectionInfoOptions(QueueManagerOptions):
    pass


class GetQueueManagerStatusOptions(QueueManagerOptions):
    pass


class ListUsersOptions(BaseListOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid',)

    service_instance_guid: Optional[str] = None


class CreateUserOptions(ServiceInstanceOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid', 'email', 'name')

    email: Optional[str] = None
    name: Optional[str] = None


class GetUserOptions(ServiceInstanceOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid', 'user_id')

    user_id: Optional[str] = None


class DeleteUserOptions(GetUserOptions):
    pass


class ListApplicationsOptions(BaseListOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid',)

    service_instance_guid: Optional[str] = None


class CreateApplicationOptions(ServiceInstanceOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid', 'name')

    name: Optional[str] = None


class GetApplicationOptions(ServiceInstanceOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid', 'application_id')

    application_id: Optional[str] = None


class DeleteApplicationOptions(GetApplicationOptions):
    pass


class CreateApplicationApikeyOptions(GetApplicationOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid', 'application_id', 'name')

    name: Optional[str] = None


class CreatePemCertificateOptions(QueueManagerOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid', 'queue_manager_id', 'label',
                                                  'certificate_file')

    label: Optional[str] = None
    certificate_file: Optional[Any] = None
    """ The PEM file: a binary file object, or bytes """


class CreateTrustStorePemCertificateOptions(CreatePemCertificateOptions):
    pass


class CreateKeyStorePemCertificateOptions(CreatePemCertificateOptions):
    pass


class ListTrustStoreCertificatesOptions(QueueManagerOptions):
    pass


class GetTrustStoreCertificateOptions(CertificateOptions):
    pass


class DeleteTrustStoreCertificateOptions(CertificateOptions):
    pass


class DownloadTrustStoreCertificateOptions(CertificateOptions):
    pass


class ListKeyStoreCertificatesOptions(QueueManagerOptions):
    pass


class GetKeyStoreCertificateOptions(CertificateOptions):
    pass


class DeleteKeyStoreCertificateOptions(CertificateOptions):
    pass


class DownloadKeyStoreCertificateOptions(CertificateOptions):
    pass


class GetCertificateAmsChannelsOptions(CertificateOptions):
    pass


class SetCertificateAmsChannelsOptions(CertificateOptions):
    required_fields: ClassVar[Tuple[str, ...]] = ('service_instance_guid', 'queue_manager_id', 'certificate_id',
                                                  'channels')

    channels: Optional[List[ChannelDetails]] = None
    update_strategy: Optional[UpdateStrategy] = None

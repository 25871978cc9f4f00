# =============================================================================
# core/storage_accounts.py  —  Storage Account Encryption Check (ARM)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Resolves subscription → resource group → storage account through Azure
#   Resource Manager and reports whether the Blob service encryption flag
#   is on.
#
# FAIL-CLOSED DEFAULT:
#   account.encryption.services.blob.enabled is a chain of optional
#   properties.  A missing link anywhere (or a None flag) means "off".
#   Only an explicit True reports "Turned On".
#
#   That default applies to the FLAG only.  If the platform says the
#   resource group or account itself doesn't exist, that is a NotFound
#   error — the caller typed a wrong identifier.
#
# ONE CLIENT PER CALL:
#   StorageManagementClient is bound to a subscription, and the subscription
#   arrives with each call.  The client factory is injectable so tests can
#   hand back a fake.
# =============================================================================

import logging
from typing import Any, Callable

from azure.core.credentials_async import AsyncTokenCredential
from azure.mgmt.storage.aio import StorageManagementClient

from core.errors import InvalidArgument, azure_errors
from core.models import EncryptionStatus

logger = logging.getLogger(__name__)

ManagementClientFactory = Callable[[str], Any]


def blob_encryption_enabled(account: Any) -> bool:
    encryption = getattr(account, "encryption", None)
    services = getattr(encryption, "services", None)
    blob = getattr(services, "blob", None)
    return getattr(blob, "enabled", None) is True


class StorageEncryptionInspector:
    def __init__(self, client_factory: ManagementClientFactory) -> None:
        self._client_factory = client_factory

    @classmethod
    def from_credential(cls, credential: AsyncTokenCredential) -> "StorageEncryptionInspector":
        return cls(lambda subscription_id: StorageManagementClient(credential, subscription_id))

    async def status(
        self, subscription_id: str, resource_group: str, storage_account_name: str
    ) -> EncryptionStatus:
        for name, value in (
            ("subscription_id", subscription_id),
            ("resource_group", resource_group),
            ("storage_account_name", storage_account_name),
        ):
            if not value or not value.strip():
                raise InvalidArgument(f"{name} must not be empty")

        operation = (
            f"lookup of storage account {storage_account_name} "
            f"in {subscription_id}/{resource_group}"
        )
        with azure_errors(operation):
            async with self._client_factory(subscription_id) as client:
                account = await client.storage_accounts.get_properties(
                    resource_group, storage_account_name
                )

        status = EncryptionStatus(enabled=blob_encryption_enabled(account))
        logger.debug("%s blob encryption enabled=%s", storage_account_name, status.enabled)
        return status

    async def check(
        self, subscription_id: str, resource_group: str, storage_account_name: str
    ) -> str:
        status = await self.status(subscription_id, resource_group, storage_account_name)
        return status.describe()

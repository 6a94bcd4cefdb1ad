"""Authentication and management client construction"""

import logging
from dataclasses import dataclass
from typing import Any

from azure.identity import ClientSecretCredential
from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.storage import StorageManagementClient

from .config import Credentials

logger = logging.getLogger(__name__)


@dataclass
class AzureClients:
    """Management clients shared by every orchestration step.

    The SDK clients are safe to share between worker threads once built.
    """
    resource: Any
    storage: Any
    network: Any
    compute: Any


def get_credential(credentials: Credentials) -> ClientSecretCredential:
    """Service principal credential; token acquisition and refresh happen lazily in the SDK"""
    logger.info(f"🔑 Using service principal {credentials.client_id} (tenant {credentials.tenant_id})")
    return ClientSecretCredential(
        tenant_id=credentials.tenant_id,
        client_id=credentials.client_id,
        client_secret=credentials.client_secret,
    )


def create_clients(credentials: Credentials) -> AzureClients:
    """Build the resource, storage, network and compute clients for the subscription"""
    credential = get_credential(credentials)
    subscription_id = credentials.subscription_id

    return AzureClients(
        resource=ResourceManagementClient(credential, subscription_id),
        storage=StorageManagementClient(credential, subscription_id),
        network=NetworkManagementClient(credential, subscription_id),
        compute=ComputeManagementClient(credential, subscription_id),
    )

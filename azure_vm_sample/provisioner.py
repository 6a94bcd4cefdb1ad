"""Resources every VM of the sample depends on"""

import logging

from azure.mgmt.network.models import AddressSpace, Subnet, VirtualNetwork
from azure.mgmt.storage.models import Kind, Sku, SkuName, StorageAccountCreateParameters

from .clients import AzureClients
from .config import SampleConfig

logger = logging.getLogger(__name__)


class ResourceProvisioner:
    """Creates the resource group, storage account, virtual network and subnet"""

    def __init__(self, clients: AzureClients, config: SampleConfig):
        self.clients = clients
        self.config = config

    def create_resource_group(self):
        rg_name = self.config.group_name
        logger.info(f"Create resource group '{rg_name}'...")
        rg_params = {
            'location': self.config.location,
        }
        result = self.clients.resource.resource_groups.create_or_update(rg_name, rg_params)
        logger.info(f"Created resource group '{rg_name}' successfully")
        return result

    def create_storage_account(self):
        storage_name = self.config.storage_account_name
        logger.info(f"Create storage account '{storage_name}'...")
        storage_params = StorageAccountCreateParameters(
            sku=Sku(name=SkuName.standard_lrs),
            kind=Kind.storage_v2,
            location=self.config.location,
        )
        operation = self.clients.storage.storage_accounts.begin_create(
            self.config.group_name, storage_name, storage_params
        )
        result = operation.result()
        logger.info(f"Created storage account '{storage_name}' successfully")
        return result

    def create_virtual_network(self):
        vnet_name = self.config.vnet_name
        logger.info(f"Create virtual network '{vnet_name}'...")
        vnet_params = VirtualNetwork(
            location=self.config.location,
            address_space=AddressSpace(address_prefixes=[self.config.vnet_address_prefix]),
        )
        operation = self.clients.network.virtual_networks.begin_create_or_update(
            self.config.group_name, vnet_name, vnet_params
        )
        result = operation.result()
        logger.info(f"Created virtual network '{vnet_name}' successfully")
        return result

    def create_subnet(self) -> Subnet:
        """Create the subnet and return it as read back from Azure (with its ID)"""
        subnet_name = self.config.subnet_name
        logger.info(f"Create subnet '{subnet_name}'...")
        operation = self.clients.network.subnets.begin_create_or_update(
            self.config.group_name,
            self.config.vnet_name,
            subnet_name,
            Subnet(address_prefix=self.config.subnet_address_prefix),
        )
        operation.result()
        logger.info(f"Created subnet '{subnet_name}'")

        logger.info(f"Get subnet info for subnet '{subnet_name}'...")
        return self.clients.network.subnets.get(
            self.config.group_name, self.config.vnet_name, subnet_name
        )

    def create_needed_resources(self) -> Subnet:
        """Create all common resources needed before creating VMs.

        Steps run in dependency order and the first failure propagates;
        anything already created is left for the resource group deletion.
        """
        logger.info("Create needed resources")
        self.create_resource_group()
        self.create_storage_account()
        self.create_virtual_network()
        return self.create_subnet()

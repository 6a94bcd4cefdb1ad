"""
Shared test fixtures for the Azure VM sample.

The management clients are mocks hanging off a single parent Mock, so the
parent's mock_calls records every remote call in the order it was issued.
"""

from unittest.mock import Mock

import pytest
from azure.mgmt.compute.models import OSDisk, StorageProfile, VirtualMachine

from azure_vm_sample.clients import AzureClients
from azure_vm_sample.config import REQUIRED_ENV_VARS, SampleConfig, VMSpec

LINUX_VM = VMSpec(name='linuxVM', publisher='Canonical', offer='UbuntuServer', sku='16.04.0-LTS')
WINDOWS_VM = VMSpec(name='windowsVM', publisher='MicrosoftWindowsServer',
                    offer='WindowsServer', sku='2016-Datacenter')


def make_vm(name, disk_size_gb=None, tags=None):
    """Build a VirtualMachine model as returned by the compute API"""
    vm = VirtualMachine(
        location='westus',
        tags=tags,
        storage_profile=StorageProfile(
            os_disk=OSDisk(name='osDisk', create_option='FromImage', disk_size_gb=disk_size_gb)
        ),
    )
    vm.name = name
    vm.id = f"/subscriptions/sub-id/resourceGroups/test-rg/providers/Microsoft.Compute/virtualMachines/{name}"
    vm.type = 'Microsoft.Compute/virtualMachines'
    return vm


def remote_calls(parent):
    """Names of the client methods called on the mocked clients, in call order.

    Calls on returned pollers (``.result()``) are left out.
    """
    return [name for name, _args, _kwargs in parent.mock_calls if '()' not in name]


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================


@pytest.fixture
def sample_config():
    return SampleConfig(
        group_name='test-rg',
        location='westus',
        storage_account_name='teststorage',
        vms=[LINUX_VM, WINDOWS_VM],
    )


@pytest.fixture
def azure_env(monkeypatch):
    """All service principal variables set to fake values"""
    values = {name: f"fake-{name.lower()}" for name in REQUIRED_ENV_VARS}
    for name, value in values.items():
        monkeypatch.setenv(name, value)
    return values


# ============================================================================
# AZURE MOCKING FIXTURES
# ============================================================================


@pytest.fixture
def azure_parent():
    """Parent mock recording every call made through the mocked clients"""
    parent = Mock()

    parent.network.subnets.get.return_value = Mock(
        id='/subscriptions/sub-id/resourceGroups/test-rg/providers/Microsoft.Network/virtualNetworks/vNet/subnets/subnet'
    )
    parent.network.public_ip_addresses.get.side_effect = lambda rg, name: Mock(
        ip_address='20.123.45.67',
        dns_settings=Mock(fqdn=f"{name}.westus.cloudapp.azure.com"),
    )
    parent.network.network_interfaces.get.side_effect = lambda rg, name: Mock(
        id=f"/subscriptions/sub-id/resourceGroups/test-rg/providers/Microsoft.Network/networkInterfaces/{name}"
    )
    parent.compute.virtual_machines.get.side_effect = lambda rg, name, **kwargs: make_vm(name)
    parent.compute.virtual_machines.list_all.return_value = [
        make_vm('linuxVM', tags={'where': 'on azure'}),
        make_vm('windowsVM'),
        make_vm('someoneElsesVM'),
    ]
    return parent


@pytest.fixture
def mock_clients(azure_parent):
    return AzureClients(
        resource=azure_parent.resource,
        storage=azure_parent.storage,
        network=azure_parent.network,
        compute=azure_parent.compute,
    )


@pytest.fixture
def call_names(azure_parent):
    """Callable returning the remote calls issued so far"""
    return lambda: remote_calls(azure_parent)


@pytest.fixture
def linux_vm():
    return LINUX_VM


@pytest.fixture
def windows_vm():
    return WINDOWS_VM


@pytest.fixture
def vm_factory():
    return make_vm

"""
VM lifecycle driver

Creates a VM together with its public IP and network interface, runs the
fixed battery of operations against it (tag, attach and detach a data disk,
grow the OS disk, start, restart, stop) and deletes it.
"""

import logging
from typing import Optional, Tuple

from azure.core.exceptions import AzureError
from azure.mgmt.compute.models import (
    DataDisk, DiskCreateOptionTypes, HardwareProfile, ImageReference,
    NetworkInterfaceReference, NetworkProfile, OSDisk, OSProfile,
    StorageProfile, VirtualHardDisk, VirtualMachine, VirtualMachineUpdate
)
from azure.mgmt.network.models import (
    IPAllocationMethod, NetworkInterface, NetworkInterfaceIPConfiguration,
    PublicIPAddress, PublicIPAddressDnsSettings, Subnet
)

from .clients import AzureClients
from .config import DNS_LABEL_PREFIX_LENGTH, SampleConfig, VMSpec
from .inventory import format_vm

logger = logging.getLogger(__name__)

VHD_URI_TEMPLATE = "https://{account}.blob.core.windows.net/{container}/{name}.vhd"

# Size assumed for an OS disk that reports no size, and the growth applied on resize
DEFAULT_OS_DISK_SIZE_GB = 256
OS_DISK_SIZE_INCREMENT_GB = 10

DATA_DISK_NAME = 'dataDisk'
DATA_DISK_SIZE_GB = 1


def next_os_disk_size(current_size_gb: Optional[int]) -> int:
    """Size to request when growing an OS disk"""
    if not current_size_gb or current_size_gb <= 0:
        current_size_gb = DEFAULT_OS_DISK_SIZE_GB
    return current_size_gb + OS_DISK_SIZE_INCREMENT_GB


def dns_label_for(vm_name: str) -> str:
    return f"azuresample-{vm_name[:DNS_LABEL_PREFIX_LENGTH].lower()}"


def vhd_uri(config: SampleConfig, name: str) -> str:
    return VHD_URI_TEMPLATE.format(
        account=config.storage_account_name, container=config.vhd_container, name=name
    )


def build_vm_parameters(config: SampleConfig, spec: VMSpec, nic_id: str) -> VirtualMachine:
    """Build the VirtualMachine argument for creating a VM"""
    return VirtualMachine(
        location=config.location,
        hardware_profile=HardwareProfile(
            vm_size=config.vm_size
        ),
        storage_profile=StorageProfile(
            image_reference=ImageReference(
                publisher=spec.publisher,
                offer=spec.offer,
                sku=spec.sku,
                version=spec.version
            ),
            os_disk=OSDisk(
                name='osDisk',
                vhd=VirtualHardDisk(uri=vhd_uri(config, spec.name)),
                create_option=DiskCreateOptionTypes.from_image
            )
        ),
        os_profile=OSProfile(
            computer_name=spec.name,
            admin_username=config.admin_username,
            admin_password=config.admin_password
        ),
        network_profile=NetworkProfile(
            network_interfaces=[
                NetworkInterfaceReference(id=nic_id, primary=True)
            ]
        )
    )


class VMLifecycleDriver:
    """Runs the per-VM steps of the sample.

    With continue_on_error, failures of individual operations in the battery
    are logged and the remaining operations still run. Creation and deletion
    errors always propagate.
    """

    def __init__(self, clients: AzureClients, config: SampleConfig, continue_on_error: bool = False):
        self.clients = clients
        self.config = config
        self.continue_on_error = continue_on_error

    @property
    def _vms(self):
        return self.clients.compute.virtual_machines

    def create_pip_and_nic(self, spec: VMSpec, subnet: Subnet) -> Tuple[PublicIPAddress, NetworkInterface]:
        """Create a public IP address and a network interface in an existing subnet.

        Both are read back after creation so the returned NIC carries its ID.
        """
        rg_name = self.config.group_name
        logger.info(f"Create PIP and NIC for '{spec.name}' VM...")

        pip_name = f"pip-{spec.name}"
        logger.info(f"\tCreate public IP address '{pip_name}'...")
        pip_params = PublicIPAddress(
            location=self.config.location,
            dns_settings=PublicIPAddressDnsSettings(domain_name_label=dns_label_for(spec.name))
        )
        self.clients.network.public_ip_addresses.begin_create_or_update(
            rg_name, pip_name, pip_params
        ).result()
        logger.info(f"\tCreated public IP address '{pip_name}'")

        logger.info(f"\tGet public IP address info for '{pip_name}'...")
        public_ip = self.clients.network.public_ip_addresses.get(rg_name, pip_name)

        nic_name = f"nic-{spec.name}"
        logger.info(f"\tCreate NIC '{nic_name}'...")
        nic_params = NetworkInterface(
            location=self.config.location,
            ip_configurations=[
                NetworkInterfaceIPConfiguration(
                    name=f"IPconfig-{spec.name}",
                    public_ip_address=public_ip,
                    private_ip_allocation_method=IPAllocationMethod.dynamic,
                    subnet=subnet
                )
            ]
        )
        self.clients.network.network_interfaces.begin_create_or_update(
            rg_name, nic_name, nic_params
        ).result()
        logger.info(f"\tCreated NIC '{nic_name}' successfully")

        logger.info(f"\tGet NIC info for '{nic_name}'...")
        nic = self.clients.network.network_interfaces.get(rg_name, nic_name)
        return public_ip, nic

    def create_vm(self, spec: VMSpec, subnet: Subnet) -> VirtualMachine:
        """Create a VM in the provided subnet"""
        public_ip, nic = self.create_pip_and_nic(spec, subnet)

        logger.info(f"🖥️ Create '{spec.name}' VM...")
        vm_params = build_vm_parameters(self.config, spec, nic.id)
        vm = self._vms.begin_create_or_update(self.config.group_name, spec.name, vm_params).result()

        fqdn = public_ip.dns_settings.fqdn if public_ip.dns_settings else None
        logger.info(
            f"✅ Now you can connect to '{spec.name}' VM via "
            f"'ssh {self.config.admin_username}@{fqdn}' (with password)"
        )
        return vm

    def get_vm(self, spec: VMSpec) -> VirtualMachine:
        logger.info(f"Get VM '{spec.name}' by name")
        vm = self._vms.get(self.config.group_name, spec.name, expand='instanceView')
        logger.info(format_vm(vm))
        return vm

    def tag_vm(self, spec: VMSpec):
        logger.info(f"🏷️ Tag VM '{spec.name}'")
        update = VirtualMachineUpdate(tags=dict(self.config.tags))
        return self._vms.begin_update(self.config.group_name, spec.name, update).result()

    def attach_data_disk(self, spec: VMSpec):
        logger.info(f"💾 Attach data disk to VM '{spec.name}'")
        data_disk = DataDisk(
            lun=0,
            name=DATA_DISK_NAME,
            vhd=VirtualHardDisk(uri=vhd_uri(self.config, f"dataDisks-{spec.name}")),
            create_option=DiskCreateOptionTypes.empty,
            disk_size_gb=DATA_DISK_SIZE_GB
        )
        update = VirtualMachineUpdate(storage_profile=StorageProfile(data_disks=[data_disk]))
        return self._vms.begin_update(self.config.group_name, spec.name, update).result()

    def detach_data_disks(self, spec: VMSpec):
        logger.info(f"Detach data disks from VM '{spec.name}'")
        update = VirtualMachineUpdate(storage_profile=StorageProfile(data_disks=[]))
        return self._vms.begin_update(self.config.group_name, spec.name, update).result()

    def update_os_disk_size(self, spec: VMSpec) -> int:
        """Grow the OS disk; the VM has to be deallocated before the disk can be resized"""
        rg_name = self.config.group_name
        logger.info(f"Update OS disk size for VM '{spec.name}' (deallocate, then update)")

        vm = self._vms.get(rg_name, spec.name)
        os_disk = vm.storage_profile.os_disk
        new_size = next_os_disk_size(os_disk.disk_size_gb)

        self._vms.begin_deallocate(rg_name, spec.name).result()

        os_disk.disk_size_gb = new_size
        update = VirtualMachineUpdate(storage_profile=StorageProfile(os_disk=os_disk))
        self._vms.begin_update(rg_name, spec.name, update).result()
        logger.info(f"OS disk of '{spec.name}' is now {new_size} GB")
        return new_size

    def start_vm(self, spec: VMSpec):
        logger.info(f"▶️ Start VM '{spec.name}'...")
        self._vms.begin_start(self.config.group_name, spec.name).result()

    def restart_vm(self, spec: VMSpec):
        logger.info(f"🔄 Restart VM '{spec.name}'...")
        self._vms.begin_restart(self.config.group_name, spec.name).result()

    def stop_vm(self, spec: VMSpec):
        logger.info(f"⏹️ Stop VM '{spec.name}'...")
        self._vms.begin_power_off(self.config.group_name, spec.name).result()

    def run_operations(self, spec: VMSpec) -> bool:
        """Perform the operation battery on a VM.

        Returns True when every operation succeeded. Only Azure errors count
        as a failed operation under continue_on_error; any other exception
        (a malformed VM returned by the API, a bug) always propagates.
        """
        logger.info(f"Performing various operations on '{spec.name}' VM")
        self.get_vm(spec)

        operations = [
            self.tag_vm,
            self.attach_data_disk,
            self.detach_data_disks,
            self.update_os_disk_size,
            self.start_vm,
            self.restart_vm,
            self.stop_vm,
        ]
        succeeded = True
        for operation in operations:
            try:
                operation(spec)
            except AzureError as e:
                if not self.continue_on_error:
                    raise
                succeeded = False
                logger.error(f"❌ {operation.__name__} failed for '{spec.name}': {e}")
        return succeeded

    def delete_vm(self, spec: VMSpec):
        logger.info(f"🗑️ Delete '{spec.name}' virtual machine...")
        self._vms.begin_delete(self.config.group_name, spec.name).result()
        logger.info(f"Deleted '{spec.name}'")

"""Listing of the VMs visible to the subscription"""

import logging
from typing import List

logger = logging.getLogger(__name__)


def format_vm(vm) -> str:
    """Format basic info about a virtual machine"""
    if vm.tags:
        tags = "\n" + "".join(f"\t\t{key} = {value}\n" for key, value in sorted(vm.tags.items()))
    else:
        tags = "\n\t\tNo tags yet\n"

    lines = [
        f"Virtual machine '{vm.name}'",
        f"\tID: {vm.id}",
        f"\tType: {vm.type}",
        f"\tLocation: {vm.location}",
        f"\tTags: {tags}",
    ]
    return "\n".join(lines)


def list_vms(compute_client) -> List:
    """Log every VM in the subscription, not only those created by the sample"""
    logger.info("List VMs in subscription...")
    vms = list(compute_client.virtual_machines.list_all())

    if not vms:
        logger.info("There are no VMs in this subscription")
        return vms

    logger.info(f"VMs in subscription: {len(vms)}")
    for vm in vms:
        logger.info(format_vm(vm))
    return vms

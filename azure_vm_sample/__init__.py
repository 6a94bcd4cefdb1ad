"""
Azure VM management sample

Provisions a resource group, storage account and virtual network, creates
a set of VMs from image definitions, runs a fixed battery of operations on
each of them, lists the VMs of the subscription and tears everything down.
"""

__version__ = "0.1.0"

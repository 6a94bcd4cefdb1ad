"""Exceptions raised by the sample itself.

Remote failures are not wrapped: they surface as the Azure SDK's own
``azure.core.exceptions.AzureError`` subclasses.
"""


class SampleError(Exception):
    """Base class for errors raised by azure_vm_sample"""


class ConfigurationError(SampleError):
    """Missing or invalid configuration (environment, config.yaml)"""

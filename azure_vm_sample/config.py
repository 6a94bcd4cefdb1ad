"""
Configuration for the VM sample

Credentials come from the process environment, VM admin credentials from
.env.secret and everything else (names, location, VM images) from an
optional config.yaml.
"""

import logging
import os
import random
import re
import string
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import yaml
from dotenv import dotenv_values

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS = (
    'AZURE_TENANT_ID',
    'AZURE_CLIENT_ID',
    'AZURE_CLIENT_SECRET',
    'AZURE_SUBSCRIPTION_ID',
)

DEFAULT_ADMIN_USERNAME = 'notadmin'
DEFAULT_ADMIN_PASSWORD = 'Pa$$w0rd1975'

# The public IP DNS label is built from the first characters of the VM name
DNS_LABEL_PREFIX_LENGTH = 5

DEFAULT_VMS = [
    {
        'name': 'linuxVM',
        'publisher': 'Canonical',
        'offer': 'UbuntuServer',
        'sku': '16.04.0-LTS',
    },
    {
        'name': 'windowsVM',
        'publisher': 'MicrosoftWindowsServer',
        'offer': 'WindowsServer',
        'sku': '2016-Datacenter',
    },
]


@dataclass
class Credentials:
    """Service principal identity read from the environment"""
    tenant_id: str
    client_id: str
    client_secret: str
    subscription_id: str


@dataclass
class VMSpec:
    """One machine definition: a name and the image it boots from"""
    name: str
    publisher: str
    offer: str
    sku: str
    version: str = 'latest'

    def __post_init__(self):
        if not self.name or len(self.name) < DNS_LABEL_PREFIX_LENGTH:
            raise ConfigurationError(
                f"VM name '{self.name}' must be at least "
                f"{DNS_LABEL_PREFIX_LENGTH} characters long"
            )
        for attr in ('publisher', 'offer', 'sku'):
            if not getattr(self, attr):
                raise ConfigurationError(f"VM '{self.name}' is missing image {attr}")


@dataclass
class SampleConfig:
    """Names and settings shared by every step of the sample"""
    group_name: str = 'azure-vm-sample-group'
    location: str = 'westus'
    storage_account_name: Optional[str] = None
    vhd_container: str = 'vhds'
    vnet_name: str = 'vNet'
    subnet_name: str = 'subnet'
    vnet_address_prefix: str = '10.0.0.0/16'
    subnet_address_prefix: str = '10.0.0.0/24'
    vm_size: str = 'Standard_DS1_v2'
    admin_username: str = DEFAULT_ADMIN_USERNAME
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    tags: Dict[str, str] = field(default_factory=lambda: {
        'who rocks': 'python',
        'where': 'on azure',
    })
    vms: List[VMSpec] = field(default_factory=lambda: [VMSpec(**vm) for vm in DEFAULT_VMS])

    def __post_init__(self):
        if not self.storage_account_name:
            self.storage_account_name = generate_storage_account_name(self.group_name)
        if not self.vms:
            raise ConfigurationError("At least one VM definition is required")
        names = [vm.name for vm in self.vms]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"VM names must be unique: {names}")


def generate_storage_account_name(base: str) -> str:
    """Storage account names are global, lowercase alphanumeric and at most 24 chars"""
    clean_name = re.sub(r'[^a-z0-9]', '', base.lower())
    # Azure rejects account names containing some reserved words
    for word in ('windows', 'microsoft', 'azure'):
        clean_name = clean_name.replace(word, '')
    if len(clean_name) < 3:
        clean_name = 'vmsample'

    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=8))
    return f"{clean_name[:16]}{suffix}"[:24]


def load_credentials(environ: Optional[Mapping[str, str]] = None) -> Credentials:
    """Read the service principal identity, failing on any missing variable"""
    if environ is None:
        environ = os.environ

    missing = [name for name in REQUIRED_ENV_VARS if not environ.get(name)]
    if missing:
        raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")

    return Credentials(
        tenant_id=environ['AZURE_TENANT_ID'],
        client_id=environ['AZURE_CLIENT_ID'],
        client_secret=environ['AZURE_CLIENT_SECRET'],
        subscription_id=environ['AZURE_SUBSCRIPTION_ID'],
    )


def load_secrets(secret_file: str = '.env.secret') -> Dict[str, str]:
    """Load VM admin credentials from .env.secret file"""
    if os.path.exists(secret_file):
        values = dotenv_values(secret_file)
        return {
            'admin_username': values.get('ADMIN_USERNAME') or DEFAULT_ADMIN_USERNAME,
            'admin_password': values.get('ADMIN_PASSWORD') or DEFAULT_ADMIN_PASSWORD,
        }

    logger.warning(f"{secret_file} not found. Using default VM admin credentials.")
    return {
        'admin_username': DEFAULT_ADMIN_USERNAME,
        'admin_password': DEFAULT_ADMIN_PASSWORD,
    }


def load_config(config_file: str = 'config.yaml', secret_file: str = '.env.secret') -> SampleConfig:
    """Build the sample configuration from config.yaml and .env.secret"""
    data = {}
    if os.path.exists(config_file):
        with open(config_file, 'r') as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid {config_file}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{config_file} must contain a mapping")
    else:
        logger.info(f"{config_file} not found. Using default configuration.")

    known = set(SampleConfig.__dataclass_fields__) - {'admin_username', 'admin_password', 'vms'}
    unknown = set(data) - known - {'vms'}
    if unknown:
        raise ConfigurationError(f"Unknown keys in {config_file}: {', '.join(sorted(unknown))}")

    kwargs = {key: value for key, value in data.items() if key in known}
    if 'vms' in data:
        try:
            kwargs['vms'] = [VMSpec(**vm) for vm in data['vms'] or []]
        except TypeError as e:
            raise ConfigurationError(f"Invalid VM definition in {config_file}: {e}") from e

    kwargs.update(load_secrets(secret_file))
    return SampleConfig(**kwargs)

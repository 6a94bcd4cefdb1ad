"""Command line entry point for the Azure VM sample"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from azure.core.exceptions import AzureError

from .clients import create_clients
from .config import load_config, load_credentials
from .errors import SampleError
from .pipeline import run_pipeline

LOG_NAME = 'azure-vm-sample'


def setup_logging(log_dir: Optional[str] = 'var/logs', verbose: bool = False):
    """Setup logging configuration"""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(log_dir, f"{LOG_NAME}.log")))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )

    # Reduce Azure SDK logging verbosity
    logging.getLogger('azure').setLevel(logging.WARNING)
    logging.getLogger('azure.core.pipeline.policies.http_logging_policy').setLevel(logging.WARNING)
    logging.getLogger('azure.mgmt').setLevel(logging.WARNING)
    logging.getLogger('azure.identity').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def confirm_teardown() -> bool:
    """Ask before deleting; anything but 'yes' keeps the resources"""
    try:
        response = input("Delete the VMs and other resources created in this sample? Type 'yes' to confirm: ")
    except EOFError:
        return False
    return response.strip().lower() == 'yes'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Provision, exercise and tear down Azure VMs',
        epilog='Requires AZURE_TENANT_ID, AZURE_CLIENT_ID, AZURE_CLIENT_SECRET '
               'and AZURE_SUBSCRIPTION_ID in the environment.'
    )
    parser.add_argument('--config', default='config.yaml',
                        help='YAML file with names, location and VM images (default: config.yaml)')
    parser.add_argument('--secrets', default='.env.secret',
                        help='Dotenv file with ADMIN_USERNAME/ADMIN_PASSWORD (default: .env.secret)')
    parser.add_argument('--parallel', action='store_true',
                        help='Create and exercise the VMs concurrently')
    parser.add_argument('--continue-on-error', action='store_true',
                        help='Log failed VM operations and carry on with the next one')
    parser.add_argument('--no-teardown', action='store_true',
                        help='Leave the VMs and the resource group in place')
    parser.add_argument('--yes', '-y', action='store_true',
                        help='Tear down without waiting for confirmation')
    parser.add_argument('--log-dir', default='var/logs',
                        help='Directory for the log file, empty to disable (default: var/logs)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI interface"""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_dir or None, args.verbose)

    try:
        credentials = load_credentials()
        config = load_config(args.config, args.secrets)
        clients = create_clients(credentials)

        result = run_pipeline(
            clients,
            config,
            parallel=args.parallel,
            continue_on_error=args.continue_on_error,
            teardown_resources=not args.no_teardown,
            confirm=None if args.yes else confirm_teardown,
        )
    except (SampleError, AzureError) as e:
        print(f"❌ Error: {e}")
        return 1

    failed = sorted(name for name, ok in result.operations_ok.items() if not ok)
    if failed:
        print(f"⚠️  Some operations failed on: {', '.join(failed)}")
    print(f"✅ Sample completed: {len(result.created)} VM(s) created, "
          f"{len(result.deleted)} deleted")
    return 0


if __name__ == '__main__':
    sys.exit(main())

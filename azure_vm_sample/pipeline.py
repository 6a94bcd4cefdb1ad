"""
Orchestration of the whole sample

Provision shared resources, create and exercise every VM, list the
subscription's VMs, then tear down. VMs are handled one after the other, or
by a worker pool with a barrier after each stage so that no stage starts
before every VM finished the previous one.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .clients import AzureClients
from .config import SampleConfig, VMSpec
from .inventory import list_vms
from .provisioner import ResourceProvisioner
from .vm_lifecycle import VMLifecycleDriver

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """What a run of the sample did"""
    created: List[str] = field(default_factory=list)
    operations_ok: Dict[str, bool] = field(default_factory=dict)
    listed_vms: int = 0
    deleted: List[str] = field(default_factory=list)
    group_deleted: bool = False


def format_duration(seconds: float) -> str:
    """Format duration in a human-readable way"""
    if seconds < 60:
        return f"{seconds:.1f} seconds"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f} minutes ({seconds:.1f} seconds)"
    else:
        hours = seconds / 3600
        minutes = (seconds % 3600) / 60
        return f"{hours:.1f} hours, {minutes:.1f} minutes ({seconds:.1f} seconds)"


def _log_operation_start(operation: str) -> float:
    start_time = time.time()
    logger.info(f"🚀 Starting {operation} at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    return start_time


def _log_operation_end(operation: str, start_time: float):
    duration = time.time() - start_time
    logger.info(f"✅ {operation} completed in {format_duration(duration)}")


def run_stage(specs: List[VMSpec], task: Callable[[VMSpec], object], parallel: bool = False) -> Dict[str, object]:
    """Run task for every VM spec and return the results keyed by VM name.

    In parallel mode every task runs in its own worker and the call only
    returns once all of them are done; if any failed, the first failure is
    raised after the others have finished.
    """
    if not parallel or not specs:
        return {spec.name: task(spec) for spec in specs}

    results = {}
    errors = []
    with ThreadPoolExecutor(max_workers=len(specs)) as executor:
        futures = {executor.submit(task, spec): spec for spec in specs}
        for future in as_completed(futures):
            spec = futures[future]
            try:
                results[spec.name] = future.result()
            except Exception as e:
                logger.error(f"❌ '{spec.name}' failed: {e}")
                errors.append(e)

    if errors:
        raise errors[0]
    return results


def teardown(clients: AzureClients, config: SampleConfig, driver: VMLifecycleDriver,
             result: PipelineResult, parallel: bool = False):
    """Delete every VM created by the sample, then the resource group"""
    specs = [spec for spec in config.vms if spec.name in result.created]

    start = _log_operation_start("VM deletion")
    run_stage(specs, driver.delete_vm, parallel)
    result.deleted = [spec.name for spec in specs]
    _log_operation_end("VM deletion", start)

    logger.info(f"🗑️ Delete resource group '{config.group_name}'...")
    clients.resource.resource_groups.begin_delete(config.group_name).result()
    result.group_deleted = True
    logger.info(f"Deleted resource group '{config.group_name}'")


def run_pipeline(clients: AzureClients, config: SampleConfig, parallel: bool = False,
                 continue_on_error: bool = False, teardown_resources: bool = True,
                 confirm: Optional[Callable[[], bool]] = None) -> PipelineResult:
    """Run the sample end to end.

    Any error raised by a step stops the run; resources created so far are
    left in place.
    """
    result = PipelineResult()
    driver = VMLifecycleDriver(clients, config, continue_on_error=continue_on_error)
    overall_start = _log_operation_start("VM sample")

    logger.info(f"Resource group: {config.group_name}")
    logger.info(f"Location: {config.location}")
    logger.info(f"VMs: {', '.join(spec.name for spec in config.vms)}")

    start = _log_operation_start("shared resource provisioning")
    subnet = ResourceProvisioner(clients, config).create_needed_resources()
    _log_operation_end("Shared resource provisioning", start)

    def create(spec: VMSpec):
        vm = driver.create_vm(spec, subnet)
        result.created.append(spec.name)
        return vm

    if parallel:
        start = _log_operation_start("VM creation")
        run_stage(config.vms, create, parallel=True)
        _log_operation_end("VM creation", start)
        logger.info(f"All VMs have been created successfully: {', '.join(result.created)}")

        start = _log_operation_start("VM operations")
        result.operations_ok.update(run_stage(config.vms, driver.run_operations, parallel=True))
        _log_operation_end("VM operations", start)
    else:
        for spec in config.vms:
            start = _log_operation_start(f"VM '{spec.name}' lifecycle")
            create(spec)
            result.operations_ok[spec.name] = driver.run_operations(spec)
            _log_operation_end(f"VM '{spec.name}' lifecycle", start)

    result.listed_vms = len(list_vms(clients.compute))

    if not teardown_resources:
        logger.info(f"💡 Teardown skipped; all resources remain in '{config.group_name}'")
    elif confirm is not None and not confirm():
        logger.info(f"Teardown cancelled; all resources remain in '{config.group_name}'")
    else:
        teardown(clients, config, driver, result, parallel)

    _log_operation_end("VM sample", overall_start)
    return result

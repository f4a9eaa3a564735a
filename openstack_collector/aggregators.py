# aggregators.py

"""
Aggregate fetched OpenStack resources into metric records.

Every aggregator takes optional inputs. None means the fetch failed and
suppresses the metrics that depend on it; an empty collection is valid
data. Aggregators never raise and keep no state between calls.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from .accumulator import Accumulator
from .config import (
    DEFAULT_VOLUME_TYPE, HYPERVISOR, HYPERVISOR_TOTAL, IDENTITY_TOTAL,
    SERVER_STATE, SERVER_STATE_TOTAL, SERVER_STATS, SERVER_STATS_TOTAL,
    STORAGE_POOL, VOLUME_COUNT, VOLUME_COUNT_TOTAL, VOLUME_SIZE,
    VOLUME_SIZE_TOTAL
)
from .models import (
    UNKNOWN_FLAVOR, UNKNOWN_PROJECT, FlavorMap, Hypervisor, ProjectMap,
    ResourceSnapshot, Server, StoragePool, Volume
)

logger = logging.getLogger(__name__)

HYPERVISOR_FIELDS = ("memory_mb", "memory_mb_used", "running_vms", "vcpus", "vcpus_used")
SERVER_RESOURCE_FIELDS = ("vcpus", "ram", "disk")

Counts = Dict[str, int]

def _project_name(projects: ProjectMap, tenant_id: str) -> str:
    return projects.get(tenant_id, UNKNOWN_PROJECT).name

def gather_identity_statistics(acc: Accumulator, projects: Optional[ProjectMap]) -> None:
    """Emit the number of projects."""
    if not projects:
        return

    acc.emit(IDENTITY_TOTAL, {"projects": len(projects)}, {})

def gather_hypervisor_statistics(acc: Accumulator, hypervisors: Optional[List[Hypervisor]]) -> None:
    """
    Emit per hypervisor capacity and usage, then the totals across all of them.

    Counters the compute API did not report are left out rather than
    emitted as zero; the totals sum only the counters that were reported.
    """
    if hypervisors is None:
        return

    totals: Counts = {}

    for hypervisor in hypervisors:
        fields = {
            name: getattr(hypervisor, name) for name in HYPERVISOR_FIELDS
            if getattr(hypervisor, name) is not None
        }
        if not fields:
            logger.warning(f"Hypervisor {hypervisor.hostname} reported no capacity counters")
            continue

        for name, value in fields.items():
            totals[name] = totals.get(name, 0) + value

        acc.emit(HYPERVISOR, fields, {"hypervisor": hypervisor.hostname})

    if totals:
        acc.emit(HYPERVISOR_TOTAL, totals, {})

def gather_server_statistics(acc: Accumulator, projects: Optional[ProjectMap],
                             flavors: Optional[FlavorMap],
                             servers: Optional[List[Server]]) -> None:
    """
    Emit server counts by status and the vcpus, ram and disk they consume,
    overall and per project.

    A flavor reference is resolved through the flavor map; a server that
    carries its flavor sizes inline uses those. Servers whose flavor is
    unknown count towards the status totals with zero resources. Servers whose project is unknown land in the project
    bucket named "".
    """
    if projects is None or flavors is None or servers is None:
        return

    overall_states: Counts = defaultdict(int)
    overall_stats: Counts = dict.fromkeys(SERVER_RESOURCE_FIELDS, 0)
    project_states: Dict[str, Counts] = {}
    project_stats: Dict[str, Counts] = {}

    for server in servers:
        status = server.status.lower()

        flavor = UNKNOWN_FLAVOR
        if server.flavor_id is not None:
            flavor = flavors.get(server.flavor_id, UNKNOWN_FLAVOR)
        elif server.flavor is not None:
            flavor = server.flavor
        if flavor is UNKNOWN_FLAVOR:
            logger.debug(f"Unresolved flavor {server.flavor_id!r}, counting as zero")

        project = _project_name(projects, server.tenant_id)
        if project not in project_states:
            project_states[project] = defaultdict(int)
            project_stats[project] = dict.fromkeys(SERVER_RESOURCE_FIELDS, 0)

        overall_states[status] += 1
        project_states[project][status] += 1

        for name in SERVER_RESOURCE_FIELDS:
            value = getattr(flavor, name)
            overall_stats[name] += value
            project_stats[project][name] += value

    if servers:
        acc.emit(SERVER_STATE_TOTAL, dict(overall_states), {})
        acc.emit(SERVER_STATS_TOTAL, overall_stats, {})

    for project, states in project_states.items():
        tags = {"project": project}
        acc.emit(SERVER_STATE, dict(states), tags)
        acc.emit(SERVER_STATS, project_stats[project], tags)

def gather_volume_statistics(acc: Accumulator, projects: Optional[ProjectMap],
                             volumes: Optional[List[Volume]]) -> None:
    """Emit volume counts and sizes by volume type, overall and per project."""
    if projects is None or volumes is None:
        return

    overall_count: Counts = defaultdict(int)
    overall_size: Counts = defaultdict(int)
    project_count: Dict[str, Counts] = {}
    project_size: Dict[str, Counts] = {}

    for volume in volumes:
        volume_type = volume.volume_type or DEFAULT_VOLUME_TYPE

        project = _project_name(projects, volume.tenant_id)
        if project not in project_count:
            project_count[project] = defaultdict(int)
            project_size[project] = defaultdict(int)

        overall_count[volume_type] += 1
        overall_size[volume_type] += volume.size
        project_count[project][volume_type] += 1
        project_size[project][volume_type] += volume.size

    if volumes:
        acc.emit(VOLUME_COUNT_TOTAL, dict(overall_count), {})
        acc.emit(VOLUME_SIZE_TOTAL, dict(overall_size), {})

    for project, counts in project_count.items():
        tags = {"project": project}
        acc.emit(VOLUME_COUNT, dict(counts), tags)
        acc.emit(VOLUME_SIZE, dict(project_size[project]), tags)

def gather_storage_pool_statistics(acc: Accumulator, storage_pools: Optional[List[StoragePool]]) -> None:
    """Emit capacity per storage pool. There is no rollup across pools."""
    if storage_pools is None:
        return

    for pool in storage_pools:
        fields = {
            "total_capacity_gb": pool.total_capacity_gb,
            "free_capacity_gb": pool.free_capacity_gb,
        }
        acc.emit(STORAGE_POOL, fields, {"name": pool.backend_name})

def gather_all(acc: Accumulator, snapshot: ResourceSnapshot) -> None:
    """Run every aggregator over whatever the snapshot holds."""
    gather_identity_statistics(acc, snapshot.projects)
    gather_hypervisor_statistics(acc, snapshot.hypervisors)
    gather_server_statistics(acc, snapshot.projects, snapshot.flavors, snapshot.servers)
    gather_volume_statistics(acc, snapshot.projects, snapshot.volumes)
    gather_storage_pool_statistics(acc, snapshot.storage_pools)

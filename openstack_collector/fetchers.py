# fetchers.py

"""Resource fetchers that list OpenStack resources through openstacksdk."""

import logging
import math
from collections.abc import Mapping
from typing import Any, Callable, List, Optional

from openstack.connection import Connection

from .exceptions import FetchError
from .models import (
    Flavor, FlavorMap, Hypervisor, Project, ProjectMap, Server,
    StoragePool, Volume
)

logger = logging.getLogger(__name__)

def _attr(record: Any, *names: str, default: Any = None) -> Any:
    """
    Read the first present attribute out of an SDK resource or a raw dict.

    openstacksdk renames some API fields (memory_mb becomes memory_size,
    tenant_id becomes project_id) so callers pass both spellings.
    """
    for name in names:
        value = getattr(record, name, None)
        if value is None and isinstance(record, Mapping):
            value = record.get(name)
        if value is not None:
            return value
    return default

def _required(record: Any, name: str) -> str:
    value = _attr(record, name)
    if value is None:
        raise KeyError(f"record has no {name!r}")
    return str(value)

def _int(record: Any, *names: str) -> int:
    return int(_attr(record, *names, default=0))

def _optional_int(record: Any, *names: str) -> Optional[int]:
    value = _attr(record, *names)
    return None if value is None else int(value)

def _capacity(value: Any) -> float:
    """Decode a pool capacity which may be a number, "infinite" or "unknown"."""
    if value is None:
        return 0.0
    if isinstance(value, str):
        if value.strip().lower() == "infinite":
            return math.inf
        try:
            return float(value)
        except ValueError:
            return 0.0
    return float(value)

def _fetch(conn: Connection, kind: str, service: str, method: str,
           decode: Callable[[Any], Any], **query) -> List[Any]:
    """
    List every page of a resource and decode each record.

    Raises FetchError tagged with the stage that failed.
    """
    try:
        lister = getattr(getattr(conn, service), method)
    except Exception as e:
        raise FetchError(kind, "client", e) from e

    try:
        raw_records = list(lister(**query))
    except Exception as e:
        raise FetchError(kind, "list", e) from e

    try:
        records = [decode(raw) for raw in raw_records]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise FetchError(kind, "extract", e) from e

    logger.debug(f"Fetched {len(records)} {kind}")
    return records

def decode_project(raw: Any) -> Project:
    return Project(id=_required(raw, "id"), name=_attr(raw, "name", default=""))

def decode_flavor(raw: Any) -> Flavor:
    return Flavor(
        id=_required(raw, "id"),
        vcpus=_int(raw, "vcpus"),
        ram=_int(raw, "ram"),
        disk=_int(raw, "disk")
    )

def decode_hypervisor(raw: Any) -> Hypervisor:
    return Hypervisor(
        hostname=_attr(raw, "name", "hypervisor_hostname", default=""),
        memory_mb=_optional_int(raw, "memory_size", "memory_mb"),
        memory_mb_used=_optional_int(raw, "memory_used", "memory_mb_used"),
        running_vms=_optional_int(raw, "running_vms"),
        vcpus=_optional_int(raw, "vcpus"),
        vcpus_used=_optional_int(raw, "vcpus_used")
    )

def decode_server(raw: Any) -> Server:
    flavor_id: Optional[str] = None
    embedded: Optional[Flavor] = None
    flavor = _attr(raw, "flavor")
    if flavor is not None:
        original_name = _attr(flavor, "original_name")
        if original_name is not None:
            # From microversion 2.47 the flavor is embedded without its id,
            # and the SDK reports original_name as the id.
            embedded = Flavor(
                id="",
                vcpus=_int(flavor, "vcpus"),
                ram=_int(flavor, "ram"),
                disk=_int(flavor, "disk")
            )
        else:
            ref = _attr(flavor, "id")
            if ref is not None:
                flavor_id = str(ref)

    return Server(
        status=_attr(raw, "status", default=""),
        flavor_id=flavor_id,
        tenant_id=_attr(raw, "project_id", "tenant_id", default=""),
        flavor=embedded
    )

def decode_volume(raw: Any) -> Volume:
    return Volume(
        tenant_id=_attr(
            raw, "project_id", "tenant_id", "os-vol-tenant-attr:tenant_id",
            default=""
        ),
        volume_type=_attr(raw, "volume_type", default=""),
        size=_int(raw, "size")
    )

def decode_storage_pool(raw: Any) -> StoragePool:
    capabilities = _attr(raw, "capabilities", default={})
    return StoragePool(
        backend_name=_attr(capabilities, "volume_backend_name", default=""),
        total_capacity_gb=_capacity(_attr(capabilities, "total_capacity_gb")),
        free_capacity_gb=_capacity(_attr(capabilities, "free_capacity_gb"))
    )

def fetch_projects(conn: Connection) -> ProjectMap:
    """Fetch all identity projects keyed by project ID."""
    projects = _fetch(conn, "projects", "identity", "projects", decode_project)
    return {project.id: project for project in projects}

def fetch_hypervisors(conn: Connection) -> List[Hypervisor]:
    """Fetch detailed hypervisor statistics."""
    return _fetch(
        conn, "hypervisors", "compute", "hypervisors", decode_hypervisor,
        details=True
    )

def fetch_flavors(conn: Connection) -> FlavorMap:
    """Fetch all flavors keyed by flavor ID."""
    flavors = _fetch(
        conn, "flavors", "compute", "flavors", decode_flavor, details=True
    )
    return {flavor.id: flavor for flavor in flavors}

def fetch_servers(conn: Connection) -> List[Server]:
    """Fetch servers across all projects."""
    return _fetch(
        conn, "servers", "compute", "servers", decode_server,
        details=True, all_projects=True
    )

def fetch_volumes(conn: Connection) -> List[Volume]:
    """Fetch volumes across all projects."""
    return _fetch(
        conn, "volumes", "block_storage", "volumes", decode_volume,
        details=True, all_projects=True
    )

def fetch_storage_pools(conn: Connection) -> List[StoragePool]:
    """Fetch block storage backend pools from the scheduler stats."""
    return _fetch(
        conn, "storage pools", "block_storage", "backend_pools",
        decode_storage_pool
    )

# models.py

"""Data models for the OpenStack metrics collector."""

from typing import Dict, List, NamedTuple, Optional, Union

Number = Union[int, float]

class Project(NamedTuple):
    """An identity project (tenant)."""
    id: str
    name: str

class Flavor(NamedTuple):
    """A compute flavor. ram is in MB, disk in GB."""
    id: str
    vcpus: int
    ram: int
    disk: int

class Hypervisor(NamedTuple):
    """
    Capacity and usage reported by a compute host.

    A counter is None when the compute API did not report it.
    """
    hostname: str
    memory_mb: Optional[int]
    memory_mb_used: Optional[int]
    running_vms: Optional[int]
    vcpus: Optional[int]
    vcpus_used: Optional[int]

class Server(NamedTuple):
    """
    A server instance.

    flavor_id references the flavor map. Newer compute microversions embed
    the flavor sizes instead of a reference; those land in flavor and
    flavor_id is None.
    """
    status: str
    flavor_id: Optional[str]
    tenant_id: str
    flavor: Optional[Flavor] = None

class Volume(NamedTuple):
    """A block storage volume, size in GB."""
    tenant_id: str
    volume_type: str
    size: int

class StoragePool(NamedTuple):
    """A block storage backend pool."""
    backend_name: str
    total_capacity_gb: float
    free_capacity_gb: float

class Metric(NamedTuple):
    """A single emitted metric record."""
    name: str
    fields: Dict[str, Number]
    tags: Dict[str, str]

ProjectMap = Dict[str, Project]
FlavorMap = Dict[str, Flavor]

# Placeholders for lookups that miss
UNKNOWN_PROJECT = Project(id="", name="")
UNKNOWN_FLAVOR = Flavor(id="", vcpus=0, ram=0, disk=0)

class ResourceSnapshot(NamedTuple):
    """
    Everything fetched during one collection cycle.

    A slot is None when its fetch failed, which is distinct from an
    empty collection.
    """
    projects: Optional[ProjectMap] = None
    hypervisors: Optional[List[Hypervisor]] = None
    flavors: Optional[FlavorMap] = None
    servers: Optional[List[Server]] = None
    volumes: Optional[List[Volume]] = None
    storage_pools: Optional[List[StoragePool]] = None

class CollectorConfig(NamedTuple):
    """Connection and runtime options."""
    auth_url: str
    project: str
    username: str
    password: str
    domain: str = "default"
    verify: bool = True
    parallel: bool = False

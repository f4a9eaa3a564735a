# collector.py

"""One collection cycle: authenticate, fetch, aggregate and emit."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List

from openstack.connection import Connection

from .accumulator import Accumulator, MetricBuffer
from .aggregators import gather_all
from .exceptions import FetchError
from .fetchers import (
    fetch_flavors, fetch_hypervisors, fetch_projects, fetch_servers,
    fetch_storage_pools, fetch_volumes
)
from .models import CollectorConfig, Metric, ResourceSnapshot
from .utils import get_openstack_connection

logger = logging.getLogger(__name__)

# Snapshot slot -> fetcher
FETCHERS = (
    ("projects", fetch_projects),
    ("hypervisors", fetch_hypervisors),
    ("flavors", fetch_flavors),
    ("servers", fetch_servers),
    ("volumes", fetch_volumes),
    ("storage_pools", fetch_storage_pools),
)

def _try_fetch(conn: Connection, fetcher: Callable):
    try:
        return fetcher(conn)
    except FetchError as e:
        logger.warning(f"Failed to get {e.kind}: {e}")
        return None

def fetch_resources(conn: Connection, parallel: bool = False) -> ResourceSnapshot:
    """
    Run every fetcher. A failed fetch leaves its slot as None and never
    stops the others.
    """
    if parallel:
        with ThreadPoolExecutor(max_workers=len(FETCHERS)) as executor:
            futures = {
                slot: executor.submit(_try_fetch, conn, fetcher)
                for slot, fetcher in FETCHERS
            }
            results = {slot: future.result() for slot, future in futures.items()}
    else:
        results = {slot: _try_fetch(conn, fetcher) for slot, fetcher in FETCHERS}

    return ResourceSnapshot(**results)

class OpenStackCollector:
    """Collects summary metrics from an OpenStack cloud into an accumulator."""

    def __init__(self, config: CollectorConfig, accumulator: Accumulator,
                 connect: Callable[[CollectorConfig], Connection] = get_openstack_connection):
        self.config = config
        self.accumulator = accumulator
        self.connect = connect

    def gather(self) -> List[Metric]:
        """
        Run exactly one collection cycle.

        Raises AuthenticationError before anything is emitted if the
        credentials are refused. Returns the records handed to the
        accumulator.
        """
        conn = self.connect(self.config)
        try:
            snapshot = fetch_resources(conn, parallel=self.config.parallel)
        finally:
            conn.close()

        metrics = self.aggregate(snapshot)
        for metric in metrics:
            self.accumulator.emit(metric.name, metric.fields, metric.tags)
        self.accumulator.flush()

        logger.info(f"Emitted {len(metrics)} metrics")
        return metrics

    @staticmethod
    def aggregate(snapshot: ResourceSnapshot) -> List[Metric]:
        """Aggregate a snapshot into metric records without emitting them."""
        buffer = MetricBuffer()
        gather_all(buffer, snapshot)
        return buffer.metrics

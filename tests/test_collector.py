"""
Tests for the collection cycle.

Covers:
- Fetching all six resource kinds into a snapshot
- Partial outages leave only the failed slots empty
- Sequential and parallel fetching agree
- Authentication failure emits nothing
- Records reach the accumulator and the connection is closed
"""
import logging
import os
import sys
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from openstack_collector.accumulator import MetricBuffer
from openstack_collector.collector import OpenStackCollector, fetch_resources
from openstack_collector.exceptions import AuthenticationError
from openstack_collector.models import CollectorConfig, Project

# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def config():
    return CollectorConfig(
        auth_url="https://cloud.example.com:5000",
        project="admin",
        username="admin",
        password="secret",
    )


def create_connection():
    """A fake connection with one of everything."""
    conn = Mock()
    conn.identity.projects.return_value = [SimpleNamespace(id="p1", name="dev")]
    conn.compute.hypervisors.return_value = [
        SimpleNamespace(name="node1", memory_size=1024, memory_used=256, running_vms=1, vcpus=8, vcpus_used=2)
    ]
    conn.compute.flavors.return_value = [SimpleNamespace(id="f1", vcpus=2, ram=4096, disk=20)]
    conn.compute.servers.return_value = [
        SimpleNamespace(status="ACTIVE", flavor={"id": "f1"}, project_id="p1")
    ]
    conn.block_storage.volumes.return_value = [
        SimpleNamespace(project_id="p1", volume_type="", size=10)
    ]
    conn.block_storage.backend_pools.return_value = [
        SimpleNamespace(capabilities={"volume_backend_name": "lvm", "total_capacity_gb": 50, "free_capacity_gb": 20})
    ]
    return conn


# =============================================================================
# fetch_resources Tests
# =============================================================================

class TestFetchResources:
    """Tests for fetch_resources."""

    def test_all_slots_filled(self):
        snapshot = fetch_resources(create_connection())

        assert snapshot.projects == {"p1": Project("p1", "dev")}
        assert len(snapshot.hypervisors) == 1
        assert set(snapshot.flavors) == {"f1"}
        assert len(snapshot.servers) == 1
        assert len(snapshot.volumes) == 1
        assert len(snapshot.storage_pools) == 1

    def test_failed_fetch_leaves_slot_empty(self, caplog):
        conn = create_connection()
        conn.block_storage.volumes.side_effect = RuntimeError("cinder down")

        with caplog.at_level(logging.WARNING):
            snapshot = fetch_resources(conn)

        assert snapshot.volumes is None
        assert snapshot.storage_pools is not None
        assert snapshot.servers is not None
        assert "Failed to get volumes" in caplog.text
        assert "cinder down" in caplog.text

    def test_parallel_matches_sequential(self):
        sequential = fetch_resources(create_connection())
        parallel = fetch_resources(create_connection(), parallel=True)

        assert parallel == sequential


# =============================================================================
# OpenStackCollector Tests
# =============================================================================

class TestOpenStackCollector:
    """Tests for OpenStackCollector.gather."""

    def test_gather_emits_all_series(self, config):
        conn = create_connection()
        acc = MetricBuffer()
        collector = OpenStackCollector(config, acc, connect=lambda cfg: conn)

        metrics = collector.gather()

        assert acc.metrics == metrics
        assert {m.name for m in metrics} == {
            "identity_total",
            "hypervisor",
            "hypervisor_total",
            "server_state_total",
            "server_stats_total",
            "server_state",
            "server_stats",
            "volume_count_total",
            "volume_size_total",
            "volume_count",
            "volume_size",
            "storage_pool",
        }
        assert acc.find("server_stats", project="dev")[0].fields == {"vcpus": 2, "ram": 4096, "disk": 20}
        conn.close.assert_called_once()

    def test_connect_receives_config(self, config):
        connect = Mock(return_value=create_connection())
        OpenStackCollector(config, MetricBuffer(), connect=connect).gather()
        connect.assert_called_once_with(config)

    def test_partial_outage_keeps_other_metrics(self, config):
        conn = create_connection()
        conn.identity.projects.side_effect = RuntimeError("keystone 500")
        acc = MetricBuffer()

        OpenStackCollector(config, acc, connect=lambda cfg: conn).gather()

        names = {m.name for m in acc.metrics}
        assert names == {"hypervisor", "hypervisor_total", "storage_pool"}

    def test_authentication_failure_emits_nothing(self, config):
        acc = Mock()

        def refuse(cfg):
            raise AuthenticationError("Unable to authenticate OpenStack user: 401")

        with pytest.raises(AuthenticationError):
            OpenStackCollector(config, acc, connect=refuse).gather()

        acc.emit.assert_not_called()
        acc.flush.assert_not_called()

    def test_accumulator_flushed_after_emit(self, config):
        acc = Mock()
        OpenStackCollector(config, acc, connect=lambda cfg: create_connection()).gather()

        assert acc.emit.call_count > 0
        assert acc.method_calls[-1][0] == "flush"

    def test_repeat_cycles_identical(self, config):
        collector = OpenStackCollector(config, MetricBuffer(), connect=lambda cfg: create_connection())
        assert collector.gather() == collector.gather()

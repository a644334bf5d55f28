"""Tests for data models and metric definitions."""

import pytest

from pbs_exporter.data import metrics
from pbs_exporter.data.metrics import METRICS, MetricSample, gauge
from pbs_exporter.data.models import (
    DatastoreUsage,
    DiskUsage,
    HostStatus,
    MemoryUsage,
    Snapshot,
    namespace_from_dict,
)


class TestDatastoreUsage:
    def test_from_dict(self):
        usage = DatastoreUsage.from_dict(
            {"store": "store1", "avail": 600, "total": 1000, "used": 400, "ns": ""}
        )
        assert usage == DatastoreUsage(store="store1", total=1000, used=400, avail=600)

    def test_missing_fields_default_to_zero(self):
        # Unavailable datastores are reported without usage fields
        usage = DatastoreUsage.from_dict({"store": "offline", "error": "not mounted"})
        assert usage.store == "offline"
        assert usage.total == 0
        assert usage.used == 0
        assert usage.avail == 0

    def test_wrong_type_raises(self):
        with pytest.raises(ValueError):
            DatastoreUsage.from_dict({"store": "s", "total": "1000"})

    def test_bool_is_not_a_number(self):
        with pytest.raises(ValueError):
            DatastoreUsage.from_dict({"store": "s", "used": True})

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            DatastoreUsage.from_dict(["store1"])

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_raises(self, value):
        with pytest.raises(ValueError):
            DatastoreUsage.from_dict({"store": "s", "total": value})


class TestNamespace:
    def test_named(self):
        assert namespace_from_dict({"ns": "prod"}) == "prod"

    def test_root(self):
        assert namespace_from_dict({"ns": ""}) == ""
        assert namespace_from_dict({}) == ""

    def test_wrong_type(self):
        with pytest.raises(ValueError):
            namespace_from_dict({"ns": 5})


class TestSnapshot:
    def test_from_dict(self):
        snap = Snapshot.from_dict(
            {"backup-id": "100", "backup-type": "vm", "backup-time": 1700000000, "size": 5}
        )
        assert snap.backup_id == "100"
        assert snap.backup_type == "vm"
        assert snap.backup_time == 1700000000

    def test_optional_fields(self):
        snap = Snapshot.from_dict({"backup-id": "host1"})
        assert snap.backup_type == ""
        assert snap.backup_time is None

    def test_non_finite_backup_time(self):
        with pytest.raises(ValueError):
            Snapshot.from_dict({"backup-id": "100", "backup-time": float("inf")})


class TestHostStatus:
    def test_from_dict(self, sample_node_status):
        status = HostStatus.from_dict(sample_node_status["data"])
        assert status.cpu == pytest.approx(0.0523)
        assert status.memory == MemoryUsage(free=2_000_000_000, total=8_000_000_000, used=6_000_000_000)
        assert status.root == DiskUsage(avail=40_000_000_000, total=100_000_000_000, used=60_000_000_000)
        assert status.uptime == 86400
        assert status.wait == pytest.approx(0.0125)

    def test_partial(self):
        status = HostStatus.from_dict({"cpu": 1, "uptime": 10})
        assert status.cpu == 1.0
        assert status.swap == MemoryUsage()
        assert status.root == DiskUsage()
        assert status.wait == 0.0

    @pytest.mark.parametrize(
        "payload",
        [{"cpu": float("nan")}, {"wait": float("inf")}, {"memory": {"total": float("inf")}}],
    )
    def test_non_finite_raises(self, payload):
        with pytest.raises(ValueError):
            HostStatus.from_dict(payload)

    def test_nested_wrong_type(self):
        with pytest.raises(ValueError):
            HostStatus.from_dict({"memory": [1, 2, 3]})


class TestMetrics:
    def test_names_are_unique_and_namespaced(self):
        names = [spec.name for spec in METRICS]
        assert len(names) == len(set(names))
        assert all(name.startswith("pbs_") for name in names)

    def test_labelled_metrics(self):
        assert metrics.SNAPSHOT_COUNT.labelnames == ("namespace",)
        assert metrics.SNAPSHOT_VM_COUNT.labelnames == ("namespace", "vm_id")
        assert metrics.SIZE.labelnames == ()

    def test_gauge(self):
        sample = gauge(metrics.SNAPSHOT_COUNT, 3, {"namespace": "prod"})
        assert sample == MetricSample("pbs_snapshot_count", 3.0, {"namespace": "prod"})
        assert isinstance(sample.value, float)

    def test_gauge_rejects_wrong_labels(self):
        with pytest.raises(ValueError):
            gauge(metrics.SNAPSHOT_VM_COUNT, 1, {"namespace": "prod"})
        with pytest.raises(ValueError):
            gauge(metrics.UP, 1, {"namespace": "prod"})

    def test_sample_key_ignores_label_order(self):
        a = MetricSample("m", 1.0, {"namespace": "x", "vm_id": "1"})
        b = MetricSample("m", 2.0, {"vm_id": "1", "namespace": "x"})
        assert a.key == b.key

import json

import pytest
import yaml
from conftest import DOCUMENTS

from kubectl_pxc import exceptions
from kubectl_pxc.exceptions import SnapshotError
from kubectl_pxc.model import (
    normalize_items,
    parse_cluster,
    parse_node,
    parse_volume,
    pretty_status,
)
from kubectl_pxc.snapshot import ClusterSnapshot, find_snapshot_file, load_snapshot


@pytest.fixture
def snapshot_dir(tmp_path):
    (tmp_path / "nodes.json").write_text(json.dumps(DOCUMENTS["nodes"]))
    (tmp_path / "volumes.json").write_text(json.dumps(DOCUMENTS["volumes"]))
    (tmp_path / "pods.yaml").write_text(yaml.safe_dump(DOCUMENTS["pods"]))
    (tmp_path / "pvcs.yml").write_text(yaml.safe_dump(DOCUMENTS["pvcs"]))
    return tmp_path


def test_load_snapshot_from_directory(snapshot_dir):
    snapshot = load_snapshot(str(snapshot_dir))

    assert len(snapshot.node_index) == 3
    assert len(snapshot.volume_set) == 5
    assert len(snapshot.pod_index) == 5
    assert [c.name for c in snapshot.claims] == ["mysql-pvc-1", "wp-pv-claim", "nfs-claim"]


def test_explicit_file_overrides_directory(snapshot_dir, tmp_path_factory):
    other = tmp_path_factory.mktemp("other") / "nodes.json"
    other.write_text(json.dumps([{"id": "solo", "hostname": "solo-host"}]))

    snapshot = load_snapshot(str(snapshot_dir), {"nodes": str(other)})

    assert [n.id for n in snapshot.node_index.nodes()] == ["solo"]
    assert len(snapshot.volume_set) == 5


def test_missing_kinds_are_empty(tmp_path):
    (tmp_path / "volumes.json").write_text(json.dumps({"volumes": []}))
    snapshot = load_snapshot(str(tmp_path))

    assert len(snapshot.node_index) == 0
    assert snapshot.claims == []


def test_find_snapshot_file_prefers_json(tmp_path):
    (tmp_path / "pods.yaml").write_text("[]")
    (tmp_path / "pods.json").write_text("[]")

    assert find_snapshot_file(str(tmp_path), "pods") == str(tmp_path / "pods.json")
    assert find_snapshot_file(str(tmp_path), "pvcs") is None


def test_malformed_document_raises(tmp_path):
    (tmp_path / "nodes.json").write_text("{not json")

    with pytest.raises(SnapshotError):
        load_snapshot(str(tmp_path))


def test_node_without_id_raises():
    with pytest.raises(SnapshotError):
        ClusterSnapshot.from_documents({"nodes": [{"hostname": "h"}]})


@pytest.mark.parametrize(
    "doc, expected",
    [
        (None, []),
        ([{"id": "a"}], [{"id": "a"}]),
        ({"kind": "List", "items": [{"id": "a"}]}, [{"id": "a"}]),
        ({"nodes": [{"id": "a"}]}, [{"id": "a"}]),
        ({"id": "a"}, [{"id": "a"}]),
    ],
)
def test_normalize_items(doc, expected):
    assert normalize_items(doc, "nodes") == expected


def test_normalize_items_rejects_scalars():
    with pytest.raises(SnapshotError):
        normalize_items("nodes", "nodes")


def test_camel_case_documents():
    node = parse_node(
        {
            "id": "n1",
            "hostname": "h1",
            "mgmtIp": "1.2.3.4",
            "schedulerNodeName": "k8s-1",
            "nodeLabels": {"zone": "a"},
            "pools": [{"ID": 2, "uuid": "p", "used": 3, "totalSize": 9}],
        }
    )
    assert node.mgmt_ip == "1.2.3.4"
    assert node.scheduler_node_name == "k8s-1"
    assert node.labels == {"zone": "a"}
    assert (node.pools[0].id, node.pools[0].total_size) == (2, 9)

    volume = parse_volume(
        {
            "volume": {
                "id": "v1",
                "locator": {"name": "data", "volumeLabels": {"app": "db"}},
                "attachedOn": "n1",
                "replicaSets": [{"nodes": ["n1"], "poolUuids": ["p"], "haIncrease": "n2"}],
                "spec": {"size": 42},
            }
        }
    )
    assert volume.name == "data"
    assert volume.attached_on == "n1"
    assert volume.replica_sets[0].placements[0].pool_uuid == "p"
    assert volume.replica_sets[0].ha_increase == "n2"
    assert volume.labels == {"app": "db"}
    assert volume.size == 42


def test_explicit_placements():
    volume = parse_volume(
        {
            "id": "v1",
            "name": "data",
            "replica_sets": [{"placements": [{"node": "n1", "pool": 1}], "re_add_on": ["n3"]}],
        }
    )
    rs = volume.replica_sets[0]
    assert rs.placements[0].node_id == "n1"
    assert rs.placements[0].pool == 1
    assert rs.re_add_on == ["n3"]


@pytest.mark.parametrize(
    "status, pretty",
    [
        ("VOLUME_STATUS_UP", "UP"),
        ("VOLUME_STATUS_NOT_PRESENT", "Detached"),
        ("STATUS_OK", "Ok"),
        ("STATUS_MAINTENANCE", "MAINTENANCE"),
        ("custom", "custom"),
    ],
)
def test_pretty_status(status, pretty):
    assert pretty_status(status) == pretty


@pytest.mark.parametrize(
    "documents",
    [
        {"volumes": [{"id": "v", "replica_sets": [{"placements": [{"pool": 0}]}]}]},
        {"volumes": [{"id": "v", "spec": {"size": "big"}}]},
        {"nodes": [{"id": "n", "pools": [{"ID": "first"}]}]},
        {"pods": ["not-a-pod"]},
        {"pvcs": [{"metadata": {"name": "c"}, "spec": None}]},
    ],
)
def test_malformed_objects_raise_snapshot_error(documents):
    with pytest.raises(SnapshotError):
        ClusterSnapshot.from_documents(documents)


def test_node_version_and_disks():
    node = parse_node(
        {"id": "n1", "version": "2.1.0", "disks": {"/dev/sdb": {}, "/dev/sdc": {}, "/dev/sdd": {}}}
    )
    assert (node.version, node.disks) == ("2.1.0", 3)

    labelled = parse_node({"id": "n2", "node_labels": {"PX Version": "2.0.3"}})
    assert (labelled.version, labelled.disks) == ("2.0.3", 0)


def test_cluster_identity(snapshot):
    assert snapshot.cluster.name == "px-cluster-wp"
    assert snapshot.cluster.status == "STATUS_OK"

    bare = parse_cluster({"name": "c", "id": "uuid-1"})
    assert (bare.name, bare.id, bare.version) == ("c", "uuid-1", "")
    assert ClusterSnapshot.from_documents({}).cluster is None


@pytest.mark.parametrize(
    "error",
    [
        exceptions.CorrelationError,
        exceptions.NotFoundError,
        exceptions.InconsistentError,
        exceptions.NoMatchError,
        exceptions.SnapshotError,
        exceptions.ConfigError,
    ],
)
def test_error_types_are_documented(error):
    assert error.__doc__ and error.__doc__.strip()

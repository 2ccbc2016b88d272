import copy

import pytest

from kubectl_pxc.snapshot import ClusterSnapshot

GiB = 1024**3

H200 = "ip-70-0-87-200.brbnca.spcsdns.net"
H203 = "ip-70-0-87-203.brbnca.spcsdns.net"
H233 = "ip-70-0-87-233.brbnca.spcsdns.net"

WP_VOLUME = "pvc-34d0f15c-65b9-4229-8b3e-b7bb912e382f"
MYSQL_VOLUME = "pvc-6fc1fe2d-25f4-40b0-a616-04c019572154"


def _node(suffix: str, used: int = 0) -> dict:
    return {
        "id": f"node-{suffix}",
        "hostname": f"ip-70-0-87-{suffix}.brbnca.spcsdns.net",
        "mgmt_ip": f"70.0.87.{suffix}",
        "data_ip": f"10.0.87.{suffix}",
        "scheduler_node_name": f"ip-70-0-87-{suffix}",
        "status": "STATUS_OK",
        "node_labels": {"rack": f"r{suffix}"},
        "version": "2.1.0.0-abc1234",
        "disks": {"/dev/sdb": {"id": "/dev/sdb"}, "/dev/sdc": {"id": "/dev/sdc"}},
        "pools": [
            {"ID": 0, "uuid": f"pool-{suffix}-0", "used": used, "total_size": 10 * GiB},
            {"ID": 1, "uuid": f"pool-{suffix}-1", "used": GiB, "total_size": 20 * GiB},
        ],
    }


def _volume(name: str, attached_on: str, status: str, replica_sets: list) -> dict:
    return {
        "id": f"id-{name}",
        "locator": {"name": name, "volume_labels": {"app": "wordpress"}},
        "attached_on": attached_on,
        "status": status,
        "spec": {"size": 2 * GiB},
        "replica_sets": [
            {"nodes": [n for n, _ in rs], "pool_uuids": [p for _, p in rs]}
            for rs in replica_sets
        ],
    }


def _pod(name: str, claim: str, volume: str, container: str, namespace: str = "wp1") -> dict:
    return {
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "volumes": [
                {"name": volume, "persistentVolumeClaim": {"claimName": claim}},
                {"name": "config", "configMap": {"name": "settings"}},
            ],
            "containers": [
                {
                    "name": container,
                    "volumeMounts": [
                        {"name": volume, "mountPath": "/data"},
                        {"name": "config", "mountPath": "/etc/app"},
                    ],
                }
            ],
        },
    }


def _pvc(name: str, volume_name: str, namespace: str = "wp1") -> dict:
    return {
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"volumeName": volume_name},
        "status": {"phase": "Bound"},
    }


DOCUMENTS = {
    "cluster": {
        "cluster": {
            "name": "px-cluster-wp",
            "id": "5ac2ed6f-7e4e-4e1d-8e8c-3a5da87c5eaf",
            "status": "STATUS_OK",
            "version": "2.1.0.0-abc1234",
        }
    },
    "nodes": {"nodes": [_node("233"), _node("200", used=5 * GiB), _node("203")]},
    "volumes": {
        "volumes": [
            _volume("tp1", "", "VOLUME_STATUS_NOT_PRESENT", [[("node-200", "pool-200-0")]]),
            _volume(
                "tp2",
                "",
                "VOLUME_STATUS_UP",
                [[("node-200", "pool-200-1")], [("node-203", "pool-203-1")]],
            ),
            _volume(
                "tp3",
                "node-200",
                "VOLUME_STATUS_UP",
                [
                    [("node-233", "pool-233-0")],
                    [("node-200", "pool-200-1")],
                    [("node-203", "pool-203-0")],
                ],
            ),
            _volume(
                MYSQL_VOLUME,
                "node-200",
                "VOLUME_STATUS_UP",
                [[("node-200", "pool-200-1"), ("node-203", "pool-203-1")]],
            ),
            _volume(
                WP_VOLUME,
                "node-200",
                "VOLUME_STATUS_UP",
                [[("node-200", "pool-200-1"), ("node-233", "pool-233-1")]],
            ),
        ]
    },
    "pods": {
        "kind": "List",
        "items": [
            _pod("wordpress-mysql-684ddbbb55-zjs7b", "mysql-pvc-1", "mysql-persistent-storage", "mysql"),
            _pod("wordpress-7f6d665c6f-5wpm6", "wp-pv-claim", "wordpress-persistent-storage", "wordpress"),
            _pod("wordpress-7f6d665c6f-7qcch", "wp-pv-claim", "wordpress-persistent-storage", "wordpress"),
            _pod("wordpress-7f6d665c6f-ddjj6", "wp-pv-claim", "wordpress-persistent-storage", "wordpress"),
            {
                "metadata": {"name": "nginx", "namespace": "default"},
                "spec": {"containers": [{"name": "nginx"}]},
            },
        ],
    },
    "pvcs": {
        "kind": "List",
        "items": [
            _pvc("mysql-pvc-1", MYSQL_VOLUME),
            _pvc("wp-pv-claim", WP_VOLUME),
            _pvc("nfs-claim", "pv-nfs-1", namespace="default"),
        ],
    },
}


@pytest.fixture
def documents() -> dict:
    return copy.deepcopy(DOCUMENTS)


@pytest.fixture
def snapshot(documents) -> ClusterSnapshot:
    return ClusterSnapshot.from_documents(documents)

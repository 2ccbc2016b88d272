import json
from dataclasses import dataclass, field
from typing import Any

import yaml

from kubectl_pxc.exceptions import SnapshotError

DETACHED = "Detached"

# Statuses whose SDK spelling is not a readable word once the prefix is dropped
_PRETTY_STATUS = {
    "VOLUME_STATUS_NOT_PRESENT": DETACHED,
    "VOLUME_STATUS_NONE": "None",
    "STATUS_OK": "Ok",
    "STATUS_NONE": "None",
}

# ----------------------------
# Storage cluster objects
# ----------------------------


@dataclass
class StoragePool:
    id: int
    uuid: str = ""
    used: int = 0
    total_size: int = 0


@dataclass
class Node:
    id: str
    hostname: str = ""
    mgmt_ip: str = ""
    data_ip: str = ""
    scheduler_node_name: str = ""
    pools: list[StoragePool] = field(default_factory=list)
    status: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    version: str = ""
    disks: int = 0

    def pool_by_uuid(self, uuid: str) -> StoragePool | None:
        if not uuid:
            return None
        for pool in self.pools:
            if pool.uuid == uuid:
                return pool
        return None


@dataclass
class Placement:
    """
    Location of one replica: a node and the pool on it.

    Either ``pool`` (pool index) or ``pool_uuid`` is set.
    """

    node_id: str
    pool: int | None = None
    pool_uuid: str = ""


@dataclass
class ReplicaSet:
    placements: list[Placement] = field(default_factory=list)
    ha_increase: str = ""
    re_add_on: list[str] = field(default_factory=list)


@dataclass
class Volume:
    id: str
    name: str
    attached_on: str = ""
    replica_sets: list[ReplicaSet] = field(default_factory=list)
    status: str = ""
    size: int = 0
    labels: dict[str, str] = field(default_factory=dict)

    def node_ids(self) -> list[str]:
        ids: list[str] = []
        for rs in self.replica_sets:
            for p in rs.placements:
                if p.node_id not in ids:
                    ids.append(p.node_id)
        return ids


@dataclass
class ClusterInfo:
    """
    Identity of the storage cluster the snapshot was taken from.
    """

    name: str = ""
    id: str = ""
    status: str = ""
    version: str = ""


# ----------------------------
# Orchestrator objects
# ----------------------------


@dataclass
class Container:
    name: str
    claims: list[str] = field(default_factory=list)


@dataclass
class Pod:
    namespace: str
    name: str
    claims: list[str] = field(default_factory=list)
    containers: list[Container] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class Claim:
    namespace: str
    name: str
    volume_name: str = ""


# ----------------------------
# Joined results
# ----------------------------


@dataclass
class ContainerInfo:
    pod: Pod
    container: str


@dataclass
class ReplicaSetInfo:
    id: int
    node_info: list[str] = field(default_factory=list)
    ha_increase: str = ""
    re_add_on: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "Id": self.id,
            "NodeInfo": list(self.node_info),
            "HaIncrease": self.ha_increase,
            "ReAddOn": list(self.re_add_on),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReplicaSetInfo":
        return cls(
            id=int(data.get("Id", 0)),
            node_info=list(data.get("NodeInfo") or []),
            ha_increase=data.get("HaIncrease", ""),
            re_add_on=list(data.get("ReAddOn") or []),
        )


@dataclass
class ReplicationInfo:
    rsi: list[ReplicaSetInfo] = field(default_factory=list)
    status: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"Rsi": [r.to_dict() for r in self.rsi], "Status": self.status}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReplicationInfo":
        return cls(
            rsi=[ReplicaSetInfo.from_dict(r) for r in data.get("Rsi") or []],
            status=data.get("Status", ""),
        )


@dataclass
class CorrelatedClaim:
    name: str
    namespace: str
    volume: Volume
    pod_names: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "namespace": self.namespace,
            "volume": {
                "id": self.volume.id,
                "name": self.volume.name,
                "status": pretty_status(self.volume.status),
                "attached_on": self.volume.attached_on,
                "size": self.volume.size,
            },
            "pods": list(self.pod_names),
        }


# ----------------------------
# Parsing utilities
# ----------------------------


def load_document(path: str) -> Any:
    """
    Load a JSON or YAML document from disk.
    """
    try:
        with open(path, encoding="utf-8") as f:
            if path.endswith((".yaml", ".yml")):
                return yaml.safe_load(f)
            return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise SnapshotError(f"cannot read {path}: {e}") from e


def normalize_items(doc: Any, key: str) -> list[dict[str, Any]]:
    """
    Accept a bare list, a kubectl ``List``, an SDK enumerate response
    (``{key: [...]}``) or a single object.
    """
    if doc is None:
        return []
    if isinstance(doc, list):
        return doc
    if not isinstance(doc, dict):
        raise SnapshotError(f"expected an object or a list of {key}")
    if "items" in doc:
        return doc.get("items") or []
    if key in doc:
        return doc.get(key) or []
    return [doc]


def _first(raw: dict[str, Any], *keys: str, default: Any = "") -> Any:
    # SDK documents come in both snake_case and camelCase spellings
    for k in keys:
        if raw.get(k) is not None:
            return raw[k]
    return default


def pretty_status(status: str) -> str:
    if status in _PRETTY_STATUS:
        return _PRETTY_STATUS[status]
    for prefix in ("VOLUME_STATUS_", "STATUS_"):
        if status.startswith(prefix):
            return status[len(prefix):]
    return status


def parse_node(raw: dict[str, Any]) -> Node:
    pools = [
        StoragePool(
            id=int(_first(p, "ID", "id", default=0)),
            uuid=_first(p, "uuid"),
            used=int(_first(p, "used", default=0)),
            total_size=int(_first(p, "total_size", "totalSize", default=0)),
        )
        for p in raw.get("pools") or []
    ]
    node_id = _first(raw, "id")
    if not node_id:
        raise SnapshotError("storage node without an id")
    labels = dict(_first(raw, "node_labels", "nodeLabels", default={}))
    return Node(
        id=node_id,
        hostname=_first(raw, "hostname"),
        mgmt_ip=_first(raw, "mgmt_ip", "mgmtIp"),
        data_ip=_first(raw, "data_ip", "dataIp"),
        scheduler_node_name=_first(raw, "scheduler_node_name", "schedulerNodeName"),
        pools=pools,
        status=str(_first(raw, "status")),
        labels=labels,
        # Older SDK releases only carry the version as a node label
        version=str(_first(raw, "version") or labels.get("PX Version", "")),
        disks=len(raw.get("disks") or {}),
    )


def _parse_replica_set(raw: dict[str, Any]) -> ReplicaSet:
    placements: list[Placement] = []
    if "placements" in raw:
        for p in raw.get("placements") or []:
            if not p.get("node"):
                raise SnapshotError("replica placement without a node")
            pool = p.get("pool")
            placements.append(
                Placement(
                    node_id=p["node"],
                    pool=int(pool) if pool is not None else None,
                    pool_uuid=p.get("pool_uuid", ""),
                )
            )
    else:
        # SDK shape: parallel node id and pool uuid lists
        uuids = _first(raw, "pool_uuids", "poolUuids", default=[])
        for i, node_id in enumerate(raw.get("nodes") or []):
            uuid = uuids[i] if i < len(uuids) else ""
            placements.append(Placement(node_id=node_id, pool_uuid=uuid))
    return ReplicaSet(
        placements=placements,
        ha_increase=str(_first(raw, "ha_increase", "haIncrease")),
        re_add_on=list(_first(raw, "re_add_on", "reAddOn", default=[])),
    )


def parse_volume(raw: dict[str, Any]) -> Volume:
    # SDK inspect responses wrap the volume
    if "volume" in raw and isinstance(raw["volume"], dict):
        raw = raw["volume"]
    locator = raw.get("locator") or {}
    spec = raw.get("spec") or {}
    name = _first(locator, "name") or _first(raw, "name")
    return Volume(
        id=_first(raw, "id"),
        name=name,
        attached_on=_first(raw, "attached_on", "attachedOn"),
        replica_sets=[
            _parse_replica_set(rs)
            for rs in _first(raw, "replica_sets", "replicaSets", default=[])
        ],
        status=str(_first(raw, "status")),
        size=int(_first(spec, "size", default=0)),
        labels=dict(_first(locator, "volume_labels", "volumeLabels", default={})),
    )


def parse_pod(raw: dict[str, Any]) -> Pod:
    metadata = raw.get("metadata", {})
    spec = raw.get("spec", {})

    # volume name -> claim name
    claim_volumes: dict[str, str] = {}
    for v in spec.get("volumes") or []:
        claim = (v.get("persistentVolumeClaim") or {}).get("claimName")
        if claim:
            claim_volumes[v.get("name", "")] = claim

    containers = []
    for c in spec.get("containers") or []:
        claims: list[str] = []
        for mount in c.get("volumeMounts") or []:
            claim = claim_volumes.get(mount.get("name", ""))
            if claim and claim not in claims:
                claims.append(claim)
        containers.append(Container(name=c.get("name", ""), claims=claims))

    claims = []
    for claim in claim_volumes.values():
        if claim not in claims:
            claims.append(claim)

    return Pod(
        namespace=metadata.get("namespace", "default"),
        name=metadata.get("name", "<unknown>"),
        claims=claims,
        containers=containers,
    )


def parse_claim(raw: dict[str, Any]) -> Claim:
    metadata = raw.get("metadata", {})
    return Claim(
        namespace=metadata.get("namespace", "default"),
        name=metadata.get("name", "<unknown>"),
        volume_name=raw.get("spec", {}).get("volumeName", ""),
    )


def parse_cluster(raw: dict[str, Any]) -> ClusterInfo:
    # SDK inspect-current responses wrap the cluster
    if isinstance(raw.get("cluster"), dict):
        raw = raw["cluster"]
    return ClusterInfo(
        name=str(_first(raw, "name")),
        id=str(_first(raw, "id")),
        status=str(_first(raw, "status")),
        version=str(_first(raw, "version")),
    )

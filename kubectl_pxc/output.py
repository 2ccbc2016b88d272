import json
from typing import Any

import bitmath
import yaml
from rich.cells import cell_len
from rich.console import Console
from rich.table import Table
from rich.text import Text

from kubectl_pxc.model import (
    ClusterInfo,
    CorrelatedClaim,
    Node,
    Volume,
    pretty_status,
)
from kubectl_pxc.nodes import NodeIndex
from kubectl_pxc.snapshot import ClusterSnapshot

console = Console()

# ----------------------------
# Value formatting
# ----------------------------


def human_bytes(n: int) -> str:
    if n <= 0:
        return "0 B"
    return bitmath.Byte(n).best_prefix(system=bitmath.NIST).format("{value:.1f} {unit}")


def labels_to_string(labels: dict[str, str]) -> str:
    return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))


def emit(data: Any, fmt: str) -> None:
    """
    Print structured data as JSON or YAML.
    """
    if fmt == "json":
        print(json.dumps(data, indent=2))
    elif fmt == "yaml":
        print(yaml.safe_dump(data, sort_keys=False), end="")
    else:
        raise ValueError(f"unsupported structured format {fmt!r}")


def print_table(header: list[str], rows: list[list[str]]) -> None:
    table = Table(box=None, pad_edge=False, show_edge=False, header_style="bold")
    for h in header:
        table.add_column(h, no_wrap=True)
    for row in rows:
        # Cells are plain text, never console markup
        table.add_row(*(Text(c) for c in row))

    # Never squeezed to the terminal, like kubectl. Console.print caps its
    # width argument at the console width, so wide tables get their own console.
    widths = [max([cell_len(h)] + [cell_len(r[i]) for r in rows]) for i, h in enumerate(header)]
    natural = sum(widths) + 2 * len(widths)
    out = console if natural <= console.width else Console(width=natural)
    out.print(table, crop=False)


# ----------------------------
# Nodes
# ----------------------------


def node_header(wide: bool = False, show_labels: bool = False) -> list[str]:
    if wide:
        header = [
            "Id", "Hostname", "Version", "IP", "Data IP", "SchedulerNodeName",
            "Used", "Capacity", "# Disks", "# Pools", "Status",
        ]
    else:
        header = ["Hostname", "Version", "SchedulerNodeName", "Used", "Capacity", "Status"]
    if show_labels:
        header.append("Labels")
    return header


def node_row(node: Node, wide: bool = False, show_labels: bool = False) -> list[str]:
    used, capacity = NodeIndex.aggregate_capacity(node)
    status = pretty_status(node.status)
    if wide:
        row = [
            node.id, node.hostname, node.version, node.mgmt_ip, node.data_ip,
            node.scheduler_node_name, human_bytes(used), human_bytes(capacity),
            str(node.disks), str(len(node.pools)), status,
        ]
    else:
        row = [
            node.hostname, node.version, node.scheduler_node_name,
            human_bytes(used), human_bytes(capacity), status,
        ]
    if show_labels:
        row.append(labels_to_string(node.labels))
    return row


def node_to_dict(node: Node) -> dict[str, Any]:
    return {
        "id": node.id,
        "hostname": node.hostname,
        "version": node.version,
        "mgmt_ip": node.mgmt_ip,
        "data_ip": node.data_ip,
        "scheduler_node_name": node.scheduler_node_name,
        "status": pretty_status(node.status),
        "disks": node.disks,
        "pools": [
            {"id": p.id, "uuid": p.uuid, "used": p.used, "total_size": p.total_size}
            for p in node.pools
        ],
        "labels": dict(node.labels),
    }


# ----------------------------
# Volumes
# ----------------------------


def volume_header(wide: bool = False) -> list[str]:
    header = ["Name", "Size", "HA", "Status", "State"]
    if wide:
        header = ["Id"] + header + ["Replica Nodes"]
    return header


def volume_row(snapshot: ClusterSnapshot, volume: Volume, wide: bool = False) -> list[str]:
    ha = max((len(rs.placements) for rs in volume.replica_sets), default=0)
    row = [
        volume.name,
        human_bytes(volume.size),
        str(ha),
        pretty_status(volume.status),
        snapshot.resolver.attached_state(volume),
    ]
    if wide:
        info = snapshot.resolver.replication_info(volume)
        locations = [loc for rs in info.rsi for loc in rs.node_info]
        row = [volume.id] + row + [", ".join(locations)]
    return row


def volume_to_dict(snapshot: ClusterSnapshot, volume: Volume) -> dict[str, Any]:
    return {
        "id": volume.id,
        "name": volume.name,
        "size": volume.size,
        "status": pretty_status(volume.status),
        "state": snapshot.resolver.attached_state(volume),
        "labels": dict(volume.labels),
        "replication": snapshot.resolver.replication_info(volume).to_dict(),
    }


# ----------------------------
# Claims
# ----------------------------


def pvc_header() -> list[str]:
    return ["Namespace", "Name", "Volume", "Size", "Status", "State", "Pods"]


def pvc_row(snapshot: ClusterSnapshot, entry: CorrelatedClaim) -> list[str]:
    return [
        entry.namespace,
        entry.name,
        entry.volume.name,
        human_bytes(entry.volume.size),
        pretty_status(entry.volume.status),
        snapshot.resolver.attached_state(entry.volume),
        ", ".join(entry.pod_names),
    ]


# ----------------------------
# Describe
# ----------------------------


def describe_volume_lines(
    snapshot: ClusterSnapshot,
    volume: Volume,
    claims: list[CorrelatedClaim] | None = None,
) -> list[str]:
    """
    Detailed, human readable description of one volume and its consumers.
    """
    info = snapshot.resolver.replication_info(volume)
    lines = [
        f"Volume: {volume.id}",
        f"Name: {volume.name}",
        f"Size: {human_bytes(volume.size)}",
        f"Status: {pretty_status(volume.status)}",
        f"State: {snapshot.resolver.attached_state(volume)}",
    ]
    if volume.labels:
        lines.append(f"Labels: {labels_to_string(volume.labels)}")

    lines.append(f"Replication Status: {info.status}")
    lines.append("Replica sets on nodes:")
    for rs in info.rsi:
        lines.append(f"  Set {rs.id}")
        for location in rs.node_info:
            lines.append(f"    Node: {location}")
        if rs.ha_increase:
            lines.append(f"    HA-Increase on: {rs.ha_increase}")
        for readd in rs.re_add_on:
            lines.append(f"    Re-add on: {readd}")

    # A volume may back several claims, each with its own pods
    for claim in claims or []:
        lines.append(f"PVC: {claim.namespace}/{claim.name}")
        containers = snapshot.pod_index.containers_for_claim(claim.name, claim.namespace)
        if containers:
            lines.append("Pods:")
            for ci in containers:
                lines.append(f"  - {ci.pod.key} (container: {ci.container})")
    return lines


def describe_cluster_lines(cluster: ClusterInfo) -> list[str]:
    return [
        f"Cluster ID: {cluster.name}",
        f"Cluster UUID: {cluster.id}",
        f"Cluster Status: {pretty_status(cluster.status)}",
        f"Version: {cluster.version}",
    ]

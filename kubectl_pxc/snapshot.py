import logging
import os
from collections.abc import Callable
from typing import Any

from kubectl_pxc.claims import ClaimCorrelator
from kubectl_pxc.exceptions import SnapshotError
from kubectl_pxc.model import (
    Claim,
    ClusterInfo,
    Node,
    Pod,
    Volume,
    load_document,
    normalize_items,
    parse_claim,
    parse_cluster,
    parse_node,
    parse_pod,
    parse_volume,
)
from kubectl_pxc.nodes import NodeIndex
from kubectl_pxc.pods import PodIndex
from kubectl_pxc.replication import ReplicationResolver
from kubectl_pxc.volumes import VolumeSet

logger = logging.getLogger(__name__)

KINDS = ("nodes", "volumes", "pods", "pvcs", "cluster")
EXTENSIONS = (".json", ".yaml", ".yml")


class ClusterSnapshot:
    """
    Storage and orchestrator objects captured at one point in time, with the
    correlation engine built over them.
    """

    def __init__(
        self,
        nodes: list[Node] | None = None,
        volumes: list[Volume] | None = None,
        pods: list[Pod] | None = None,
        claims: list[Claim] | None = None,
        cluster: ClusterInfo | None = None,
    ):
        self.cluster = cluster
        self.node_index = NodeIndex(nodes or [])
        self.volume_set = VolumeSet(volumes or [])
        self.pod_index = PodIndex(pods or [])
        self.resolver = ReplicationResolver(self.node_index, self.volume_set)
        self.correlator = ClaimCorrelator(
            self.volume_set, self.pod_index, self.resolver, claims or []
        )

    @property
    def claims(self) -> list[Claim]:
        return list(self.correlator.claims)

    @classmethod
    def from_documents(cls, documents: dict[str, Any]) -> "ClusterSnapshot":
        """
        Build a snapshot from raw documents keyed by kind (nodes, volumes,
        pods, pvcs and the optional cluster identity).
        """
        cluster = documents.get("cluster")
        return cls(
            nodes=_parse_all("nodes", normalize_items(documents.get("nodes"), "nodes"), parse_node),
            volumes=_parse_all(
                "volumes", normalize_items(documents.get("volumes"), "volumes"), parse_volume
            ),
            pods=_parse_all("pods", normalize_items(documents.get("pods"), "pods"), parse_pod),
            claims=_parse_all("pvcs", normalize_items(documents.get("pvcs"), "pvcs"), parse_claim),
            cluster=_parse_all("cluster", [cluster], parse_cluster)[0] if cluster else None,
        )


def _parse_all(kind: str, items: list[Any], parse: Callable[[Any], Any]) -> list[Any]:
    # Missing or mistyped fields surface as SnapshotError
    try:
        return [parse(raw) for raw in items]
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
        raise SnapshotError(f"malformed {kind} document: {e!r}") from e


def find_snapshot_file(directory: str, kind: str) -> str | None:
    for ext in EXTENSIONS:
        path = os.path.join(directory, kind + ext)
        if os.path.isfile(path):
            return path
    return None


def load_snapshot(directory: str | None = None, files: dict[str, str] | None = None) -> ClusterSnapshot:
    """
    Load a snapshot from a directory holding nodes/volumes/pods/pvcs documents.
    Explicit per-kind files take precedence over the directory.
    """
    files = files or {}
    documents: dict[str, Any] = {}

    for kind in KINDS:
        path = files.get(kind)
        if not path and directory:
            path = find_snapshot_file(directory, kind)
        if not path:
            logger.debug("No %s document in snapshot", kind)
            continue
        logger.debug("Loading %s from %s", kind, path)
        documents[kind] = load_document(path)

    return ClusterSnapshot.from_documents(documents)

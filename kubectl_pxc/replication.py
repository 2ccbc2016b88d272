import logging

from kubectl_pxc.exceptions import InconsistentError
from kubectl_pxc.model import (
    DETACHED,
    Node,
    Placement,
    ReplicaSetInfo,
    ReplicationInfo,
    Volume,
    pretty_status,
)
from kubectl_pxc.nodes import NodeIndex
from kubectl_pxc.volumes import VolumeSet

logger = logging.getLogger(__name__)


class ReplicationResolver:
    """
    Attachment state and replica topology of volumes.

    The volume status reported in ReplicationInfo is the upstream status; it is
    never derived from the replica sets, so a detached volume can list healthy
    replica locations and the other way around.
    """

    def __init__(self, nodes: NodeIndex, volumes: VolumeSet):
        self.nodes = nodes
        self.volumes = volumes

    def volume(self, identifier: str) -> Volume:
        return self.volumes.get(identifier)

    def _node(self, volume: Volume, node_id: str, what: str) -> Node:
        node = self.nodes.lookup(node_id)
        if node is None:
            logger.debug("Volume %s: %s references unknown node %s", volume.name, what, node_id)
            raise InconsistentError(
                f"volume {volume.name} {what} unknown node {node_id}", node_id
            )
        return node

    def attached_state(self, volume: Volume) -> str:
        if not volume.attached_on:
            return DETACHED
        node = self._node(volume, volume.attached_on, "is attached on")
        return f"on {node.hostname}"

    def attached_hostname(self, volume: Volume) -> str | None:
        """
        Hostname of the attach node for identifier matching, None when the
        volume is detached or the node is unknown.
        """
        if not volume.attached_on:
            return None
        node = self.nodes.lookup(volume.attached_on)
        return node.hostname if node else None

    def _location(self, volume: Volume, placement: Placement) -> str:
        node = self._node(volume, placement.node_id, "has a replica on")
        pool = placement.pool
        if pool is None:
            match = node.pool_by_uuid(placement.pool_uuid)
            if match is None:
                raise InconsistentError(
                    f"volume {volume.name} has a replica on unknown pool "
                    f"{placement.pool_uuid or '<none>'} of node {node.hostname}",
                    placement.pool_uuid or node.id,
                )
            pool = match.id
        return f"{node.hostname} (Pool {pool})"

    def replication_info(self, volume: Volume) -> ReplicationInfo:
        rsi = []
        for i, rs in enumerate(volume.replica_sets):
            rsi.append(
                ReplicaSetInfo(
                    id=i,
                    node_info=[self._location(volume, p) for p in rs.placements],
                    ha_increase=rs.ha_increase,
                    re_add_on=list(rs.re_add_on),
                )
            )
        return ReplicationInfo(rsi=rsi, status=pretty_status(volume.status))

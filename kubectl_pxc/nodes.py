import logging

from kubectl_pxc.exceptions import InconsistentError, NoMatchError, NotFoundError
from kubectl_pxc.identifiers import (
    Field,
    LookupKey,
    first_unmatched,
    matched_identifiers,
)
from kubectl_pxc.model import Node, Volume

logger = logging.getLogger(__name__)

# Order in which an identifier is tried against a node
LOOKUP_ORDER = (Field.NODE_ID, Field.HOSTNAME, Field.MGMT_IP, Field.SCHEDULER_NAME)


def node_keys(node: Node) -> list[LookupKey]:
    return [
        LookupKey(Field.NODE_ID, node.id),
        LookupKey(Field.HOSTNAME, node.hostname),
        LookupKey(Field.MGMT_IP, node.mgmt_ip),
        LookupKey(Field.SCHEDULER_NAME, node.scheduler_node_name),
    ]


class NodeIndex:
    """
    Read-only index over the storage cluster nodes of one snapshot.
    """

    def __init__(self, nodes: list[Node]):
        self._nodes = list(nodes)
        self._by_field: dict[Field, dict[str, Node]] = {f: {} for f in LOOKUP_ORDER}
        for node in self._nodes:
            for key in node_keys(node):
                if key.value:
                    # last write wins on duplicate keys
                    self._by_field[key.field][key.value] = node
        logger.debug("Indexed %d storage nodes", len(self._nodes))

    def __len__(self) -> int:
        return len(self._nodes)

    def nodes(self) -> list[Node]:
        return list(self._nodes)

    def lookup(self, identifier: str) -> Node | None:
        for f in LOOKUP_ORDER:
            node = self._by_field[f].get(identifier)
            if node is not None:
                return node
        return None

    def get(self, identifier: str) -> Node:
        node = self.lookup(identifier)
        if node is None:
            raise NotFoundError(f"node {identifier} not found", identifier)
        return node

    @staticmethod
    def aggregate_capacity(node: Node) -> tuple[int, int]:
        used = sum(p.used for p in node.pools)
        total = sum(p.total_size for p in node.pools)
        return used, total

    def filter_by_identifiers(self, identifiers: list[str]) -> list[Node]:
        """
        Keep nodes whose id, hostname, management IP or scheduler node name
        equals one of the identifiers. With no identifiers every node is kept.

        Raises NoMatchError, carrying the matched nodes, when an identifier
        matched no node.
        """
        if not identifiers:
            return self.nodes()

        nodes: list[Node] = []
        found: set[str] = set()
        for node in self._nodes:
            hits = matched_identifiers(identifiers, node_keys(node))
            if hits:
                found |= hits
                nodes.append(node)

        missing = first_unmatched(identifiers, found)
        if missing is not None:
            raise NoMatchError(missing, nodes, kind="Node")
        return nodes

    def nodes_for_volumes(self, volumes: list[Volume]) -> list[Node]:
        """
        Distinct nodes holding a replica of any of the volumes, first seen first.
        """
        nodes: list[Node] = []
        seen: set[str] = set()
        for v in volumes:
            for node_id in v.node_ids():
                node = self.lookup(node_id)
                if node is None:
                    raise InconsistentError(
                        f"volume {v.name} has a replica on unknown node {node_id}", node_id
                    )
                if node.id not in seen:
                    seen.add(node.id)
                    nodes.append(node)
        return nodes

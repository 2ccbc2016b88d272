import argparse
import logging
import sys
from collections.abc import Callable
from typing import Any

from kubectl_pxc.config import OUTPUT_FORMATS, Config, load_config
from kubectl_pxc.exceptions import (
    ConfigError,
    CorrelationError,
    NoMatchError,
    SnapshotError,
)
from kubectl_pxc.model import CorrelatedClaim, Volume
from kubectl_pxc.nodes import NodeIndex
from kubectl_pxc.output import (
    describe_cluster_lines,
    describe_volume_lines,
    emit,
    human_bytes,
    node_header,
    node_row,
    node_to_dict,
    print_table,
    pvc_header,
    pvc_row,
    volume_header,
    volume_row,
    volume_to_dict,
)
from kubectl_pxc.registry import Command, CommandRegistry
from kubectl_pxc.snapshot import KINDS, ClusterSnapshot, load_snapshot

logger = logging.getLogger(__name__)

NO_RESOURCES = "No resources found"


def _output_format(args, config: Config) -> str:
    return args.output or config.output


def _namespace(args, config: Config) -> str | None:
    if getattr(args, "all_namespaces", False):
        return None
    return args.namespace or config.namespace


def _filtered(select: Callable[[], list[Any]]) -> tuple[list[Any], NoMatchError | None]:
    """
    Run an identifier filter, keeping the partial result of a NoMatchError.
    """
    try:
        return select(), None
    except NoMatchError as e:
        return e.matched, e


def _finish(missing: NoMatchError | None) -> int:
    if missing is not None:
        print(f"{NO_RESOURCES}: {missing}", file=sys.stderr)
        return 1
    return 0


def _claims(snapshot: ClusterSnapshot, args, config: Config) -> tuple[list[CorrelatedClaim], NoMatchError | None]:
    entries = snapshot.correlator.correlate_all()
    namespace = _namespace(args, config)
    if namespace:
        entries = [e for e in entries if e.namespace == namespace]
    return _filtered(lambda: snapshot.correlator.filter_by_identifiers(entries, args.names))


def _claims_by_volume(snapshot: ClusterSnapshot) -> dict[str, list[CorrelatedClaim]]:
    by_volume: dict[str, list[CorrelatedClaim]] = {}
    for entry in snapshot.correlator.correlate_all():
        by_volume.setdefault(entry.volume.id, []).append(entry)
    return by_volume


# ----------------------------
# get
# ----------------------------


def get_nodes(args, snapshot: ClusterSnapshot, config: Config) -> int:
    index = snapshot.node_index
    missing_volume = None
    if args.volume:
        volumes, missing_volume = _filtered(
            lambda: snapshot.volume_set.filter_by_identifiers(args.volume)
        )
        index = NodeIndex(snapshot.node_index.nodes_for_volumes(volumes))

    nodes, missing = _filtered(lambda: index.filter_by_identifiers(args.ids))
    missing = missing_volume or missing
    fmt = _output_format(args, config)

    if fmt in ("json", "yaml"):
        emit([node_to_dict(n) for n in nodes], fmt)
    elif not nodes:
        print(NO_RESOURCES)
    else:
        wide = fmt == "wide"
        print_table(
            node_header(wide, args.show_labels),
            [node_row(n, wide, args.show_labels) for n in nodes],
        )
    return _finish(missing)


def get_volumes(args, snapshot: ClusterSnapshot, config: Config) -> int:
    volumes, missing = _filtered(lambda: snapshot.volume_set.filter_by_identifiers(args.ids))
    fmt = _output_format(args, config)

    if fmt in ("json", "yaml"):
        emit([volume_to_dict(snapshot, v) for v in volumes], fmt)
    elif not volumes:
        print(NO_RESOURCES)
    else:
        wide = fmt == "wide"
        print_table(volume_header(wide), [volume_row(snapshot, v, wide) for v in volumes])
    return _finish(missing)


def get_pvcs(args, snapshot: ClusterSnapshot, config: Config) -> int:
    entries, missing = _claims(snapshot, args, config)
    fmt = _output_format(args, config)

    if fmt in ("json", "yaml"):
        emit([e.to_dict() for e in entries], fmt)
    elif not entries:
        print(NO_RESOURCES)
    else:
        print_table(pvc_header(), [pvc_row(snapshot, e) for e in entries])
    return _finish(missing)


# ----------------------------
# describe
# ----------------------------


def _describe(
    snapshot: ClusterSnapshot,
    config: Config,
    args,
    pairs: list[tuple[Volume, list[CorrelatedClaim]]],
) -> None:
    fmt = _output_format(args, config)
    if fmt in ("json", "yaml"):
        docs = []
        for volume, claims in pairs:
            doc = volume_to_dict(snapshot, volume)
            doc["pvcs"] = [c.to_dict() for c in claims]
            docs.append(doc)
        emit(docs, fmt)
        return

    if not pairs:
        print(NO_RESOURCES)
        return

    for i, (volume, claims) in enumerate(pairs):
        # Two empty lines between volumes
        if i:
            print("\n")
        print("\n".join(describe_volume_lines(snapshot, volume, claims)))


def describe_volumes(args, snapshot: ClusterSnapshot, config: Config) -> int:
    volumes, missing = _filtered(lambda: snapshot.volume_set.filter_by_identifiers(args.ids))
    by_volume = _claims_by_volume(snapshot)
    _describe(snapshot, config, args, [(v, by_volume.get(v.id, [])) for v in volumes])
    return _finish(missing)


def describe_pvcs(args, snapshot: ClusterSnapshot, config: Config) -> int:
    entries, missing = _claims(snapshot, args, config)
    _describe(snapshot, config, args, [(e.volume, [e]) for e in entries])
    return _finish(missing)


def describe_cluster(args, snapshot: ClusterSnapshot, config: Config) -> int:
    nodes = snapshot.node_index.nodes()
    used = capacity = 0
    for n in nodes:
        u, c = NodeIndex.aggregate_capacity(n)
        used += u
        capacity += c

    if snapshot.cluster is not None:
        print("\n".join(describe_cluster_lines(snapshot.cluster)))
        print()
    print(f"Nodes: {len(nodes)}")
    print(f"Volumes: {len(snapshot.volume_set)}")
    print(f"Pods: {len(snapshot.pod_index)}")
    print(f"Used: {human_bytes(used)}")
    print(f"Capacity: {human_bytes(capacity)}")
    print()
    if nodes:
        print_table(node_header(wide=True), [node_row(n, wide=True) for n in nodes])
    return 0


# ----------------------------
# Command tree
# ----------------------------


def _ids(help: str) -> Callable[[argparse.ArgumentParser], None]:
    def configure(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("ids", nargs="*", metavar="ID", help=help)
        parser.add_argument("-o", "--output", choices=OUTPUT_FORMATS)

    return configure


def _configure_nodes(parser: argparse.ArgumentParser) -> None:
    _ids("node id, hostname, IP or scheduler node name")(parser)
    parser.add_argument("--show-labels", action="store_true", help="Show labels in the last column")
    parser.add_argument(
        "--volume", nargs="+", default=None, help="Only nodes holding replicas of these volumes"
    )


def _configure_pvcs(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "names", nargs="*", metavar="NAME", help="pvc name, volume name, volume id or attach hostname"
    )
    parser.add_argument("-o", "--output", choices=OUTPUT_FORMATS)
    parser.add_argument("-n", "--namespace", help="Kubernetes namespace")
    parser.add_argument("--all-namespaces", action="store_true", help="All Kubernetes namespaces")


def build_registry() -> CommandRegistry:
    registry = CommandRegistry()
    registry.add_group("get", "List storage and Kubernetes resources")
    registry.add_group("describe", "Show details of storage and Kubernetes resources")

    registry.add(Command("get", "nodes", "List storage nodes", get_nodes, _configure_nodes, ["node"]))
    registry.add(
        Command("get", "volumes", "List volumes", get_volumes, _ids("volume id or name"), ["volume"])
    )
    registry.add(
        Command("get", "pvc", "List PVCs backed by storage volumes", get_pvcs, _configure_pvcs, ["pvcs"])
    )
    registry.add(
        Command(
            "describe", "volume", "Describe volumes", describe_volumes, _ids("volume id or name"), ["volumes"]
        )
    )
    registry.add(
        Command("describe", "pvc", "Describe volumes for Kubernetes PVCs", describe_pvcs, _configure_pvcs, ["pvcs"])
    )
    registry.add(Command("describe", "cluster", "Describe the storage cluster", describe_cluster))
    return registry


def build_parser(registry: CommandRegistry) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kubectl-pxc",
        description="Correlate storage volumes with Kubernetes PVCs and pods",
    )
    parser.add_argument(
        "--snapshot", help="Directory holding nodes/volumes/pods/pvcs/cluster documents"
    )
    for kind in KINDS:
        parser.add_argument(f"--{kind}", dest=f"{kind}_file", metavar="FILE", help=f"Path to {kind} JSON/YAML")
    parser.add_argument("--config", help="Path to config file")
    parser.add_argument("--verbose", action="store_true")
    return registry.build_parser(parser)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser(build_registry())
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        files = {k: getattr(args, f"{k}_file") for k in KINDS if getattr(args, f"{k}_file")}
        snapshot = load_snapshot(args.snapshot or config.snapshot, files)
        return args.handler(args, snapshot, config)
    except (CorrelationError, SnapshotError, ConfigError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

import logging

from kubectl_pxc.exceptions import NoMatchError, NotFoundError
from kubectl_pxc.identifiers import (
    Field,
    LookupKey,
    first_unmatched,
    matched_identifiers,
)
from kubectl_pxc.model import Claim, CorrelatedClaim
from kubectl_pxc.pods import PodIndex
from kubectl_pxc.replication import ReplicationResolver
from kubectl_pxc.volumes import VolumeSet

logger = logging.getLogger(__name__)


class ClaimCorrelator:
    """
    Joins orchestrator claims to their backing volumes and consuming pods.
    """

    def __init__(
        self,
        volumes: VolumeSet,
        pods: PodIndex,
        resolver: ReplicationResolver,
        claims: list[Claim] | None = None,
    ):
        self.volumes = volumes
        self.pods = pods
        self.resolver = resolver
        self.claims = list(claims or [])

    def _correlate_one(self, claim: Claim) -> CorrelatedClaim:
        volume = self.volumes.by_name(claim.volume_name)
        if volume is None:
            raise NotFoundError(
                f"volume {claim.volume_name!r} bound to claim "
                f"{claim.namespace}/{claim.name} not found",
                claim.name,
            )
        pods = self.pods.pods_using_claim(claim.name, claim.namespace)
        return CorrelatedClaim(
            name=claim.name,
            namespace=claim.namespace,
            volume=volume,
            pod_names=[p.key for p in pods],
        )

    def correlate(self, claims: list[Claim]) -> list[CorrelatedClaim]:
        """
        Correlate every claim or fail the whole batch on the first claim whose
        volume is missing.
        """
        return [self._correlate_one(c) for c in claims]

    def correlate_all(self) -> list[CorrelatedClaim]:
        """
        Correlate the snapshot's claims that are bound to a volume of this
        storage cluster. Claims bound elsewhere (or unbound) are skipped.
        """
        owned = []
        for claim in self.claims:
            if self.volumes.by_name(claim.volume_name) is None:
                logger.debug(
                    "Skipping claim %s/%s bound to foreign volume %r",
                    claim.namespace,
                    claim.name,
                    claim.volume_name,
                )
                continue
            owned.append(claim)
        return self.correlate(owned)

    def _keys(self, entry: CorrelatedClaim) -> list[LookupKey]:
        keys = [
            LookupKey(Field.CLAIM_NAME, entry.name),
            LookupKey(Field.VOLUME_NAME, entry.volume.name),
            LookupKey(Field.VOLUME_ID, entry.volume.id),
        ]
        hostname = self.resolver.attached_hostname(entry.volume)
        if hostname:
            keys.append(LookupKey(Field.HOSTNAME, hostname))
        return keys

    def filter_by_identifiers(
        self, entries: list[CorrelatedClaim], identifiers: list[str]
    ) -> list[CorrelatedClaim]:
        """
        Keep entries whose claim name, volume name, volume id or attach hostname
        equals one of the identifiers.

        Raises NoMatchError naming the first identifier that matched nothing;
        the exception's ``matched`` holds the entries that did match.
        """
        if not identifiers:
            return list(entries)

        kept: list[CorrelatedClaim] = []
        found: set[str] = set()
        for entry in entries:
            hits = matched_identifiers(identifiers, self._keys(entry))
            if hits:
                found |= hits
                kept.append(entry)

        missing = first_unmatched(identifiers, found)
        if missing is not None:
            raise NoMatchError(missing, kept, kind="PVC")
        return kept

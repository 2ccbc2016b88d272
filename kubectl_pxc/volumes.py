import logging

from kubectl_pxc.exceptions import NoMatchError, NotFoundError
from kubectl_pxc.identifiers import (
    Field,
    LookupKey,
    first_unmatched,
    matched_identifiers,
)
from kubectl_pxc.model import Volume

logger = logging.getLogger(__name__)


class VolumeSet:
    """
    The enumerated storage volumes of one snapshot, in input order.
    """

    def __init__(self, volumes: list[Volume]):
        self._volumes = list(volumes)
        self._by_id = {v.id: v for v in self._volumes if v.id}
        self._by_name = {v.name: v for v in self._volumes if v.name}
        logger.debug("Indexed %d volumes", len(self._volumes))

    def __len__(self) -> int:
        return len(self._volumes)

    def all(self) -> list[Volume]:
        return list(self._volumes)

    def by_name(self, name: str) -> Volume | None:
        return self._by_name.get(name)

    def by_id(self, volume_id: str) -> Volume | None:
        return self._by_id.get(volume_id)

    def lookup(self, identifier: str) -> Volume | None:
        return self.by_id(identifier) or self.by_name(identifier)

    def get(self, identifier: str) -> Volume:
        volume = self.lookup(identifier)
        if volume is None:
            raise NotFoundError(f"volume {identifier} not found", identifier)
        return volume

    def filter_by_identifiers(self, identifiers: list[str]) -> list[Volume]:
        if not identifiers:
            return self.all()

        volumes: list[Volume] = []
        found: set[str] = set()
        for v in self._volumes:
            keys = [LookupKey(Field.VOLUME_ID, v.id), LookupKey(Field.VOLUME_NAME, v.name)]
            hits = matched_identifiers(identifiers, keys)
            if hits:
                found |= hits
                volumes.append(v)

        missing = first_unmatched(identifiers, found)
        if missing is not None:
            raise NoMatchError(missing, volumes, kind="Volume")
        return volumes

from dataclasses import dataclass
from enum import Enum


class Field(Enum):
    """
    The field of an entity an operator-supplied identifier may refer to.
    """

    NODE_ID = "node_id"
    HOSTNAME = "hostname"
    MGMT_IP = "mgmt_ip"
    SCHEDULER_NAME = "scheduler_name"
    CLAIM_NAME = "claim_name"
    VOLUME_NAME = "volume_name"
    VOLUME_ID = "volume_id"


@dataclass(frozen=True)
class LookupKey:
    field: Field
    value: str

    def matches(self, identifier: str) -> bool:
        # Empty fields (unattached volume, missing IP) never match
        return bool(self.value) and self.value == identifier


def matched_identifiers(identifiers: list[str], keys: list[LookupKey]) -> set[str]:
    return {i for i in identifiers if any(k.matches(i) for k in keys)}


def first_unmatched(identifiers: list[str], found: set[str]) -> str | None:
    for identifier in identifiers:
        if identifier not in found:
            return identifier
    return None

from typing import Any


class CorrelationError(Exception):
    """
    Base class for all failures raised while joining a snapshot.
    """

    def __init__(self, message: str, identifier: str = ""):
        super().__init__(message)
        self.identifier = identifier


class NotFoundError(CorrelationError):
    """
    A node, volume or claim reference does not resolve against the snapshot.
    """


class InconsistentError(CorrelationError):
    """
    A volume or pod references something structurally required that is absent,
    e.g. a replica placed on a node the snapshot does not know.
    """


class NoMatchError(CorrelationError):
    """
    A caller-supplied identifier filter matched nothing.

    The entries matched by the other identifiers are kept in ``matched``.
    """

    def __init__(self, identifier: str, matched: list[Any], kind: str = "resource"):
        super().__init__(f"{kind} with {identifier} not found", identifier)
        self.matched = matched
        self.kind = kind


class SnapshotError(Exception):
    """
    A snapshot document is unreadable or malformed.
    """


class ConfigError(Exception):
    """
    The configuration file is unreadable or holds invalid settings.
    """

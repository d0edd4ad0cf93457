"""Errors raised by search index extraction."""


class IndexingError(Exception):
    """Base class for extraction failures."""


class MalformedResourceError(IndexingError):
    """The stored document could not be parsed or has an invalid structure.

    Fatal for the extraction call; no partial row list is returned.
    """

    def __init__(self, resource_id: str | None, reason: str):
        self.resource_id = resource_id
        self.reason = reason
        super().__init__(f"Malformed resource {resource_id or '<unknown>'}: {reason}")


class UnknownResourceTypeError(IndexingError):
    """No index configuration is registered for the resource type."""

    def __init__(self, resource_type: str | None):
        self.resource_type = resource_type
        super().__init__(f"No search index configuration for resource type {resource_type!r}")


class ReferenceResolutionError(IndexingError):
    """A referenced document could not be fetched for chain expansion.

    Never fatal: the engine logs it and skips the chained rows for that
    one reference.
    """

    def __init__(self, reference: str, reason: str):
        self.reference = reference
        self.reason = reason
        super().__init__(f"Could not resolve reference {reference!r}: {reason}")

"""Store errors.

Lookups of untrusted input (setting by key, API key by hash or id) return
an empty value instead of raising. The errors below are for everything else.
"""


class StoreError(Exception):
    """A storage-medium failure, wrapped with the operation that hit it."""


class StoreUnavailableError(StoreError):
    """The store location could not be opened."""


class NotFoundError(StoreError):
    """A record the caller asserted exists is not there."""

    def __init__(self, kind: str, record_id: int) -> None:
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id

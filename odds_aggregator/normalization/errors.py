"""Errors raised while mapping upstream records into canonical models."""


class ValidationSkip(Exception):
    """An upstream record cannot be normalized and must be skipped.

    Raised from inside an adapter's mapping function and caught at the
    adapter boundary, where it is recorded on the SyncReport instead of
    aborting the batch.

    Attributes:
        reason: Short human readable cause (e.g., "missing commence time")
        record_id: Upstream identifier of the skipped record, when known
    """

    def __init__(self, reason: str, record_id: str | None = None):
        self.reason = reason
        self.record_id = record_id
        super().__init__(f"{reason} ({record_id})" if record_id else reason)

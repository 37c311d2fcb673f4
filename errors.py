"""Rejected-operation errors. Each carries a machine-readable reason code."""


class TrackerError(Exception):
    reason = "error"

    def __init__(self, message: str, reason: str = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class InvalidEntryError(TrackerError):
    reason = "invalid_entry"


class DuplicateNameError(TrackerError):
    reason = "duplicate_name"


class LastProfileError(TrackerError):
    reason = "last_profile"


class LocalStoreError(TrackerError):
    """The local store could not be read or written. No fallback exists."""
    reason = "local_store_unavailable"

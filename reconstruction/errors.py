"""Exception types raised by the reconstruction engine."""

from typing import Optional


class ReconstructionError(Exception):
    """Base class for all engine errors."""


class NormalizationError(ReconstructionError):
    """A raw broker row could not be turned into a Leg.

    Raised by the broker adapters; the normalizer catches it, logs a warning
    and records the row as skipped so one bad row never aborts the batch.
    """

    def __init__(self, reason: str, row_index: Optional[int] = None):
        self.reason = reason
        self.row_index = row_index
        if row_index is None:
            super().__init__(reason)
        else:
            super().__init__(f"Row {row_index}: {reason}")


class UnsupportedBrokerError(ReconstructionError):
    """The header set does not match any supported broker export."""

    def __init__(self, headers=None):
        self.headers = list(headers or [])
        super().__init__(
            "Unrecognized transaction export format "
            f"(headers: {', '.join(str(h) for h in self.headers) or 'none'})"
        )

"""Error types raised by recall."""


class RecallError(Exception):
    """Base class for errors reported to the operator."""


class MalformedCandidate(RecallError):
    """A card fragment that cannot be turned into a card. Skipped, never fatal."""


class LockContention(RecallError):
    """Another recall process holds the lock."""

    def __init__(self, lock_path):
        self.lock_path = lock_path
        super().__init__(f"recall is already running (lock held: {lock_path})")


class StoreIoError(RecallError):
    """Reading or writing the card store failed."""


class AlgorithmStateMismatch(RecallError):
    """A stored scheduling state does not fit the algorithm reading it."""

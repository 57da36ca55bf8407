"""In-memory holder of the published snapshot."""

from .models import Snapshot


class CacheStore:
    """Holds the currently published Snapshot.

    publish() swaps a single reference, so readers see either the previous
    snapshot or the new one, never a mix. read() never blocks or fetches.
    """

    def __init__(self) -> None:
        self._current: Snapshot | None = None

    def publish(self, snapshot: Snapshot) -> None:
        self._current = snapshot

    def read(self) -> Snapshot | None:
        return self._current

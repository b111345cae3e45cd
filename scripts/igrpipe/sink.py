"""Thread-safe keyed collection of synthesized regions."""

import threading
from typing import Dict, Iterator, List, Optional

from .models import IntergenicRegion


class DedupSink:
    """
    Collect regions once per pair key.

    Inserting the same key twice keeps the last region; both are equivalent
    because region identifiers are pure functions of the pair.
    """

    def __init__(self):
        self._regions: Dict[str, IntergenicRegion] = {}
        self._lock = threading.Lock()

    def put(self, key: str, region: Optional[IntergenicRegion]) -> bool:
        """Store a region under its pair key. Returns False for a skipped (None) region."""
        if region is None:
            return False
        with self._lock:
            self._regions[key] = region
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._regions)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._regions

    def __iter__(self) -> Iterator[IntergenicRegion]:
        return iter(self.regions())

    def get(self, key: str) -> Optional[IntergenicRegion]:
        with self._lock:
            return self._regions.get(key)

    def regions(self) -> List[IntergenicRegion]:
        """Snapshot of all regions ordered by key."""
        with self._lock:
            return [self._regions[k] for k in sorted(self._regions)]

import logging
import threading
from collections import deque
from typing import Deque, List, Optional

from person_relay.adapters.image_store import ImageStore
from person_relay.core.models import DetectionRecord


logger = logging.getLogger(__name__)


class DetectionQueue:
    """Bounded FIFO of recent detections; evicted records take their image file with them."""

    def __init__(self, store: ImageStore, capacity: int = 5) -> None:
        if capacity < 1:
            raise ValueError("Queue capacity must be at least 1")
        self.capacity = capacity
        self._store = store
        self._records: Deque[DetectionRecord] = deque()
        self._lock = threading.Lock()

    def push(self, record: DetectionRecord) -> Optional[DetectionRecord]:
        evicted: Optional[DetectionRecord] = None
        with self._lock:
            self._records.append(record)
            if len(self._records) > self.capacity:
                evicted = self._records.popleft()
                self._store.delete(evicted.image)
                logger.info("Evicted %s from detection queue", evicted.image)
        return evicted

    def recent(self, n: int) -> List[DetectionRecord]:
        if n <= 0:
            return []
        with self._lock:
            records = list(self._records)
        return records[-n:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

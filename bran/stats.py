"""
Training Statistics
===================

Append-only log of per-epoch results, written by Network.train and read by
plotting and the HTTP service. Reads may happen on another thread while
training appends, so every access goes through a lock and readers get
copies.
"""

import threading
from typing import Iterator, List, NamedTuple, Optional


class EpochRecord(NamedTuple):
    epoch: int
    loss: float
    accuracy: Optional[float] = None


class TrainingStats:
    """
    Ordered sequence of EpochRecord.

    Example:
        >>> stats = TrainingStats()
        >>> stats.log_epoch(1, 0.5, 0.8)
        >>> stats.log_epoch(2, 0.3, 0.9)
        >>> stats.losses
        [0.5, 0.3]
    """

    def __init__(self):
        self._records: List[EpochRecord] = []
        self._lock = threading.RLock()

    def log_epoch(self, epoch: int, loss: float, accuracy: Optional[float] = None) -> EpochRecord:
        """Append one epoch's results."""
        record = EpochRecord(
            int(epoch),
            float(loss),
            None if accuracy is None else float(accuracy),
        )
        with self._lock:
            self._records.append(record)
        return record

    def reset(self) -> None:
        """Drop all records."""
        with self._lock:
            self._records.clear()

    @property
    def records(self) -> List[EpochRecord]:
        with self._lock:
            return list(self._records)

    @property
    def epochs(self) -> List[int]:
        return [r.epoch for r in self.records]

    @property
    def losses(self) -> List[float]:
        return [r.loss for r in self.records]

    @property
    def accuracies(self) -> List[Optional[float]]:
        return [r.accuracy for r in self.records]

    def latest(self) -> Optional[EpochRecord]:
        """Most recent record, or None before the first epoch."""
        with self._lock:
            return self._records[-1] if self._records else None

    def to_list(self) -> List[dict]:
        """Records as JSON-ready dictionaries."""
        return [r._asdict() for r in self.records]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[EpochRecord]:
        return iter(self.records)

    def __repr__(self):
        return f"TrainingStats(epochs={len(self)})"

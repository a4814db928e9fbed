"""CacheSimulator feeds trace records into a CacheModel.
"""
import logging
from typing import Callable, Iterable, List, Optional, Union

from .cache import AccessResult, CacheModel
from .trace import TraceRecord, read_trace
from ..data.stats_export import Statistics

logger = logging.getLogger(__name__)


class CacheSimulator:
    def __init__(self, model: CacheModel):
        self.model = model
        self.sequence: List[TraceRecord] = []
        self.index = 0

    @property
    def stats(self) -> Statistics:
        return self.model.stats

    def load_sequence(self, records: Iterable[TraceRecord]):
        self.sequence = list(records)
        self.index = 0
        # step() walks the sequence by advancing self.index

    def has_next(self) -> bool:
        return self.index < len(self.sequence)

    def step(self) -> Optional[AccessResult]:
        if not self.has_next():
            return None
        record = self.sequence[self.index]
        self.index += 1
        return self.model.access(record.operation, record.address)

    def run_all(self, callback: Optional[Callable[[AccessResult], None]] = None) -> Statistics:
        while self.has_next():
            info = self.step()
            if callback:
                callback(info)
        logger.info("processed %d accesses, hit rate %.4f, %d cycles",
                    self.stats.accesses, self.stats.hit_rate, self.stats.total_cycles)
        return self.stats

    def run_trace(self, stream: Iterable[Union[str, bytes]], strict: bool = False,
                  callback: Optional[Callable[[AccessResult], None]] = None) -> Statistics:
        """Read a whole trace from `stream` (text or binary lines) and run it."""
        self.load_sequence(read_trace(stream, strict=strict))
        return self.run_all(callback)

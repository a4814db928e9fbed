"""Core cache implementation

Set-associative cache model driven one access at a time.
Behavior:
- Cache is composed of `num_sets` sets; each set has `associativity` ways.
  set_index = (address >> block_bits) & (num_sets - 1)
  tag = address >> (set_bits + block_bits)
- Every access costs one cycle. Moving a block to or from memory costs
  100 cycles per 4-byte word; a write-through store costs 100 cycles.
- access() returns an AccessResult describing what happened.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from cachesim.core.config import CacheConfig, MEMORY_CYCLES, Operation, ReplacementPolicy
from cachesim.core.replacement_policies import make_policy
from cachesim.data.stats_export import Statistics

logger = logging.getLogger(__name__)

ADDRESS_MASK = 0xFFFFFFFF


@dataclass
class CacheBlock:
    """container for a cache line (way).

    Fields:
    - valid: whether the line currently holds useful data
    - dirty: whether the line was written and not yet flushed (write-back only)
    - tag: the tag stored in the line, meaningless while invalid
    - recency: sequence stamp of the last access, used by LRU
    - loaded_at: sequence stamp of the last fill, used by FIFO
    """

    valid: bool = False
    dirty: bool = False
    tag: int = 0
    recency: int = 0
    loaded_at: int = 0


@dataclass
class CacheSet:
    blocks: List[CacheBlock]

    @classmethod
    def empty(cls, associativity: int) -> 'CacheSet':
        return cls([CacheBlock() for _ in range(associativity)])

    def find(self, tag: int) -> Optional[int]:
        """Return the way holding `tag`, or None."""
        for wi, block in enumerate(self.blocks):
            if block.valid and block.tag == tag:
                return wi
        return None

    def free_way(self) -> Optional[int]:
        for wi, block in enumerate(self.blocks):
            if not block.valid:
                return wi
        return None

    def __len__(self):
        return len(self.blocks)

    def __getitem__(self, wi: int) -> CacheBlock:
        return self.blocks[wi]


@dataclass
class AccessResult:
    operation: Operation
    address: int
    hit: bool
    set_index: int
    tag: int
    way_index: Optional[int] = None
    evicted: Optional[CacheBlock] = None
    wrote_back: bool = False
    cycles: int = 0


class CacheModel:
    """Set-associative cache with a fixed per-access cost model."""

    def __init__(self, config: CacheConfig):
        self.config = config.validate()
        self.policy = make_policy(config.replacement)
        self.sets: List[CacheSet] = [CacheSet.empty(config.associativity) for _ in range(config.num_sets)]
        self.stats = Statistics()
        # strictly increasing sequence used to stamp blocks
        self.clock = 0
        logger.debug("cache built: %s", config.describe())

    @classmethod
    def create(cls, num_sets: int, associativity: int, block_size: int,
               write_allocate: bool, write_through: bool, lru_policy: bool) -> 'CacheModel':
        replacement = ReplacementPolicy.LRU if lru_policy else ReplacementPolicy.FIFO
        return cls(CacheConfig(num_sets, associativity, block_size,
                               write_allocate, write_through, replacement))

    def _tick(self) -> int:
        self.clock += 1
        return self.clock

    def _charge(self, result: AccessResult, cycles: int):
        result.cycles += cycles
        self.stats.total_cycles += cycles

    def decode(self, address: int) -> Tuple[int, int]:
        """Decode address into (tag, set_index)."""
        address &= ADDRESS_MASK
        set_index = (address >> self.config.block_bits) & (self.config.num_sets - 1)
        tag = address >> (self.config.set_bits + self.config.block_bits)
        return tag, set_index

    def access(self, operation: Operation, address: int) -> AccessResult:
        """Perform one load or store and account for its cost."""
        tag, set_index = self.decode(address)
        result = AccessResult(operation=operation, address=address & ADDRESS_MASK,
                              hit=False, set_index=set_index, tag=tag)
        self._charge(result, 1)
        if operation is Operation.LOAD:
            self.stats.total_loads += 1
            self._load(result)
        else:
            self.stats.total_stores += 1
            self._store(result)
        return result

    def _load(self, result: AccessResult):
        cache_set = self.sets[result.set_index]
        wi = cache_set.find(result.tag)
        if wi is not None:
            result.hit = True
            result.way_index = wi
            self.policy.touch(cache_set[wi], self._tick())
            self.stats.record_load(True)
            return

        self.stats.record_load(False)
        self._charge(result, self.config.transfer_cycles)
        self._allocate(cache_set, result)

    def _store(self, result: AccessResult):
        cache_set = self.sets[result.set_index]
        wi = cache_set.find(result.tag)
        if wi is not None:
            result.hit = True
            result.way_index = wi
            self.stats.record_store(True)
            self.policy.touch(cache_set[wi], self._tick())
            self._write(cache_set[wi], result)
            return

        self.stats.record_store(False)
        if not self.config.write_allocate:
            # write-around: memory is updated, the line is not brought in
            self._charge(result, MEMORY_CYCLES)
            return

        self._charge(result, self.config.transfer_cycles)
        self._allocate(cache_set, result)
        self._write(cache_set[result.way_index], result)

    def _write(self, block: CacheBlock, result: AccessResult):
        if self.config.write_through:
            self._charge(result, MEMORY_CYCLES)
        else:
            block.dirty = True

    def _allocate(self, cache_set: CacheSet, result: AccessResult):
        wi = cache_set.free_way()
        if wi is None:
            wi = self.policy.victim(cache_set.blocks)
            victim = cache_set[wi]
            result.evicted = replace(victim)
            if victim.dirty and not self.config.write_through:
                result.wrote_back = True
                self._charge(result, self.config.transfer_cycles)
            logger.debug("set %d: evict way %d tag %#x (dirty=%s)",
                         result.set_index, wi, victim.tag, victim.dirty)

        block = cache_set[wi]
        block.valid = True
        block.tag = result.tag
        block.dirty = False
        self.policy.fill(block, self._tick())
        result.way_index = wi

    # read-only views over the counters

    @property
    def total_loads(self) -> int:
        return self.stats.total_loads

    @property
    def total_stores(self) -> int:
        return self.stats.total_stores

    @property
    def load_hits(self) -> int:
        return self.stats.load_hits

    @property
    def load_misses(self) -> int:
        return self.stats.load_misses

    @property
    def store_hits(self) -> int:
        return self.stats.store_hits

    @property
    def store_misses(self) -> int:
        return self.stats.store_misses

    @property
    def total_cycles(self) -> int:
        return self.stats.total_cycles

    def resident_tags(self, set_index: int) -> List[int]:
        return [b.tag for b in self.sets[set_index].blocks if b.valid]

    def occupancy(self) -> int:
        return sum(1 for s in self.sets for b in s.blocks if b.valid)

    def dirty_blocks(self) -> int:
        return sum(1 for s in self.sets for b in s.blocks if b.dirty)

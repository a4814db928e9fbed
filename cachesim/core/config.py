"""Cache configuration and access operations.

The configuration is frozen once built. Geometry must be powers of two so the
address can be split into tag / set index / block offset with shifts and
masks; see `CacheModel.decode`.
"""
import enum
from dataclasses import dataclass


class ConfigError(ValueError):
    """Raised when a cache configuration is rejected."""


class Operation(enum.Enum):
    LOAD = 'l'
    STORE = 's'

    @classmethod
    def from_code(cls, code: str) -> 'Operation':
        # anything that is not 'l' is treated as a store
        return cls.LOAD if code == 'l' else cls.STORE


class ReplacementPolicy(enum.Enum):
    LRU = 'lru'
    FIFO = 'fifo'


MISS_POLICIES = {'write-allocate': True, 'no-write-allocate': False}
WRITE_POLICIES = {'write-through': True, 'write-back': False}

WORD_SIZE = 4
MEMORY_CYCLES = 100


def is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


def check_geometry(num_sets: int, associativity: int, block_size: int):
    if not is_power_of_two(num_sets):
        raise ConfigError("number of sets in cache must be a power of 2")
    if not is_power_of_two(associativity):
        raise ConfigError("number of blocks in each set must be a power of 2")
    if not is_power_of_two(block_size) or block_size < WORD_SIZE:
        raise ConfigError("number of bytes in each block must be a positive power-of-2, at least 4")


@dataclass(frozen=True)
class CacheConfig:
    num_sets: int
    associativity: int
    block_size: int
    write_allocate: bool = True
    write_through: bool = True
    replacement: ReplacementPolicy = ReplacementPolicy.LRU

    def validate(self) -> 'CacheConfig':
        """Check geometry and policy combination, return self."""
        check_geometry(self.num_sets, self.associativity, self.block_size)
        if not self.write_allocate and not self.write_through:
            raise ConfigError("no-write-allocate and write-back is an invalid combination")
        return self

    @property
    def block_bits(self) -> int:
        return self.block_size.bit_length() - 1

    @property
    def set_bits(self) -> int:
        return self.num_sets.bit_length() - 1

    @property
    def tag_bits(self) -> int:
        return 32 - self.set_bits - self.block_bits

    @property
    def transfer_cycles(self) -> int:
        # moving a whole block costs one memory access per 4-byte word
        return MEMORY_CYCLES * (self.block_size // WORD_SIZE)

    @property
    def write_policy(self) -> str:
        return 'write-through' if self.write_through else 'write-back'

    @property
    def miss_policy(self) -> str:
        return 'write-allocate' if self.write_allocate else 'no-write-allocate'

    def describe(self) -> dict:
        return {
            'num_sets': self.num_sets,
            'associativity': self.associativity,
            'block_size': self.block_size,
            'write_miss_policy': self.miss_policy,
            'write_hit_policy': self.write_policy,
            'replacement': self.replacement.value,
        }

    @classmethod
    def from_keywords(cls, num_sets: int, associativity: int, block_size: int,
                      miss_policy: str, write_policy: str, eviction: str) -> 'CacheConfig':
        """Build a validated config from the command-line keyword spellings.

        Geometry is checked before the keywords, so the first bad argument
        in command-line order is the one reported.
        """
        check_geometry(num_sets, associativity, block_size)
        if miss_policy not in MISS_POLICIES:
            raise ConfigError("cache miss parameter must be write-allocate or no-write-allocate")
        if write_policy not in WRITE_POLICIES:
            raise ConfigError("store write parameter must be write-through or write-back")
        try:
            replacement = ReplacementPolicy(eviction)
        except ValueError:
            raise ConfigError("eviction parameter must be lru or fifo") from None
        config = cls(
            num_sets=num_sets,
            associativity=associativity,
            block_size=block_size,
            write_allocate=MISS_POLICIES[miss_policy],
            write_through=WRITE_POLICIES[write_policy],
            replacement=replacement,
        )
        return config.validate()

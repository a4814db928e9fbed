"""Test configuration for pytest.

Ensure the repository root is on sys.path so tests can import the `cachesim`
package without installing it or setting PYTHONPATH.
"""
import os
import sys

import pytest

# Compute project root: two directories above this file (cachesim/tests -> cachesim -> project root)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from cachesim.core.cache import CacheModel  # noqa: E402
from cachesim.core.config import CacheConfig, ReplacementPolicy  # noqa: E402


@pytest.fixture
def make_cache():
    """Factory for small caches; defaults to 4 direct-mapped sets of 4-byte blocks."""
    def _make(num_sets=4, associativity=1, block_size=4, write_allocate=True,
              write_through=True, replacement=ReplacementPolicy.LRU):
        return CacheModel(CacheConfig(num_sets, associativity, block_size,
                                      write_allocate, write_through, replacement))
    return _make

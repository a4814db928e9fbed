"""Entry point for the cache simulator.

Usage:
    python run.py 256 4 16 write-allocate write-back lru < trace
"""
import sys

from cachesim.simulation.cli import main


if __name__ == '__main__':
    sys.exit(main())

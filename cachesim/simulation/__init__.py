"""Simulation package.

Exposes the command-line entry point at `cachesim.simulation` so
`from cachesim.simulation import main` works for scripts and the console
entry point.
"""
from .cli import main

__all__ = ["main"]

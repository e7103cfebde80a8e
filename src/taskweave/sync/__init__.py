"""Synchronisation primitives.

- BoundedGate: bounded wait group / admission gate with first-error capture
- FuncChain, FuncItem: ordered batch runner with per-item outcomes
"""

from taskweave.sync.func_chain import FuncChain, FuncItem
from taskweave.sync.gate import BoundedGate

__all__ = [
    "BoundedGate",
    "FuncChain",
    "FuncItem",
]

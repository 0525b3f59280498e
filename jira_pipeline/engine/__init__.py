"""Engine Layer - exhaustive enumeration over the search ceiling

- AssignableUserEnumerator: breadth-first prefix expansion (depth 3, page 100)
- EnumerationReport: per-run request/timing bookkeeping
"""

from .enumerator import ALPHABET, MAX_DEPTH, PAGE_SIZE, AssignableUserEnumerator, item_identity
from .report import EnumerationReport

__all__ = [
    "ALPHABET",
    "AssignableUserEnumerator",
    "EnumerationReport",
    "MAX_DEPTH",
    "PAGE_SIZE",
    "item_identity",
]

"""Core Layer — pure domain logic: fee splits, launch rules, burn history, caching.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Functions are deterministic given their inputs (clocks and RNGs are injectable)

Design Decisions:
    - Functional core separated from the imperative shell (services + infrastructure)
"""

"""Shipyard Application Package — bonding-curve launches and the buyback-and-burn fee flywheel.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""

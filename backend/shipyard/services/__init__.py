"""Services Layer — launch registry, fee claims, buyback-burn, flywheel and market data.

Invariants:
    - Services depend on core protocols, never on concrete clients
    - Database writes commit inside the service call that made them

Design Decisions:
    - One service per concern; routes compose them through api/dependencies.py
"""

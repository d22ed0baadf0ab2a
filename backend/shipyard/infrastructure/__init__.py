"""Infrastructure Layer — Solana RPC, bonding-curve program, HTTP APIs and cross-cutting concerns.

Invariants:
    - Every external failure is mapped to a ShipyardError subclass before leaving this layer
    - HTTP calls carry explicit timeouts; swap API calls retry a fixed number of times

Design Decisions:
    - Thin wrappers over solana-py / httpx so services depend only on core protocols
"""

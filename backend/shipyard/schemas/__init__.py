"""Pydantic Schemas — request validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (user input); services receive clean values
    - Public keys are checked with solders before any handler runs

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
    - Responses stay plain dicts built by services (snake_case envelope with success flag)
"""

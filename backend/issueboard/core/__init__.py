"""Core Layer — pure domain logic, no IO, no async, no transport.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - Mutation functions take the clock as an argument (deterministic in tests)

Design Decisions:
    - Functional core separated from imperative shell: services/ orchestrates
      persistence, broadcast and history around these pure functions
"""

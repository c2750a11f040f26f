"""Infrastructure Layer — snapshot file IO, git version history, logging setup.

Invariants:
    - All filesystem and subprocess IO lives here, behind async methods
    - Low-level failures are mapped to typed errors from core/errors.py
"""

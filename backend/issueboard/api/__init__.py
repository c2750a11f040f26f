"""API Layer — FastAPI WebSocket endpoint, HTTP routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Routes are thin: all state changes go through the Board's processor
"""

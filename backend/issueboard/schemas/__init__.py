"""Schemas — Pydantic models validating client → server events at the boundary."""

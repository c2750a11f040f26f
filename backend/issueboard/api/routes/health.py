"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 until the store is loaded and its snapshot exists

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
    - History recorder state is reported but never affects readiness (best-effort tier)
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from issueboard.api.dependencies import get_board
from issueboard.services.board import Board

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "issueboard",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(board: Board = Depends(get_board)):
    """Readiness probe — store loaded and snapshot present on disk."""
    if not board.processor.loaded or not board.snapshot.exists():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "store_unavailable",
            },
        )
    return {
        "status": "ready",
        "checks": {
            "store": "healthy",
            "observers": board.hub.observer_count,
            "history": board.recorder.status(),
        },
    }

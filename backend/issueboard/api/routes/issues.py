"""Issues — read-only HTTP view of the current store document and single issues."""

from fastapi import APIRouter, Depends

from issueboard.api.dependencies import get_board
from issueboard.services.board import Board

router = APIRouter(prefix="/api/v1/issues", tags=["issues"])


@router.get("")
async def list_issues(board: Board = Depends(get_board)):
    """Current store: {nextId, issues}. Same document an `init` event carries."""
    return await board.processor.current_snapshot()


@router.get("/{issue_id}")
async def get_issue(issue_id: int, board: Board = Depends(get_board)):
    """One issue with its comments; unknown ids answer 404 ISSUE_NOT_FOUND."""
    return await board.processor.get_issue(issue_id)

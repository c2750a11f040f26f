"""Route Dependencies — access the application's Board from a request or socket."""

from fastapi import Request, WebSocket

from issueboard.services.board import Board


def get_board(request: Request) -> Board:
    """FastAPI dependency for HTTP routes."""
    board = getattr(request.app.state, "board", None)
    if board is None:
        raise RuntimeError("Board not initialized")
    return board


def get_socket_board(websocket: WebSocket) -> Board:
    """FastAPI dependency for WebSocket routes."""
    board = getattr(websocket.app.state, "board", None)
    if board is None:
        raise RuntimeError("Board not initialized")
    return board

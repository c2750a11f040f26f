"""API fixtures — app factory wired to the test Board.

Design Decisions:
    - httpx AsyncClient + ASGITransport for HTTP routes (no lifespan: the
      started `board` fixture is attached to app.state directly)
    - Starlette TestClient for WebSocket sessions (its lifespan starts the board)
"""

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from issueboard.config import Settings
from issueboard.main import create_app


@pytest.fixture
def settings(tmp_path, snapshot_path):
    return Settings(
        data_file=str(snapshot_path),
        history_enabled=False,
        log_format="text",
        static_dir=str(tmp_path / "no-static"),
    )


@pytest.fixture
async def client(settings, board):
    app = create_app(settings, board)
    app.state.board = board
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
def socket_client(settings, unstarted_board):
    app = create_app(settings, unstarted_board)
    with TestClient(app) as c:
        yield c

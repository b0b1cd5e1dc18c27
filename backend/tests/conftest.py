import os
import pytest
import sys
import tempfile
import uuid
from typing import Callable, Generator
from sqlmodel import Session
from alembic import command

# backendディレクトリをsys.pathに追加
CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
BACKEND_DIR = os.path.dirname(CURRENT_DIR)
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import infra.database.connection as db_connection
from infra.database.schema import init_raw_db
from app.services.board_registry import registry

@pytest.fixture(name="session", scope="function")
def session_fixture(mocker) -> Generator[Session, None, None]:
    """
    テストごとに独立した DuckDB ファイルを作り、アプリのエンジンを差し替える。
    """
    test_db_path = os.path.join(tempfile.gettempdir(), f"setlistflow_test_{uuid.uuid4()}.duckdb")
    engine = db_connection.build_engine(test_db_path)

    db_connection.engine = engine
    db_connection.DB_PATH = test_db_path
    db_connection.DATABASE_URL = f"duckdb:///{test_db_path}"

    init_raw_db(engine)
    with engine.begin() as connection:
        command.stamp(db_connection.alembic_config(connection), "head")

    # lifespan の init_db / close_db はテストでは走らせない
    mocker.patch("main.init_db")
    mocker.patch("main.close_db")

    with Session(engine) as session:
        yield session

    engine.dispose()
    if os.path.exists(test_db_path):
        try:
            os.remove(test_db_path)
        except OSError:
            pass

@pytest.fixture(name="fresh_session")
def fresh_session_fixture(session: Session) -> Callable[[], Session]:
    """
    バックグラウンドタスクが別コネクションで書き込んだ内容を確認するための新しいセッション
    """
    return lambda: Session(db_connection.engine)

@pytest.fixture(name="client")
def client_fixture(session: Session) -> Generator:
    """FastAPIのTestClientを提供し、リクエストごとにテスト用DBのセッションを渡す"""
    from fastapi.testclient import TestClient
    from main import app
    from infra.database.connection import get_session

    def get_session_override():
        with Session(db_connection.engine) as request_session:
            yield request_session

    app.dependency_overrides[get_session] = get_session_override
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()

@pytest.fixture(autouse=True)
def reset_registry():
    """ギグごとのボードはプロセス全体で保持されるため、テスト間で破棄する"""
    registry.clear()
    yield
    registry.clear()

@pytest.fixture(name="band")
def band_fixture(client) -> dict:
    return client.post("/api/bands", json={"name": "The Testers"}).json()

@pytest.fixture(name="gig")
def gig_fixture(client, band) -> dict:
    return client.post(f"/api/bands/{band['id']}/gigs", json={"name": "Friday Night"}).json()

@pytest.fixture(name="songs")
def songs_fixture(client, band) -> list:
    rows = [
        {"title": "Song A", "artist": "Artist", "duration_seconds": 180},
        {"title": "Song B", "artist": "Artist", "duration_seconds": 200},
        {"title": "Song C", "artist": "Artist", "duration_seconds": 240},
    ]
    return [client.post(f"/api/bands/{band['id']}/songs", json=row).json() for row in rows]

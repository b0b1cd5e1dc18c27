import os
import threading
from typing import Optional
from alembic import command
from alembic.config import Config
from sqlalchemy.engine import Connection, Engine
from sqlmodel import create_engine, Session
from config import settings
from infra.database.schema import init_raw_db
from utils.logger import get_logger

logger = get_logger(__name__)

BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

DB_PATH = settings.DB_PATH
os.makedirs(os.path.dirname(DB_PATH), exist_ok=True)

DATABASE_URL = f"duckdb:///{DB_PATH}"

def build_engine(db_path: str, **pool_options) -> Engine:
    """DuckDB ファイル用のエンジンを作る (アプリ本体とテストで共通)"""
    return create_engine(
        f"duckdb:///{db_path}",
        connect_args={"config": {"worker_threads": 4, "access_mode": "READ_WRITE"}},
        **pool_options,
    )

engine = build_engine(DB_PATH, pool_size=5, max_overflow=10)

# 永続化の書き込みはバックグラウンドタスクから来るため、ここで直列化する
db_lock = threading.RLock()

def alembic_config(connection: Optional[Connection] = None) -> Config:
    """
    backend/alembic.ini を読み込んだ Config を返す。
    connection を渡すと env.py はそのコネクションを使う (DuckDB の二重オープンを避ける)。
    """
    cfg = Config(os.path.join(BACKEND_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(BACKEND_DIR, "alembic"))
    if connection is not None:
        cfg.attributes["connection"] = connection
    return cfg

def is_new_database(path: str) -> bool:
    return not os.path.exists(path) or os.path.getsize(path) == 0

def init_db():
    """
    起動時の DB 初期化。
    Raw SQL でテーブルを用意した後、新規 DB なら stamp、既存 DB なら upgrade する。
    """
    is_new_db = is_new_database(DB_PATH)

    with db_lock:
        try:
            init_raw_db(engine)
            with engine.begin() as connection:
                cfg = alembic_config(connection)
                if is_new_db:
                    logger.info("New database detected. Stamping version...")
                    command.stamp(cfg, "head")
                else:
                    logger.info("Existing database detected. Running migrations...")
                    command.upgrade(cfg, "head")
        except Exception as e:
            logger.error(f"Error during database initialization: {e}")
            raise

def close_db():
    """main.py の lifespan 終了時に呼ばれる"""
    engine.dispose()

def get_session():
    with Session(engine) as session:
        yield session

def new_session() -> Session:
    """
    リクエスト外 (バックグラウンドタスク) で使うセッション。
    テスト時にエンジンが差し替えられるため、呼び出し時にモジュール属性を参照する。
    """
    return Session(engine)

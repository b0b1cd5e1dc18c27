from sqlalchemy import text
from sqlalchemy.engine import Engine
from utils.logger import get_logger

logger = get_logger(__name__)

# 現在のスキーマバージョン
CURRENT_SCHEMA_VERSION = 1

def get_db_schema_sql() -> str:
    """
    DuckDBの制約回避：
    DuckDBでは外部キー(FK)が設定されているテーブルの更新(UPDATE)が失敗しやすいため、
    物理的な FOREIGN KEY 句を削除し、主キーのみで構成します。
    IDはすべてアプリケーション側で発行するUUID文字列です。
    """
    return """
    CREATE TABLE IF NOT EXISTS bands (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS songs (
        id VARCHAR PRIMARY KEY,
        band_id VARCHAR NOT NULL,
        title VARCHAR NOT NULL,
        artist VARCHAR NOT NULL,
        duration_seconds INTEGER DEFAULT 0,
        rating INTEGER DEFAULT 0,
        played_live BOOLEAN DEFAULT FALSE,
        practice_status VARCHAR DEFAULT 'Practice',
        status VARCHAR DEFAULT 'Active',
        links_json VARCHAR DEFAULT '[]',
        video_url VARCHAR,
        general_notes VARCHAR DEFAULT '',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS gigs (
        id VARCHAR PRIMARY KEY,
        band_id VARCHAR NOT NULL,
        name VARCHAR NOT NULL,
        date VARCHAR,
        location VARCHAR,
        status VARCHAR DEFAULT 'upcoming',
        notes VARCHAR,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS setlists (
        id VARCHAR PRIMARY KEY,
        band_id VARCHAR NOT NULL,
        gig_id VARCHAR NOT NULL,
        name VARCHAR NOT NULL,
        status VARCHAR DEFAULT 'Draft',
        order_index INTEGER DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS setlist_songs (
        id VARCHAR PRIMARY KEY,
        setlist_id VARCHAR NOT NULL,
        song_id VARCHAR NOT NULL,
        order_index INTEGER NOT NULL,
        notes VARCHAR DEFAULT ''
    );

    CREATE TABLE IF NOT EXISTS schema_info (
        key VARCHAR PRIMARY KEY,
        value VARCHAR NOT NULL
    );
    """

def get_current_schema_version(conn) -> int:
    try:
        result = conn.execute(text("SELECT value FROM schema_info WHERE key = 'version'"))
        row = result.fetchone()
        return int(row[0]) if row else 0
    except Exception: return 0

def set_schema_version(conn, version: int):
    conn.execute(text("""
        INSERT INTO schema_info (key, value) VALUES ('version', :version)
        ON CONFLICT (key) DO UPDATE SET value = :version
    """), {"version": str(version)})

def init_raw_db(conn_engine: Engine):
    logger.info("Initializing DuckDB schema...")
    try:
        with conn_engine.begin() as conn:
            statements = [s.strip() for s in get_db_schema_sql().split(';') if s.strip()]
            for stmt in statements:
                conn.execute(text(stmt))

            current_version = get_current_schema_version(conn)
            if current_version < CURRENT_SCHEMA_VERSION:
                set_schema_version(conn, CURRENT_SCHEMA_VERSION)
    except Exception as e:
        logger.error(f"Failed to initialize database schema: {e}")
        raise

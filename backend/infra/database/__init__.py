# Database module
from .connection import engine, get_session, new_session, init_db, close_db, db_lock, DB_PATH, DATABASE_URL

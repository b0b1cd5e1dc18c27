import os
import sys
from logging.config import fileConfig
from alembic import context
from alembic.ddl.impl import DefaultImpl
from sqlalchemy import Integer, engine_from_config, pool
from sqlalchemy.ext.compiler import compiles
from sqlmodel import SQLModel

# alembic CLI から直接呼ばれた場合も backend 配下を import できるようにする
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import models  # noqa: F401  (テーブル定義を metadata に登録する)
from infra.database.connection import DATABASE_URL

class DuckDBImpl(DefaultImpl):
    __dialect__ = "duckdb"

@compiles(Integer, "duckdb")
def compile_integer(element, compiler, **kw):
    return "INTEGER"

config = context.config
config.set_main_option("sqlalchemy.url", DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = SQLModel.metadata

def _migrate(**configure_options) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **configure_options)
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_offline() -> None:
    _migrate(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

def run_migrations_online() -> None:
    """
    init_db / テストから渡されたコネクションがあればそれを使う。
    DuckDB は同じファイルを二つのエンジンで開けないため。
    """
    connection = config.attributes.get("connection")
    if connection is not None:
        _migrate(connection=connection)
        return

    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _migrate(connection=connection)

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

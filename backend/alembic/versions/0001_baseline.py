"""baseline schema

Tables are created by infra.database.schema.init_raw_db; this revision only
marks the starting point for later migrations.

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19 00:00:00
"""
from typing import Sequence, Union

revision: str = "0001_baseline"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    pass


def downgrade() -> None:
    pass

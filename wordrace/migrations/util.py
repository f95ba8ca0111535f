"""Dialect-aware column helpers shared by the migration scripts."""
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from alembic import op


def _is_postgres() -> bool:
    bind = op.get_bind()
    return bind is not None and bind.dialect.name == 'postgresql'


def get_uuid_type():
    """Native UUID on PostgreSQL, ``String(36)`` everywhere else."""
    return UUID(as_uuid=True) if _is_postgres() else sa.String(length=36)


def get_timestamp_default():
    return sa.text('NOW()') if _is_postgres() else sa.text('CURRENT_TIMESTAMP')


def json_list_column(name: str) -> sa.Column:
    """Non-null JSON array column that starts out empty."""
    return sa.Column(name, sa.JSON(), nullable=False, server_default=sa.text("'[]'"))

"""item requests

Revision ID: 3b8e1f04a2c7
Revises:
Create Date: 2026-10-19 10:02:41.518374
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3b8e1f04a2c7"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

INDEXES = (
    ("ix_item_requests_request_created_date", ["request_created_date"]),
    ("ix_item_requests_status", ["status"]),
    ("ix_item_requests_status_created", ["status", "request_created_date"]),
)


def _table_exists(bind, name: str) -> bool:
    insp = sa.inspect(bind)
    return name in insp.get_table_names()


def _index_exists(bind, table: str, name: str) -> bool:
    insp = sa.inspect(bind)
    for ix in insp.get_indexes(table_name=table):
        if ix.get("name") in {name, op.f(name)}:
            return True
    return False


def upgrade() -> None:
    """Create item_requests and its indexes if they don't already exist."""
    bind = op.get_bind()

    if not _table_exists(bind, "item_requests"):
        op.create_table(
            "item_requests",
            sa.Column("id", sa.String(length=32), nullable=False),
            sa.Column("requestor_name", sa.String(length=30), nullable=False),
            sa.Column("item_requested", sa.String(length=100), nullable=False),
            sa.Column("request_created_date", sa.DateTime(timezone=True), nullable=False),
            sa.Column("last_edited_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("status", sa.String(length=16), nullable=False),
            sa.PrimaryKeyConstraint("id", name=op.f("item_requests_pkey")),
        )
    for name, columns in INDEXES:
        if not _index_exists(bind, "item_requests", name):
            op.create_index(op.f(name), "item_requests", columns, unique=False)


def downgrade() -> None:
    """Drop the same objects (guarded) to roll back this revision."""
    bind = op.get_bind()
    if not _table_exists(bind, "item_requests"):
        return
    for name, _ in reversed(INDEXES):
        if _index_exists(bind, "item_requests", name):
            op.drop_index(op.f(name), table_name="item_requests")
    op.drop_table("item_requests")

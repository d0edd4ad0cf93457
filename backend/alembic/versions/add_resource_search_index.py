"""add_resource_search_index

Revision ID: add_resource_search_index
Revises: 02debf75f518
Create Date: 2026-10-19

Creates the resource_search_index table. Rows are derived from
fhir_resources.data and cascade-delete with their resource.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "add_resource_search_index"
down_revision: Union[str, Sequence[str], None] = "02debf75f518"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

VALUE_LENGTH = 750


def upgrade() -> None:
    """Create resource_search_index table."""
    op.create_table(
        "resource_search_index",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("fhir_resource_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("param_name", sa.String(255), nullable=False),
        sa.Column("param_type", sa.String(20), nullable=False),
        sa.Column("value", sa.String(VALUE_LENGTH), nullable=True),
        sa.Column("value_upper", sa.String(VALUE_LENGTH), nullable=True),
        sa.Column("value_high", sa.String(VALUE_LENGTH), nullable=True),
        sa.Column("system", sa.String(VALUE_LENGTH), nullable=True),
        sa.Column("code", sa.String(VALUE_LENGTH), nullable=True),
        sa.Column("text", sa.String(VALUE_LENGTH), nullable=True),
        sa.Column("text_upper", sa.String(VALUE_LENGTH), nullable=True),
        sa.Column("kind", sa.String(20), nullable=True),
        sa.Column("value_local", sa.String(VALUE_LENGTH), nullable=True),
        sa.Column("value_high_local", sa.String(VALUE_LENGTH), nullable=True),
        sa.Column(
            "indexed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["fhir_resource_id"],
            ["fhir_resources.id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_resource_search_index_fhir_resource_id",
        "resource_search_index",
        ["fhir_resource_id"],
        unique=False,
    )
    op.create_index(
        "idx_search_param_value",
        "resource_search_index",
        ["resource_type", "param_name", "value"],
        unique=False,
    )
    op.create_index(
        "idx_search_param_value_upper",
        "resource_search_index",
        ["resource_type", "param_name", "value_upper"],
        unique=False,
    )
    op.create_index(
        "idx_search_param_system",
        "resource_search_index",
        ["param_name", "system", "value"],
        unique=False,
    )


def downgrade() -> None:
    """Drop resource_search_index table."""
    op.drop_index("idx_search_param_system", table_name="resource_search_index")
    op.drop_index("idx_search_param_value_upper", table_name="resource_search_index")
    op.drop_index("idx_search_param_value", table_name="resource_search_index")
    op.drop_index("ix_resource_search_index_fhir_resource_id", table_name="resource_search_index")
    op.drop_table("resource_search_index")

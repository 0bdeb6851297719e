"""Create owners, properties, property_images and property_traces

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Initial schema for the property catalogue.
How:   Mirrors realestate/models/*. Images and traces cascade on property
       delete; owners are referenced without cascade.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "owners",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.String(300), nullable=True),
        sa.Column("photo", sa.Text(), nullable=True, comment="Opaque photo reference"),
        sa.Column("birthday", sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code_internal", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.String(300), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False, comment="Construction year"),
        sa.Column("price", sa.Numeric(18, 2), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "row_version",
            sa.Integer(),
            nullable=False,
            comment="Optimistic concurrency counter, bumped on every UPDATE",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_id"], ["owners.id"]),
        sa.UniqueConstraint("code_internal"),
    )
    op.create_index("idx_properties_year", "properties", ["year"])
    op.create_index("idx_properties_price", "properties", ["price"])
    op.create_index("idx_properties_created_at", "properties", ["created_at"])

    op.create_table(
        "property_images",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("file", sa.Text(), nullable=False, comment="Base64-encoded image bytes"),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_property_images_property_id", "property_images", ["property_id"])

    op.create_table(
        "property_traces",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("date_of_change", sa.DateTime(timezone=True), nullable=False),
        sa.Column("label", sa.String(200), nullable=True),
        sa.Column("value", sa.Numeric(18, 2), nullable=False),
        sa.Column("tax", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_property_traces_property_id", "property_traces", ["property_id"])


def downgrade() -> None:
    op.drop_index("idx_property_traces_property_id", table_name="property_traces")
    op.drop_table("property_traces")
    op.drop_index("idx_property_images_property_id", table_name="property_images")
    op.drop_table("property_images")
    op.drop_index("idx_properties_created_at", table_name="properties")
    op.drop_index("idx_properties_price", table_name="properties")
    op.drop_index("idx_properties_year", table_name="properties")
    op.drop_table("properties")
    op.drop_table("owners")

"""Initial migration: create intake, asset and audit log tables

Revision ID: 20261019_000000
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create intake_batches table
    op.create_table(
        "intake_batches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("month", sa.String(7), nullable=False),
        sa.Column("source", sa.String(255), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_intake_batches_month"), "intake_batches", ["month"])

    # Create intake_items table
    op.create_table(
        "intake_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("batch_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("uploader", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="unsorted"),
        sa.Column("raw_name", sa.String(255), nullable=True),
        sa.Column("category", sa.String(255), nullable=True),
        sa.Column("property", sa.String(255), nullable=True),
        sa.Column("sub_property", sa.String(255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("tags", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["batch_id"], ["intake_batches.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_intake_items_batch_id"), "intake_items", ["batch_id"])
    op.create_index(op.f("ix_intake_items_status"), "intake_items", ["status"])
    op.create_index(op.f("ix_intake_items_category"), "intake_items", ["category"])
    op.create_index(op.f("ix_intake_items_property"), "intake_items", ["property"])
    op.create_index(op.f("ix_intake_items_sub_property"), "intake_items", ["sub_property"])

    # Create intake_files table
    op.create_table(
        "intake_files",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("intake_item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("bucket", sa.String(63), nullable=False, server_default="intake"),
        sa.Column("object_path", sa.String(1024), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(["intake_item_id"], ["intake_items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_intake_files_intake_item_id"), "intake_files", ["intake_item_id"])

    # Create assets table
    op.create_table(
        "assets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(255), nullable=True),
        sa.Column("property", sa.String(255), nullable=True),
        sa.Column("sub_property", sa.String(255), nullable=True),
        sa.Column("tags", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_assets_category"), "assets", ["category"])
    op.create_index(op.f("ix_assets_property"), "assets", ["property"])
    op.create_index(op.f("ix_assets_sub_property"), "assets", ["sub_property"])
    op.create_index(op.f("ix_assets_created_at"), "assets", ["created_at"])

    # Create asset_files table
    op.create_table(
        "asset_files",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("asset_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("bucket", sa.String(63), nullable=False, server_default="assets"),
        sa.Column("object_path", sa.String(1024), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(["asset_id"], ["assets.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bucket", "object_path", name="uq_asset_files_bucket_path"),
    )
    op.create_index(op.f("ix_asset_files_asset_id"), "asset_files", ["asset_id"])

    # Create audit_log table
    op.create_table(
        "audit_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("actor", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("target_type", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(64), nullable=True),
        sa.Column("details", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_log_actor"), "audit_log", ["actor"])
    op.create_index(op.f("ix_audit_log_action"), "audit_log", ["action"])


def downgrade() -> None:
    # Drop tables in reverse order (respecting foreign key constraints)
    op.drop_index(op.f("ix_audit_log_action"), table_name="audit_log")
    op.drop_index(op.f("ix_audit_log_actor"), table_name="audit_log")
    op.drop_table("audit_log")

    op.drop_index(op.f("ix_asset_files_asset_id"), table_name="asset_files")
    op.drop_table("asset_files")

    op.drop_index(op.f("ix_assets_created_at"), table_name="assets")
    op.drop_index(op.f("ix_assets_sub_property"), table_name="assets")
    op.drop_index(op.f("ix_assets_property"), table_name="assets")
    op.drop_index(op.f("ix_assets_category"), table_name="assets")
    op.drop_table("assets")

    op.drop_index(op.f("ix_intake_files_intake_item_id"), table_name="intake_files")
    op.drop_table("intake_files")

    op.drop_index(op.f("ix_intake_items_sub_property"), table_name="intake_items")
    op.drop_index(op.f("ix_intake_items_property"), table_name="intake_items")
    op.drop_index(op.f("ix_intake_items_category"), table_name="intake_items")
    op.drop_index(op.f("ix_intake_items_status"), table_name="intake_items")
    op.drop_index(op.f("ix_intake_items_batch_id"), table_name="intake_items")
    op.drop_table("intake_items")

    op.drop_index(op.f("ix_intake_batches_month"), table_name="intake_batches")
    op.drop_table("intake_batches")

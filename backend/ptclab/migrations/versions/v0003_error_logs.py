"""front-end error log and QR scan history"""

import sqlalchemy as sa

from .. import AdditiveStep, Migration


def create_error_logs(op, connection):
    op.create_table(
        "error_logs",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("module", sa.String()),
        sa.Column("severity", sa.String(), nullable=False, server_default="error"),
        sa.Column("user_id", sa.String()),
        sa.Column("username", sa.String()),
        sa.Column("form_payload", sa.Text()),
        sa.Column("stack_trace", sa.Text()),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("idx_error_logs_timestamp", "error_logs", ["timestamp"])


def create_qr_scans(op, connection):
    op.create_table(
        "qr_scans",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("raw_data", sa.Text(), nullable=False),
        sa.Column("accession_number", sa.String()),
        sa.Column("scanned_by", sa.String(), sa.ForeignKey("users.id")),
        sa.Column("scanned_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )


migration = Migration(
    version=3,
    name="error_logs",
    steps=(
        AdditiveStep("error logs", create_error_logs),
        AdditiveStep("qr scans", create_qr_scans),
    ),
)

"""Valhalla request, response and feedback tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-17 00:00:00.000000

Creates the three tables written by ValhallaDB. Ids for request and response
are supplied by callers, so they carry no server default.
feedback.response_id is unique: it is the conflict target of the feedback upsert.

Written manually (not via autogenerate) consistent with project migration policy.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "request",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.Column("url_href", sa.Text(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=True),
        sa.Column("properties", JSONB, nullable=True),
        sa.Column("helicone_org_id", sa.String(100), nullable=True),
        sa.Column("provider", sa.String(100), nullable=False),
        sa.Column("body", JSONB, nullable=True),
        sa.Column("request_received_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("model", sa.String(255), nullable=True),
    )

    op.create_table(
        "response",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.Column("body", JSONB, nullable=True),
        sa.Column("request", UUID(as_uuid=True), sa.ForeignKey("request.id"), nullable=False),
        sa.Column("delay_ms", sa.Integer(), nullable=True),
        sa.Column("http_status", sa.Integer(), nullable=True),
        sa.Column("completion_tokens", sa.Integer(), nullable=True),
        sa.Column("model", sa.String(255), nullable=True),
        sa.Column("prompt_tokens", sa.Integer(), nullable=True),
        sa.Column("response_received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("helicone_org_id", sa.String(100), nullable=True),
    )
    op.create_index("ix_response_request", "response", ["request"])

    op.create_table(
        "feedback",
        sa.Column("id", UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("response_id", UUID(as_uuid=True), sa.ForeignKey("response.id"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("response_id", name="uq_feedback_response_id"),
    )


def downgrade() -> None:
    op.drop_table("feedback")
    op.drop_index("ix_response_request", table_name="response")
    op.drop_table("response")
    op.drop_table("request")

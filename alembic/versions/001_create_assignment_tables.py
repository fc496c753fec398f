"""
Migration: Tabelas do Motor de Atribuição
=========================================

Cria regras, agentes, cursores de rodízio e decisões gravadas.

Revision ID: 001_create_assignment_tables
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


revision = '001_create_assignment_tables'
down_revision = None
branch_labels = None
depends_on = None

JSONType = sa.JSON().with_variant(JSONB(), "postgresql")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    # ========================================================================
    # 1. REGRAS
    # ========================================================================
    op.create_table(
        "assignment_rules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("module_target", sa.String(50), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("conditions", JSONType, nullable=True),
        sa.Column("strategy", sa.String(20), nullable=False),
        sa.Column("config", JSONType, nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_assignment_rules_tenant_id", "assignment_rules", ["tenant_id"])
    op.create_index("ix_assignment_rules_scope", "assignment_rules", ["tenant_id", "module_target", "priority"])

    # ========================================================================
    # 2. AGENTES
    # ========================================================================
    op.create_table(
        "agents",
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("tenant_id", "id"),
    )

    # ========================================================================
    # 3. CURSORES DO RODÍZIO
    # ========================================================================
    op.create_table(
        "rule_cursors",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("rule_id", sa.Integer(), sa.ForeignKey("assignment_rules.id", ondelete="CASCADE"), nullable=False),
        sa.Column("bucket", sa.String(200), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("rule_id", "bucket", name="uq_rule_cursors_rule_bucket"),
    )
    op.create_index("ix_rule_cursors_rule_id", "rule_cursors", ["rule_id"])

    # ========================================================================
    # 4. DECISÕES
    # ========================================================================
    op.create_table(
        "record_assignments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("module_target", sa.String(50), nullable=False),
        sa.Column("record_id", sa.String(64), nullable=True),
        sa.Column("rule_id", sa.Integer(), sa.ForeignKey("assignment_rules.id", ondelete="SET NULL"), nullable=True),
        sa.Column("agent_id", sa.String(64), nullable=True),
        sa.Column("strategy", sa.String(20), nullable=False),
        sa.Column("outcome", sa.String(20), nullable=False),
        sa.Column("reason", sa.String(100), nullable=True),
        sa.Column("bucket", sa.String(200), nullable=True),
        sa.Column("cursor_index", sa.Integer(), nullable=True),
        sa.Column("cursor_version", sa.Integer(), nullable=True),
        sa.Column("idempotency_key", sa.String(128), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "idempotency_key", name="uq_record_assignments_idempotency"),
    )
    for column in ("tenant_id", "record_id", "rule_id", "agent_id"):
        op.create_index(f"ix_record_assignments_{column}", "record_assignments", [column])


def downgrade():
    op.drop_table("record_assignments")
    op.drop_table("rule_cursors")
    op.drop_table("agents")
    op.drop_table("assignment_rules")

"""initial schema: battle of platoons

Revision ID: 001_initial
Create Date: 18/10/2026
"""
from alembic import op
import sqlalchemy as sa

revision = '001_initial'
down_revision = None

# Valeurs autorisées (colonnes String + CHECK, pas de type ENUM natif)
USER_ROLE = ('user', 'admin', 'super_admin')
PARTICIPANT_ROLE = ('platoon', 'squad', 'team')
RECORD_SOURCE = ('company', 'depot')
FORMULA_STATUS = ('draft', 'published')
WEEK_STATUS = ('open', 'finalized')
AUDIT_ENTITY = ('daily_record', 'scoring_formula', 'week')


def _check(column: str, values) -> str:
    vals_str = ", ".join([f"'{v}'" for v in values])
    return f"{column} IN ({vals_str})"


def upgrade() -> None:
    # ── 1. IDENTITÉ ──
    op.create_table("profiles",
        sa.Column("user_id", sa.String, primary_key=True),
        sa.Column("email", sa.String, nullable=True),
        sa.Column("role", sa.String, nullable=False, server_default="admin"),
        sa.Column("depot_id", sa.String, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(_check("role", USER_ROLE), name="ck_profiles_role"),
    )

    # ── 2. RÉFÉRENTIEL ──
    for table in ("depots", "companies", "platoons"):
        op.create_table(table,
            sa.Column("id", sa.String, primary_key=True),
            sa.Column("name", sa.String, nullable=False),
            sa.Column("photo_url", sa.String, nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        )

    op.create_table("participants",
        sa.Column("id", sa.String, primary_key=True),
        sa.Column("name", sa.String, nullable=False, index=True),
        sa.Column("photo_url", sa.String, nullable=True),
        sa.Column("company_id", sa.String, sa.ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("platoon_id", sa.String, sa.ForeignKey("platoons.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("upline_agent_id", sa.String, sa.ForeignKey("participants.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("role", sa.String, nullable=False, server_default="platoon"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(_check("role", PARTICIPANT_ROLE), name="ck_participants_role"),
    )

    # ── 3. ENREGISTREMENTS JOURNALIERS ──
    op.create_table("daily_records",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("record_key", sa.String, nullable=False, index=True),
        sa.Column("participant_id", sa.String, sa.ForeignKey("participants.id", ondelete="RESTRICT"), nullable=False, index=True),
        sa.Column("date", sa.Date, nullable=False, index=True),
        sa.Column("source", sa.String, nullable=False),
        sa.Column("leads", sa.Integer, nullable=False, server_default="0"),
        sa.Column("payins", sa.Integer, nullable=False, server_default="0"),
        sa.Column("sales", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("leads_depot_id", sa.String, sa.ForeignKey("depots.id", ondelete="SET NULL"), nullable=True),
        sa.Column("sales_depot_id", sa.String, sa.ForeignKey("depots.id", ondelete="SET NULL"), nullable=True),
        sa.Column("voided", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("void_reason", sa.String, nullable=True),
        sa.Column("voided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("voided_by", sa.String, nullable=True),
        sa.Column("approved", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String, nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(_check("source", RECORD_SOURCE), name="ck_daily_records_source"),
        sa.CheckConstraint("leads >= 0 AND payins >= 0 AND sales >= 0", name="ck_daily_records_non_negative"),
    )
    # Un seul enregistrement non annulé par (date, participant, source)
    op.create_index(
        "uq_daily_records_active", "daily_records",
        ["date", "participant_id", "source"],
        unique=True,
        postgresql_where=sa.text("voided = false"),
    )

    # ── 4. FORMULES DE SCORING ──
    op.create_table("scoring_formulas",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String, nullable=True),
        sa.Column("battle_type", sa.String, nullable=False, index=True),
        sa.Column("status", sa.String, nullable=False, server_default="draft", index=True),
        sa.Column("effective_start_week_key", sa.String, nullable=False),
        sa.Column("effective_end_week_key", sa.String, nullable=True),
        sa.Column("config", sa.JSON, nullable=False),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_by", sa.String, nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_by", sa.String, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(_check("status", FORMULA_STATUS), name="ck_scoring_formulas_status"),
    )

    # ── 5. AUDIT + VERROU HEBDO ──
    op.create_table("audit_entries",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("entity_type", sa.String, nullable=False, index=True),
        sa.Column("entity_id", sa.String, nullable=False, index=True),
        sa.Column("action", sa.String, nullable=False, index=True),
        sa.Column("reason", sa.String, nullable=False),
        sa.Column("actor_id", sa.String, nullable=True, index=True),
        sa.Column("before", sa.JSON, nullable=True),
        sa.Column("after", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.CheckConstraint(_check("entity_type", AUDIT_ENTITY), name="ck_audit_entries_entity_type"),
    )

    op.create_table("finalized_weeks",
        sa.Column("week_key", sa.String, primary_key=True),
        sa.Column("start_date", sa.Date, nullable=False, index=True),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("status", sa.String, nullable=False, server_default="open"),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("finalized_by", sa.String, nullable=True),
        sa.Column("finalize_reason", sa.String, nullable=True),
        sa.Column("reopened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reopened_by", sa.String, nullable=True),
        sa.Column("reopen_reason", sa.String, nullable=True),
        sa.CheckConstraint(_check("status", WEEK_STATUS), name="ck_finalized_weeks_status"),
    )


def downgrade() -> None:
    op.drop_index("uq_daily_records_active", table_name="daily_records")
    tables = [
        "finalized_weeks", "audit_entries", "scoring_formulas",
        "daily_records", "participants",
        "platoons", "companies", "depots", "profiles",
    ]
    for table in tables:
        op.drop_table(table)

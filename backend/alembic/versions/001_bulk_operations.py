"""bulk_operations

Revision ID: 001_bulk_operations
Revises:
Create Date: 2026-10-16

Adds:
- bulk_operations (pool-safe markers with expires_at)
- pricing_settings (per-team exchange rates and quotation defaults)
- activity_logs
- SQL functions start_bulk_operation / end_bulk_operation /
  cleanup_old_bulk_operations
- log_component_activity() trigger function, attached to components when that
  table exists

The per-row trigger reads bulk_operations in the same transaction as the row
it audits, so suppression does not depend on which pooled connection set the
marker. All DDL checks existence first so the migration is idempotent after
Base.metadata.create_all().
"""
import logging
from alembic import op
import sqlalchemy as sa
from sqlalchemy import text

revision = '001_bulk_operations'
down_revision = None
branch_labels = None
depends_on = None

logger = logging.getLogger("alembic.001")


def _table_exists(conn, table_name: str) -> bool:
    result = conn.execute(
        text(
            "SELECT EXISTS("
            "  SELECT 1 FROM information_schema.tables"
            "  WHERE table_name = :tname"
            ")"
        ),
        {"tname": table_name},
    )
    return bool(result.scalar())


_START_FN = """
CREATE OR REPLACE FUNCTION start_bulk_operation(
  p_operation_id TEXT,
  p_team_id VARCHAR(36),
  p_operation_type VARCHAR(20),
  p_ttl_seconds INTEGER DEFAULT 300
)
RETURNS boolean AS $$
DECLARE
  v_rows INTEGER;
BEGIN
  DELETE FROM bulk_operations
  WHERE operation_id = p_operation_id AND expires_at <= now();

  INSERT INTO bulk_operations (operation_id, team_id, operation_type, started_at, expires_at)
  VALUES (p_operation_id, p_team_id, p_operation_type, now(),
          now() + make_interval(secs => p_ttl_seconds))
  ON CONFLICT (operation_id) DO NOTHING;

  GET DIAGNOSTICS v_rows = ROW_COUNT;
  RETURN v_rows > 0;
END;
$$ LANGUAGE plpgsql;
"""

_END_FN = """
CREATE OR REPLACE FUNCTION end_bulk_operation(p_operation_id TEXT)
RETURNS boolean AS $$
DECLARE
  v_rows INTEGER;
BEGIN
  DELETE FROM bulk_operations WHERE operation_id = p_operation_id;
  GET DIAGNOSTICS v_rows = ROW_COUNT;
  RETURN v_rows > 0;
END;
$$ LANGUAGE plpgsql;
"""

_CLEANUP_FN = """
CREATE OR REPLACE FUNCTION cleanup_old_bulk_operations()
RETURNS integer AS $$
DECLARE
  v_rows INTEGER;
BEGIN
  DELETE FROM bulk_operations WHERE expires_at <= now();
  GET DIAGNOSTICS v_rows = ROW_COUNT;
  RETURN v_rows;
END;
$$ LANGUAGE plpgsql;
"""

_COMPONENT_TRIGGER_FN = """
CREATE OR REPLACE FUNCTION log_component_activity()
RETURNS TRIGGER AS $$
DECLARE
  v_team_id VARCHAR(36);
  v_action_type TEXT;
  v_name TEXT;
BEGIN
  IF (TG_OP = 'DELETE') THEN
    v_team_id := OLD.team_id;
    v_name := OLD.name;
  ELSE
    v_team_id := NEW.team_id;
    v_name := NEW.name;
  END IF;

  IF EXISTS (
    SELECT 1 FROM bulk_operations
    WHERE team_id = v_team_id AND expires_at > now()
  ) THEN
    RETURN COALESCE(NEW, OLD);
  END IF;

  IF (TG_OP = 'INSERT') THEN
    v_action_type := 'created';
  ELSIF (TG_OP = 'UPDATE') THEN
    v_action_type := 'updated';
  ELSE
    v_action_type := 'deleted';
  END IF;

  INSERT INTO activity_logs (id, team_id, entity_type, entity_id, entity_name,
                             action_type, change_summary, created_at)
  VALUES (gen_random_uuid()::text, v_team_id, 'component',
          COALESCE(NEW.id, OLD.id)::text, v_name, v_action_type,
          'component ' || v_action_type || ': ' || v_name, now());

  RETURN COALESCE(NEW, OLD);
END;
$$ LANGUAGE plpgsql;
"""


def upgrade() -> None:
    conn = op.get_bind()

    # ── bulk_operations ───────────────────────────────────────────────────────
    if not _table_exists(conn, 'bulk_operations'):
        op.create_table(
            'bulk_operations',
            sa.Column('operation_id', sa.Text, primary_key=True),
            sa.Column('team_id', sa.String(36), nullable=False),
            sa.Column('operation_type', sa.String(20), nullable=False),
            sa.Column('started_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
            sa.CheckConstraint(
                "operation_type IN ('import', 'delete', 'update')",
                name='ck_bulk_operations_type',
            ),
        )
        op.create_index('idx_bulk_operations_team_id', 'bulk_operations', ['team_id'])
        op.create_index('idx_bulk_operations_expires_at', 'bulk_operations', ['expires_at'])
        logger.info("Created table: bulk_operations")
    else:
        logger.info("Table bulk_operations already exists — skipping create")

    # ── pricing_settings ──────────────────────────────────────────────────────
    if not _table_exists(conn, 'pricing_settings'):
        op.create_table(
            'pricing_settings',
            sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
            sa.Column('team_id', sa.String(36), nullable=False, unique=True),
            sa.Column('usd_to_ils_rate', sa.Numeric(12, 4), server_default='3.7'),
            sa.Column('eur_to_ils_rate', sa.Numeric(12, 4), server_default='4.0'),
            sa.Column('default_markup', sa.Numeric(8, 4), server_default='0.75'),
            sa.Column('default_risk', sa.Numeric(8, 2), server_default='10'),
            sa.Column('day_work_cost', sa.Numeric(12, 2), server_default='1200'),
            sa.Column('vat_rate', sa.Numeric(8, 2), server_default='17'),
            sa.Column('delivery_time', sa.String(100), server_default='4-6 weeks'),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        logger.info("Created table: pricing_settings")
    else:
        logger.info("Table pricing_settings already exists — skipping create")

    # ── activity_logs ─────────────────────────────────────────────────────────
    if not _table_exists(conn, 'activity_logs'):
        op.create_table(
            'activity_logs',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('team_id', sa.String(36), nullable=False, index=True),
            sa.Column('entity_type', sa.String(50), nullable=False),
            sa.Column('entity_id', sa.String(36), nullable=False),
            sa.Column('entity_name', sa.Text, nullable=True),
            sa.Column('action_type', sa.String(30), nullable=False),
            sa.Column('change_summary', sa.Text, nullable=True),
            sa.Column('change_details', sa.JSON, nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        logger.info("Created table: activity_logs")
    else:
        logger.info("Table activity_logs already exists — skipping create")

    # ── functions ─────────────────────────────────────────────────────────────
    for ddl in (_START_FN, _END_FN, _CLEANUP_FN, _COMPONENT_TRIGGER_FN):
        op.execute(ddl)
    logger.info("Created bulk operation functions")

    if _table_exists(conn, 'components'):
        op.execute("DROP TRIGGER IF EXISTS log_component_activity_trigger ON components")
        op.execute(
            "CREATE TRIGGER log_component_activity_trigger "
            "AFTER INSERT OR UPDATE OR DELETE ON components "
            "FOR EACH ROW EXECUTE FUNCTION log_component_activity()"
        )
        logger.info("Attached log_component_activity_trigger to components")
    else:
        logger.warning("Table components does not exist — trigger not attached")


def downgrade() -> None:
    conn = op.get_bind()

    if _table_exists(conn, 'components'):
        op.execute("DROP TRIGGER IF EXISTS log_component_activity_trigger ON components")
    op.execute("DROP FUNCTION IF EXISTS log_component_activity()")
    op.execute("DROP FUNCTION IF EXISTS cleanup_old_bulk_operations()")
    op.execute("DROP FUNCTION IF EXISTS end_bulk_operation(TEXT)")
    op.execute("DROP FUNCTION IF EXISTS start_bulk_operation(TEXT, VARCHAR, VARCHAR, INTEGER)")

    for table in ('activity_logs', 'pricing_settings', 'bulk_operations'):
        if _table_exists(conn, table):
            op.drop_table(table)

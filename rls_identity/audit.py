"""
Audit log sinks for accepted parameter sets.
"""

import json
import sys
from typing import Any, Dict

from sqlalchemy import text

from rls_identity.models import AuditRecord


def record_to_row(record: AuditRecord) -> Dict[str, Any]:
    return {
        "report_id": record.report_id,
        "schema_version": record.schema_version,
        "subject": record.subject,
        "parameters": json.dumps(record.parameters, sort_keys=True),
        "created_at": record.created_at,
    }


class SqlAuditLog:
    """Append audit records to dbo.parameter_audit."""

    INSERT = text("""
        INSERT INTO dbo.parameter_audit
            (report_id, schema_version, subject, parameters, created_at)
        VALUES
            (:report_id, :schema_version, :subject, :parameters, :created_at)
    """)

    def __init__(self, engine):
        self.engine = engine

    def write(self, record: AuditRecord) -> None:
        with self.engine.begin() as conn:
            conn.execute(self.INSERT, record_to_row(record))


class StdoutAuditLog:
    """Print audit records; used when no database is configured."""

    def write(self, record: AuditRecord) -> None:
        row = record_to_row(record)
        row["created_at"] = record.created_at.isoformat()
        print(f"[audit] {json.dumps(row, sort_keys=True)}")


def emit_audit(sink, record: AuditRecord) -> bool:
    """Write *record* to *sink*; a failing sink is reported, never raised."""
    try:
        sink.write(record)
        return True
    except Exception as e:
        print(
            f"[WARN] Audit log write failed for report '{record.report_id}': {e}",
            file=sys.stderr,
        )
        return False

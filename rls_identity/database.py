"""
Database engine initialisation and dataset loading.
"""

import sys
from typing import Optional

import pandas as pd
from sqlalchemy import create_engine, text

from rls_identity.schema import IDENTIFIER_RE


def init_engine(db_uri: str):
    """Create a SQLAlchemy engine and verify the connection."""
    engine = create_engine(db_uri, echo=False, future=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    return engine


def load_dataset(engine, table: str, limit: Optional[int] = None) -> pd.DataFrame:
    """Read dbo.<table>, or its first *limit* rows.

    The table name comes from the report registry, never from a request.
    """
    if not IDENTIFIER_RE.match(table):
        raise ValueError(f"Invalid dataset table name: {table!r}")
    top = f"TOP {int(limit)} " if limit is not None else ""
    sql = f"SELECT {top}* FROM dbo.{table}"
    with engine.connect() as conn:
        return pd.read_sql_query(sql, conn)

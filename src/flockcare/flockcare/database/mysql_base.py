from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional


@contextmanager
def db_cursor(conn_factory, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: Iterable[int]) -> tuple[str, list[int]]:
    """Placeholders for ``col IN (...)``. An empty set yields a false predicate."""
    ids = sorted({int(v) for v in values})
    if not ids:
        return "(NULL)", []
    return "(" + ",".join(["%s"] * len(ids)) + ")", ids

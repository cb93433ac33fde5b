#!/usr/bin/env python3
# CUI // SP-CTI
# Controlled by: Department of Defense
# CUI Category: CTI
# Distribution: D
# POC: ICDEV System Administrator
"""Append-only SQLite history of dashboard snapshots.

Snapshots are stored as JSON payloads in ``maturity_snapshots``. Rows are
only ever inserted; re-appending a snapshot whose id is already stored is
a no-op.

Usage:
    python tools/maturity/snapshot_store.py --list --json
    python tools/maturity/snapshot_store.py --list --project-name shop --limit 10
"""

import argparse
import json
import logging
import sqlite3
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger("reqgraph.maturity.snapshot_store")

BASE_DIR = Path(__file__).resolve().parent.parent.parent
DB_PATH = BASE_DIR / "data" / "reqgraph.db"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS maturity_snapshots (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    project_name TEXT NOT NULL DEFAULT '',
    payload TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_maturity_snapshots_project
    ON maturity_snapshots (project_name, created_at);
"""


def _payload(snapshot: Any) -> Dict[str, Any]:
    if hasattr(snapshot, "to_dict"):
        return snapshot.to_dict()
    if isinstance(snapshot, dict):
        return dict(snapshot)
    raise TypeError(f"Cannot store snapshot of type {type(snapshot).__name__}")


def append_snapshot(snapshot: Any, db_path: Optional[Union[str, Path]] = None,
                    project_name: str = "") -> bool:
    """Insert a snapshot; returns False if its id was already stored.

    The database file and table are created on first write.

    Raises:
        TypeError: if ``snapshot`` is neither a MetricsSnapshot nor a dict.
        ValueError: if the snapshot has no id or timestamp.
    """
    payload = _payload(snapshot)
    if not payload.get("id") or not payload.get("timestamp"):
        raise ValueError("snapshot requires an id and a timestamp")

    path = Path(db_path) if db_path else DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(_SCHEMA)
        cur = conn.execute(
            """INSERT OR IGNORE INTO maturity_snapshots
               (id, created_at, project_name, payload)
               VALUES (?, ?, ?, ?)""",
            (payload["id"], payload["timestamp"], project_name or "",
             json.dumps(payload, sort_keys=True, default=str)),
        )
        conn.commit()
        inserted = cur.rowcount == 1
    finally:
        conn.close()

    if inserted:
        logger.info("Stored snapshot %s in %s", payload["id"], path)
    else:
        logger.debug("Snapshot %s already stored", payload["id"])
    return inserted


def load_snapshots(db_path: Optional[Union[str, Path]] = None,
                   project_name: Optional[str] = None,
                   limit: int = 100) -> List[Dict[str, Any]]:
    """Return stored snapshot payloads, oldest first.

    When more than ``limit`` snapshots match, the most recent ``limit`` are
    returned.

    Raises:
        FileNotFoundError: if the history database does not exist.
    """
    path = Path(db_path) if db_path else DB_PATH
    if not path.exists():
        raise FileNotFoundError(
            f"Snapshot history not found: {path}\n"
            "Run: python tools/maturity/quality_pipeline.py --records FILE --store"
        )

    query = "SELECT payload FROM maturity_snapshots"
    params: List[Any] = []
    if project_name is not None:
        query += " WHERE project_name = ?"
        params.append(project_name)
    query += " ORDER BY created_at DESC, id DESC LIMIT ?"
    params.append(int(limit))

    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(_SCHEMA)
        rows = conn.execute(query, params).fetchall()
    finally:
        conn.close()
    return [json.loads(row[0]) for row in reversed(rows)]


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect the maturity snapshot history")
    parser.add_argument("--list", action="store_true", help="List stored snapshots")
    parser.add_argument("--db-path", default=None, help=f"History DB (default {DB_PATH})")
    parser.add_argument("--project-name", default=None)
    parser.add_argument("--limit", type=int, default=100)
    parser.add_argument("--json", dest="json_mode", action="store_true",
                        help="Output results as JSON")
    args = parser.parse_args()

    if not args.list:
        parser.print_help()
        return
    try:
        snapshots = load_snapshots(args.db_path, args.project_name, args.limit)
    except FileNotFoundError as exc:
        print(json.dumps({"error": str(exc)}, indent=2), file=sys.stderr)
        sys.exit(1)

    if args.json_mode:
        print(json.dumps(snapshots, indent=2))
        return
    for snap in snapshots:
        print(f"{snap['timestamp']}  {snap['id']}  level={snap.get('maturity_level')}  "
              f"completion={snap.get('overall_completion_rate', 0) * 100:.1f}%")


if __name__ == "__main__":
    main()

import logging
import uuid
from datetime import datetime, UTC

import duckdb


class SnapshotCatalog:
    """Records every screenshot and walk step of a run in duckdb.

    Rows are keyed by run_id; earlier runs stay in the file but are never
    read back to resume a walk.
    """

    def __init__(self, path, run_id: str | None = None):
        self.path = str(path)
        self.run_id = run_id or (
            datetime.now(UTC).strftime("%Y%m%dT%H%M%S") + "-" + uuid.uuid4().hex[:6]
        )
        self.conn = duckdb.connect(self.path)
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS snapshots (run_id TEXT, idx INTEGER, kind TEXT, path TEXT, lat REAL, lng REAL, zoom INTEGER, taken_at TIMESTAMP)"
        )
        self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS steps (
                run_id TEXT,
                step INTEGER,
                outcome TEXT,
                dx INTEGER,
                dy INTEGER,
                zoom_delta INTEGER,
                large_jump BOOLEAN,
                lat REAL,
                lng REAL,
                zoom INTEGER,
                reason TEXT
            )
            """
        )
        logging.info("snapshot catalog %s run_id=%s", self.path, self.run_id)

    def record_snapshot(
        self, idx: int, kind: str, path, lat: float, lng: float, zoom: int
    ):
        self.conn.execute(
            "INSERT INTO snapshots VALUES (?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)",
            (self.run_id, idx, kind, str(path), lat, lng, zoom),
        )

    def record_step(
        self,
        step: int,
        outcome: str,
        candidate,
        lat: float,
        lng: float,
        zoom: int,
        reason: str | None = None,
    ):
        # lat/lng/zoom are the walk position after the step was handled
        self.conn.execute(
            "INSERT INTO steps VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                self.run_id,
                step,
                outcome,
                candidate.delta.dx,
                candidate.delta.dy,
                candidate.zoom_delta,
                candidate.large_jump,
                lat,
                lng,
                zoom,
                reason,
            ),
        )

    def counts(self, run_id: str | None = None) -> dict[str, int]:
        run_id = run_id or self.run_id
        rows = self.conn.execute(
            "SELECT outcome, COUNT(*) FROM steps WHERE run_id=? GROUP BY outcome",
            (run_id,),
        ).fetchall()
        counts = {outcome: n for outcome, n in rows}
        counts["snapshots"] = self.conn.execute(
            "SELECT COUNT(*) FROM snapshots WHERE run_id=?", (run_id,)
        ).fetchone()[0]
        return counts

    def close(self):
        self.conn.close()

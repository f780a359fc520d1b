"""JSON report of a single deployment run."""

import json
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class RunReport:
    """Status of the current run, rewritten to ``path`` after every change.

    Without a path the report only lives in ``data``.
    """

    def __init__(self, path: Optional[str], logger):
        self.path = path
        self.logger = logger
        self.data: Dict[str, Any] = {
            "run_id": None,
            "status": "running",
            "outcome": None,
            "started_at": None,
            "finished_at": None,
            "target": {},
            "backup_created": False,
            "steps": [],
            "error": None,
        }
        self._step_clock: Optional[float] = None

    def begin(self, run_id: str, target: Dict[str, Any]):
        self.data.update(
            run_id=run_id,
            started_at=datetime.now(timezone.utc).isoformat(),
            target=target,
        )
        self._flush()

    def begin_step(self, name: str):
        self._step_clock = time.monotonic()
        self.data["steps"].append({"name": name, "status": "running", "seconds": None, "error": None})
        self._flush()

    def end_step(self, status: str, error: Optional[str] = None):
        step = self.data["steps"][-1]
        step["status"] = status
        step["error"] = error
        if self._step_clock is not None:
            step["seconds"] = round(time.monotonic() - self._step_clock, 3)
        self._flush()

    def mark_backup_created(self):
        self.data["backup_created"] = True
        self._flush()

    def finish(self, outcome: str, succeeded: bool, error: Optional[str] = None):
        self.data.update(
            status="success" if succeeded else "failed",
            outcome=outcome,
            finished_at=datetime.now(timezone.utc).isoformat(),
            error=error,
        )
        self._flush()

    def _flush(self):
        if not self.path:
            return
        temp_path = f"{self.path}.tmp"
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as handle:
                json.dump(self.data, handle, indent=2, sort_keys=True)
            os.replace(temp_path, self.path)
        except OSError as exc:
            self.logger.warning("Could not write report file '%s': %s", self.path, exc)

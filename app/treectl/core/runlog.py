"""Run log persistence.

Every real (non dry-run) execution of an action table is appended to a
JSONL file in the state directory so past runs can be reviewed.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from treectl.core.paths import get_run_log_path
from treectl.models.outcome import ExecutionReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunRecord:
    """One recorded executor run.

    Attributes:
        id: Unique run identifier.
        timestamp: ISO 8601 UTC timestamp of the run.
        table: Path of the executed action table.
        destination: Destination root of the run.
        summary: RunSummary as a dictionary.
        failures: Failed rows as dictionaries.
    """

    id: str
    timestamp: str
    table: str
    destination: str
    summary: dict[str, Any]
    failures: list[dict[str, Any]]

    @classmethod
    def create(cls, report: ExecutionReport, table: Path, destination: Path) -> RunRecord:
        """Create a record for a finished run with a fresh id and timestamp."""
        return cls(
            id=uuid.uuid4().hex[:12],
            timestamp=datetime.now(UTC).isoformat(),
            table=str(table),
            destination=str(destination),
            summary=report.summary.to_dict(),
            failures=[o.to_dict() for o in report.outcomes if o.failed],
        )

    def to_json_line(self) -> str:
        """Serialize as a single JSON line."""
        return json.dumps(
            {
                "id": self.id,
                "timestamp": self.timestamp,
                "table": self.table,
                "destination": self.destination,
                "summary": self.summary,
                "failures": self.failures,
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json_line(cls, line: str) -> RunRecord:
        """Parse a JSON line.

        Raises:
            json.JSONDecodeError: If the line is not valid JSON.
            KeyError: If a required field is missing.
        """
        data = json.loads(line)
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            table=data["table"],
            destination=data["destination"],
            summary=data["summary"],
            failures=data.get("failures", []),
        )


class RunLog:
    """Manages the run log JSONL file.

    Storage location: ~/.local/state/treectl/runs.jsonl

    Args:
        path: Optional override for the log file.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path if path is not None else get_run_log_path()

    @property
    def path(self) -> Path:
        """Path to the run log file."""
        return self._path

    def record(self, record: RunRecord) -> None:
        """Append a run to the log.

        Raises:
            OSError: If the file cannot be written.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open(mode="a", encoding="utf-8") as f:
            f.write(record.to_json_line() + "\n")

    def get_runs(self, limit: int | None = None) -> list[RunRecord]:
        """Read recorded runs, newest first.

        Corrupt lines are skipped with a warning.

        Args:
            limit: Maximum number of runs to return.

        Returns:
            List of RunRecord, newest first.
        """
        if not self._path.exists():
            return []

        runs: list[RunRecord] = []
        with self._path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    runs.append(RunRecord.from_json_line(line))
                except (json.JSONDecodeError, KeyError, TypeError) as e:
                    logger.warning("Skipping corrupt run log line %d: %s", line_num, e)

        runs.reverse()
        if limit is not None:
            runs = runs[:limit]
        return runs

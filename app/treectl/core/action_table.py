"""Action table file I/O.

The action table is persisted as a CSV file so it can be reviewed and
edited in a spreadsheet. Records are validated with Pydantic on load;
a table with missing or unknown columns is rejected, while unknown
action values are normalized to ``Unset`` with a warning.
"""

import csv
import logging
import os
from collections.abc import Sequence
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from treectl.models.action import ACTION_TABLE_COLUMNS, ActionRow
from treectl.models.difference import ActionChoice, DiffStatus
from treectl.models.entry import EntryKind, normalize_relative_path

logger = logging.getLogger(__name__)

# utf-8-sig keeps spreadsheet applications from mangling non-ASCII paths
TABLE_ENCODING = "utf-8-sig"


class ActionTableError(Exception):
    """Base exception for action table errors."""


class ActionTableParseError(ActionTableError):
    """Raised when the action table is not readable as CSV."""


class ActionTableValidationError(ActionTableError):
    """Raised when the action table content is invalid."""


class ActionTableRecord(BaseModel):
    """One CSV record of the action table, keyed by column name."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=False)

    action: Annotated[str, Field(alias="Action")] = ""
    kind: Annotated[EntryKind, Field(alias="Type")]
    status: Annotated[DiffStatus, Field(alias="Status")]
    relative_path: Annotated[str, Field(alias="RelativePath", min_length=1)]
    name: Annotated[str, Field(alias="Name")] = ""
    extension: Annotated[str, Field(alias="Extension")] = ""
    source_path: Annotated[str, Field(alias="SourcePath")] = ""
    target_path: Annotated[str, Field(alias="TargetPath")] = ""
    source_size: Annotated[str, Field(alias="SourceSize")] = ""
    target_size: Annotated[str, Field(alias="TargetSize")] = ""
    size_difference: Annotated[str, Field(alias="SizeDifference")] = ""
    source_modified: Annotated[str, Field(alias="SourceModified")] = ""
    target_modified: Annotated[str, Field(alias="TargetModified")] = ""
    recommendation: Annotated[str, Field(alias="Recommendation")] = ""
    notes: Annotated[str, Field(alias="Notes")] = ""


def save_action_table(rows: Sequence[ActionRow], path: Path) -> Path:
    """Write the action table as CSV, atomically.

    Args:
        rows: Rows to write, in order.
        path: Destination file.

    Returns:
        Path where the table was written.

    Raises:
        ActionTableError: If the file cannot be written.
    """
    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="w",
            encoding=TABLE_ENCODING,
            newline="",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            writer = csv.DictWriter(f, fieldnames=ACTION_TABLE_COLUMNS)
            writer.writeheader()
            for row in rows:
                writer.writerow(row.to_record())
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ActionTableError(f"Failed to write action table: {e}") from e

    logger.info("Wrote %d row(s) to %s", len(rows), path)
    return path


def load_action_table(path: Path) -> list[ActionRow]:
    """Load and validate an action table from CSV.

    Args:
        path: Action table file.

    Returns:
        Rows in file order.

    Raises:
        ActionTableError: If the file cannot be read.
        ActionTableParseError: If the file is not valid CSV text.
        ActionTableValidationError: If columns are missing or unknown, a
            record is malformed, or an identity repeats.
    """
    try:
        with open(path, encoding=TABLE_ENCODING, newline="") as f:
            reader = csv.DictReader(f, restval="")
            header = reader.fieldnames
            records = list(reader)
    except FileNotFoundError as e:
        raise ActionTableError(f"Action table not found: {path}") from e
    except UnicodeDecodeError as e:
        raise ActionTableParseError(f"Action table is not UTF-8 text: {e}") from e
    except csv.Error as e:
        raise ActionTableParseError(f"Invalid CSV in {path}: {e}") from e
    except OSError as e:
        raise ActionTableError(f"Failed to read action table {path}: {e}") from e

    _check_header(header, path)

    rows: list[ActionRow] = []
    seen: set[tuple[EntryKind, str]] = set()
    # Line 1 is the header
    for line_num, record in enumerate(records, start=2):
        if None in record:
            msg = f"{path}:{line_num}: row has more fields than the header"
            raise ActionTableValidationError(msg)
        row = _row_from_record(record, path, line_num)
        if row.identity in seen:
            msg = f"{path}:{line_num}: duplicate row for {row.kind.value} {row.relative_path}"
            raise ActionTableValidationError(msg)
        seen.add(row.identity)
        rows.append(row)

    logger.info("Loaded %d row(s) from %s", len(rows), path)
    return rows


def _check_header(header: Sequence[str] | None, path: Path) -> None:
    """Reject tables with missing or unknown columns."""
    if not header:
        raise ActionTableValidationError(f"Action table has no header: {path}")

    columns = [c.strip() for c in header]
    missing = [c for c in ACTION_TABLE_COLUMNS if c not in columns]
    unknown = [c for c in columns if c not in ACTION_TABLE_COLUMNS]
    if missing:
        msg = f"Action table {path} is missing column(s): {', '.join(missing)}"
        raise ActionTableValidationError(msg)
    if unknown:
        msg = f"Action table {path} has unknown column(s): {', '.join(unknown)}"
        raise ActionTableValidationError(msg)


def _row_from_record(record: dict[str, str], path: Path, line_num: int) -> ActionRow:
    """Validate one CSV record and convert it to an ActionRow."""
    cleaned = {key.strip(): value for key, value in record.items()}
    try:
        parsed = ActionTableRecord.model_validate(cleaned)
    except ValidationError as e:
        raise ActionTableValidationError(f"{path}:{line_num}: invalid row: {e}") from e

    action = ActionChoice.from_text(parsed.action)
    if action is None:
        logger.warning(
            "%s:%d: unknown action %r for %s, using Unset",
            path,
            line_num,
            parsed.action,
            parsed.relative_path,
        )
        action = ActionChoice.UNSET

    relative_path = normalize_relative_path(parsed.relative_path)
    if not relative_path:
        msg = f"{path}:{line_num}: relative path {parsed.relative_path!r} is empty"
        raise ActionTableValidationError(msg)

    return ActionRow(
        action=action,
        kind=parsed.kind,
        status=parsed.status,
        relative_path=relative_path,
        name=parsed.name,
        extension=parsed.extension,
        source_path=parsed.source_path.strip(),
        target_path=parsed.target_path.strip(),
        source_size=parsed.source_size,
        target_size=parsed.target_size,
        size_difference=parsed.size_difference,
        source_modified=parsed.source_modified,
        target_modified=parsed.target_modified,
        recommendation=parsed.recommendation,
        notes=parsed.notes,
    )

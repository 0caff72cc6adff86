"""
Read-back helpers for committed dataset files.

``validate_dataset_file`` re-checks on disk what the writer enforced in
memory, so files produced elsewhere (or by older releases) can be audited
before training jobs consume them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from . import parquet_schemas

__all__ = ["DatasetValidationResult", "read_dataset", "validate_dataset_file"]

_MAX_REPORTED_ERRORS = 20


@dataclass(slots=True)
class DatasetValidationResult:
    """Outcome of validating one dataset file."""

    path: Path
    rows: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "ok": self.ok,
            "rows": self.rows,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def read_dataset(path: Path) -> pa.Table:
    """Load a dataset file as an Arrow table."""

    return pq.read_table(str(path))


def _check_rows(table: pa.Table, result: DatasetValidationResult) -> None:
    seen_ids: set[str] = set()
    for row in table.to_pylist():
        if len(result.errors) >= _MAX_REPORTED_ERRORS:
            result.errors.append("Too many errors; stopping")
            return
        record_id = row["id"]
        if record_id in seen_ids:
            result.errors.append(f"Duplicate id {record_id!r}")
        seen_ids.add(record_id)

        length = len(row["text"])
        previous_end = 0
        for mention in row["mentions"]:
            start, end = mention["start"], mention["end"]
            if not 0 <= start < end <= length:
                result.errors.append(
                    f"Mention [{start}, {end}) outside text of length {length} in {record_id!r}"
                )
            elif start < previous_end:
                result.errors.append(f"Mentions unsorted or overlapping in {record_id!r}")
            previous_end = max(previous_end, end)


def validate_dataset_file(path: Path) -> DatasetValidationResult:
    """Check schema, footer contract and mention invariants of ``path``."""

    path = Path(path)
    result = DatasetValidationResult(path=path)
    try:
        table = read_dataset(path)
    except (OSError, pa.ArrowException) as exc:
        result.errors.append(f"Unreadable Parquet file: {exc}")
        return result

    result.rows = table.num_rows
    expected = parquet_schemas.dataset_schema()
    if not table.schema.equals(expected, check_metadata=False):
        result.errors.append(f"Schema mismatch: got {table.schema.remove_metadata()}")
        return result

    footer = parquet_schemas.validate_footer(parquet_schemas.read_parquet_footer(str(path)))
    result.errors.extend(footer.errors)
    result.warnings.extend(footer.warnings)

    _check_rows(table, result)
    return result

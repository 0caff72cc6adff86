# === NAVMAP v1 ===
# {
#   "module": "ConllToParquet.storage.writers",
#   "purpose": "Atomic Parquet writer for dataset splits.",
#   "sections": [
#     {
#       "id": "writeresult",
#       "name": "WriteResult",
#       "anchor": "class-writeresult",
#       "kind": "class"
#     },
#     {
#       "id": "datasetparquetwriter",
#       "name": "DatasetParquetWriter",
#       "anchor": "class-datasetparquetwriter",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Atomic Parquet Writer for Dataset Splits

Encapsulates write logic for one split file with:
- Row invariant checks (mention offsets inside the text, sorted, disjoint)
- Schema enforcement against :func:`parquet_schemas.dataset_schema`
- Atomic writes (temp → fsync → rename)
  * Write to temporary file in the destination directory
  * Fsync to ensure durability
  * Atomic rename to final destination
- Parquet footer metadata for provenance
- Column statistics for predicate pushdown

Either the destination holds a complete file or it is left untouched; the
temporary file is removed on any failure.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

from ..errors import DatasetWriteError
from ..logging import get_logger, log_event
from ..models import U32_MAX, DatasetRecord, Split
from . import parquet_schemas

LOGGER = get_logger(__name__, base_fields={"stage": "write"})

_LEVELED_CODECS = {"zstd", "gzip", "brotli"}

# ============================================================
# Types
# ============================================================


class WriteResult:
    """Summary of a Parquet write operation."""

    def __init__(
        self,
        path: Path,
        rows_written: int,
        row_group_count: int,
        parquet_bytes: int,
    ):
        self.path = path
        self.rows_written = rows_written
        self.row_group_count = row_group_count
        self.parquet_bytes = parquet_bytes

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": str(self.path),
            "rows_written": self.rows_written,
            "row_group_count": self.row_group_count,
            "parquet_bytes": self.parquet_bytes,
        }


# ============================================================
# Main Writer
# ============================================================


class DatasetParquetWriter:
    """
    Atomic writer for dataset split files.

    Validates every record, converts them to one Arrow table, attaches footer
    metadata and commits the file with temp → fsync → rename.
    """

    def __init__(
        self,
        compression: str | None = "zstd",
        compression_level: int | None = 5,
        row_group_size: int = 65536,
    ):
        """
        Initialize a dataset Parquet writer.

        Args:
            compression: Compression codec ("zstd", "snappy", "gzip", ...) or None.
            compression_level: Codec level; ignored for codecs without levels.
            row_group_size: Maximum rows per row group.
        """
        self.schema = parquet_schemas.dataset_schema()
        self.compression = compression
        self.compression_level = (
            compression_level if compression in _LEVELED_CODECS else None
        )
        self.row_group_size = row_group_size

    @staticmethod
    def _validate_record(record: DatasetRecord) -> None:
        """
        Validate a single record's invariants.

        Raises:
            ValueError: If invariants violated.
        """
        if not record.id:
            raise ValueError("id is required and cannot be empty")
        if not 0 <= record.document_id <= U32_MAX:
            raise ValueError(f"document_id must fit in uint32, got {record.document_id}")

        length = len(record.text)
        previous_end = 0
        for mention in record.mentions:
            if not 0 <= mention.start < mention.end <= length:
                raise ValueError(
                    f"mention span invariant: 0 <= start < end <= {length}, "
                    f"got start={mention.start}, end={mention.end} in document {record.document_id}"
                )
            for name in ("primary_id", "secondary_id"):
                value = getattr(mention, name)
                if value is not None and not 0 <= value <= U32_MAX:
                    raise ValueError(f"{name} must fit in uint32, got {value}")
            if mention.start < previous_end:
                raise ValueError(
                    f"mentions must be sorted and disjoint in document {record.document_id}"
                )
            previous_end = mention.end

    def check_records(self, records: Iterable[DatasetRecord], *, split: Split) -> None:
        """
        Validate ``records`` without touching the filesystem.

        Raises:
            DatasetWriteError: If any record violates the row invariants.
        """
        for record in records:
            try:
                self._validate_record(record)
            except ValueError as exc:
                raise DatasetWriteError(f"Invalid record in {split.value} split: {exc}") from exc

    def _build_table(self, records: Iterable[DatasetRecord]) -> pa.Table:
        rows = []
        for record in records:
            self._validate_record(record)
            rows.append(record.to_row())
        table = pa.Table.from_pylist(rows, schema=self.schema)
        parquet_schemas.assert_table_matches_schema(table, self.schema)
        return table

    def _writer_kwargs(self) -> dict[str, Any]:
        kwargs = parquet_schemas.recommended_parquet_writer_options()
        kwargs.update(
            compression=self.compression,
            compression_level=self.compression_level,
            row_group_size=self.row_group_size,
        )
        return kwargs

    def write(
        self,
        records: Iterable[DatasetRecord],
        output_path: Path,
        *,
        split: Split,
        cfg_hash: str,
        created_by: str = "ConllToParquet",
        dt_utc: datetime | None = None,
    ) -> WriteResult:
        """
        Write ``records`` to ``output_path`` atomically.

        Args:
            records: Dataset records in output order.
            output_path: Final Parquet file path.
            split: Split recorded in the footer.
            cfg_hash: Configuration hash for footer.
            created_by: Creator identifier for footer.
            dt_utc: Write timestamp (UTC). If None, uses current time.

        Returns:
            WriteResult with path, row count, and file statistics.

        Raises:
            DatasetWriteError: If a record is invalid or the commit fails.
        """
        if dt_utc is None:
            dt_utc = datetime.now(UTC)

        output_path = Path(output_path)
        tmp_path = output_path.with_name(f"{output_path.name}.tmp.{uuid.uuid4().hex}")

        try:
            table = self._build_table(records)
            footer_meta = parquet_schemas.build_footer(
                split=split,
                cfg_hash=cfg_hash,
                created_by=created_by,
                created_at=dt_utc.strftime(parquet_schemas.ISO_UTC),
            )
            table = parquet_schemas.attach_footer_metadata(table, footer_meta)

            output_path.parent.mkdir(parents=True, exist_ok=True)
            pq.write_table(table, str(tmp_path), **self._writer_kwargs())
            self._fsync_path(tmp_path)
            tmp_path.replace(output_path)
        except (OSError, ValueError, TypeError, OverflowError, pa.ArrowException) as exc:
            tmp_path.unlink(missing_ok=True)
            raise DatasetWriteError(
                f"Failed to write {split.value} split to {output_path}: {exc}", path=output_path
            ) from exc

        result = WriteResult(
            path=output_path,
            rows_written=table.num_rows,
            row_group_count=pq.ParquetFile(str(output_path)).metadata.num_row_groups,
            parquet_bytes=output_path.stat().st_size,
        )
        log_event(
            LOGGER.child(split=split.value), "info", "Committed dataset file", **result.to_dict()
        )
        return result

    @staticmethod
    def _fsync_path(path: Path) -> None:
        """Best-effort fsync for durability before atomic rename."""

        try:
            with open(path, "rb") as file_obj:
                os.fsync(file_obj.fileno())
        except OSError:
            # Some filesystems do not support fsync on read handles.
            pass

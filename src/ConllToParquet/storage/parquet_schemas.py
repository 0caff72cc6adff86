# file: src/ConllToParquet/storage/parquet_schemas.py
# Purpose: Executable Arrow schema declaration + Parquet footer contract
# Compatible with: pyarrow >= 14

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional, Tuple

import pyarrow as pa
import pyarrow.parquet as pq

from ..errors import SchemaMismatchError
from ..models import Split

# ============================================================
# Version tags (SemVer) – bump only with schema changes
# ============================================================

SCHEMA_VERSION_DATASET = "conll2pq/dataset/1.0.0"

ISO_UTC = "%Y-%m-%dT%H:%M:%SZ"
FOOTER_PREFIX = "conll2pq."

# ============================================================
# Arrow schema factories
# ============================================================


def mention_type() -> pa.StructType:
    """Struct type of a single mention span."""
    return pa.struct(
        [
            pa.field("start", pa.uint32(), nullable=False),
            pa.field("end", pa.uint32(), nullable=False),
            pa.field("primary_id", pa.uint32(), nullable=True),
            pa.field("secondary_id", pa.uint32(), nullable=True),
        ]
    )


def dataset_schema() -> pa.Schema:
    """
    Dataset schema shared by the train, validation and test files.

    The list element is named ``element`` so the type survives a Parquet
    round trip unchanged.
    """
    return pa.schema(
        [
            pa.field("id", pa.string(), nullable=False),
            pa.field("document_id", pa.uint32(), nullable=False),
            pa.field("text", pa.string(), nullable=False),
            pa.field(
                "mentions",
                pa.list_(pa.field("element", mention_type(), nullable=False)),
                nullable=False,
            ),
        ]
    )


# ============================================================
# Parquet footer contract (key-value metadata)
# ============================================================

SEMVER_RE = re.compile(r"^conll2pq/dataset/[0-9]+\.[0-9]+\.[0-9]+$")
ISO_DT_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")
SPLIT_ENUM = {split.value for split in Split}

FOOTER_REQ = (
    "conll2pq.schema_version",
    "conll2pq.split",
    "conll2pq.cfg_hash",
    "conll2pq.created_by",
    "conll2pq.created_at",
)


@dataclass(frozen=True)
class FooterValidationResult:
    ok: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime(ISO_UTC)


def _to_bytes_meta(meta: Mapping[str, str]) -> Mapping[bytes, bytes]:
    """Parquet schema metadata requires byte values."""
    return {k.encode("utf-8"): str(v).encode("utf-8") for k, v in meta.items()}


def _decode_file_metadata(raw: Optional[Mapping[bytes, bytes]]) -> Dict[str, str]:
    """Decode our prefixed keys; Arrow's own ``ARROW:schema`` blob is skipped."""
    if not raw:
        return {}
    out: Dict[str, str] = {}
    for k, v in raw.items():
        key = k.decode("utf-8", errors="replace")
        if key.startswith(FOOTER_PREFIX):
            out[key] = v.decode("utf-8", errors="replace")
    return out


def build_footer(
    split: Split | str,
    cfg_hash: str,
    created_by: str,
    created_at: Optional[str] = None,
    extra: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    base = {
        "conll2pq.schema_version": SCHEMA_VERSION_DATASET,
        "conll2pq.split": Split(split).value,
        "conll2pq.cfg_hash": cfg_hash,
        "conll2pq.created_by": created_by,
        "conll2pq.created_at": created_at or _utc_now_iso(),
    }
    if extra:
        base.update(extra)
    return base


def validate_footer(meta: Mapping[str, str]) -> FooterValidationResult:
    errs = []
    warns = []

    missing = [k for k in FOOTER_REQ if k not in meta]
    if missing:
        errs.append(f"Missing footer keys: {', '.join(missing)}")

    sv = meta.get("conll2pq.schema_version")
    if sv is not None and not SEMVER_RE.match(sv):
        errs.append(f"Invalid schema_version format: {sv!r}")
    elif sv is not None and sv != SCHEMA_VERSION_DATASET:
        warns.append(f"schema_version {sv!r} differs from current {SCHEMA_VERSION_DATASET!r}")

    split = meta.get("conll2pq.split")
    if split is not None and split not in SPLIT_ENUM:
        errs.append(f"Unknown split {split!r}")

    ts = meta.get("conll2pq.created_at")
    if ts is not None and not ISO_DT_RE.match(ts):
        errs.append(f"created_at must be ISO-8601 UTC ({ISO_UTC}), got {ts!r}")

    if "conll2pq.cfg_hash" in meta and not meta["conll2pq.cfg_hash"]:
        errs.append("cfg_hash must be non-empty")

    return FooterValidationResult(ok=not errs, errors=tuple(errs), warnings=tuple(warns))


# ============================================================
# Table metadata attach / read
# ============================================================


def attach_footer_metadata(table: pa.Table, meta: Mapping[str, str]) -> pa.Table:
    """
    Return a new table whose schema carries Parquet-compatible key-value metadata.
    """
    merged = dict(table.schema.metadata or {})
    merged.update(_to_bytes_meta(meta))
    return table.replace_schema_metadata(merged)


def read_parquet_footer(path: str) -> Dict[str, str]:
    """
    Read a Parquet file's ``conll2pq.*`` key_value_metadata as str->str.
    """
    pf = pq.ParquetFile(path)
    return _decode_file_metadata(pf.metadata.metadata)


# ============================================================
# Quick table validators (structure only; not scanning all rows)
# ============================================================


def assert_table_matches_schema(table: pa.Table, expected: pa.Schema) -> None:
    """
    Raise SchemaMismatchError if the table's columns don't match the expected
    schema exactly (names, order, types, nullability).
    """
    actual = table.schema
    if actual.names != expected.names:
        raise SchemaMismatchError(f"Columns {actual.names} do not match expected {expected.names}")
    for f in expected:
        f2 = actual.field(f.name)
        if f2.type != f.type:
            raise SchemaMismatchError(f"Column {f.name} has type {f2.type}, expected {f.type}")
        if f2.nullable != f.nullable:
            raise SchemaMismatchError(
                f"Column {f.name} nullable={f2.nullable}, expected nullable={f.nullable}"
            )


def recommended_parquet_writer_options() -> Dict[str, object]:
    """
    Default write options for dataset files. Every column except
    ``document_id`` is unique per row, so dictionary encoding only helps there.
    """
    return {
        "compression": "zstd",
        "compression_level": 5,
        "use_dictionary": ["document_id"],
        "write_statistics": True,
    }

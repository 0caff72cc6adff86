"""
ConllToParquet Storage Layer

This package owns the Arrow/Parquet side of the conversion: the fixed dataset
schema and footer contract, the atomic split writer, and read-back validation.

Key modules:
- `parquet_schemas.py`: Arrow schema declaration and footer contract
- `writers.py`: Atomic Parquet writer for one split file
- `readers.py`: Read-back helpers and on-disk invariant checks

Usage:
    from ConllToParquet.storage import parquet_schemas, writers

    schema = parquet_schemas.dataset_schema()
    writer = writers.DatasetParquetWriter()
    writer.write(records, output_dir / "train.parquet", split=Split.TRAIN, cfg_hash=cfg_hash)
"""

from __future__ import annotations

__all__ = [
    "parquet_schemas",
    "readers",
    "writers",
]

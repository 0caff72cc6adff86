"""
End-to-end conversion: CoNLL corpus + title mapping → three Parquet splits.

Stages run strictly in order: parse the corpus, resolve the titles it
references, assemble every split, then commit the split files. All three
splits are assembled and checked before the first file is written, so an
unresolved title or an out-of-range id aborts the run without leaving any
output behind.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .assembler import assemble_split, new_record_id
from .errors import ConfigurationError
from .logging import get_logger, log_event
from .mapping import MANUAL_OVERRIDES, build_identifier_table, iter_mapping_records
from .models import DatasetRecord, Split
from .parser import parse_conll
from .settings import Settings
from .storage.writers import DatasetParquetWriter, WriteResult

__all__ = ["ConversionSummary", "SplitSummary", "convert", "split_output_path"]

LOGGER = get_logger(__name__, base_fields={"stage": "pipeline"})


@dataclass(slots=True)
class SplitSummary:
    """Counts and output location for one committed split."""

    split: Split
    documents: int
    mentions: int
    result: WriteResult

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"documents": self.documents, "mentions": self.mentions}
        payload.update(self.result.to_dict())
        return payload


@dataclass(slots=True)
class ConversionSummary:
    """Result envelope returned by :func:`convert`."""

    cfg_hash: str
    titles: int
    resolved_titles: int
    duration_s: float = 0.0
    splits: dict[Split, SplitSummary] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cfg_hash": self.cfg_hash,
            "titles": self.titles,
            "resolved_titles": self.resolved_titles,
            "duration_s": round(self.duration_s, 3),
            "splits": {split.value: summary.to_dict() for split, summary in self.splits.items()},
        }


def split_output_path(output_dir: Path, split: Split) -> Path:
    return Path(output_dir) / split.filename


def _check_output_dir(output_dir: Path) -> None:
    if output_dir.exists() and not output_dir.is_dir():
        raise ConfigurationError(f"Output path {output_dir} exists and is not a directory")


def convert(
    input_conll: Path,
    input_mapping: Path,
    output_dir: Path,
    *,
    settings: Optional[Settings] = None,
    overrides: Iterable[tuple[str, int, int | None]] = MANUAL_OVERRIDES,
    id_factory: Callable[[], str] = new_record_id,
) -> ConversionSummary:
    """Convert the corpus at ``input_conll`` into split files under ``output_dir``.

    Raises:
        ConversionError: Any subclass; nothing is written unless every split assembles.
    """

    settings = settings or Settings()
    output_dir = Path(output_dir)
    _check_output_dir(output_dir)
    started = time.perf_counter()

    corpus = parse_conll(Path(input_conll), title_prefix_length=settings.title_prefix_length)
    table = build_identifier_table(
        corpus.titles, iter_mapping_records(Path(input_mapping)), overrides=overrides
    )

    assembled: dict[Split, list[DatasetRecord]] = {
        split: assemble_split(
            corpus.tokens(split), table, id_factory=id_factory, split=split.value
        )
        for split in Split
    }

    cfg_hash = settings.cfg_hash()
    summary = ConversionSummary(
        cfg_hash=cfg_hash,
        titles=len(corpus.titles),
        resolved_titles=sum(1 for title in corpus.titles if title in table),
    )
    writer = DatasetParquetWriter(
        compression=settings.parquet_compression,
        compression_level=settings.compression_level,
        row_group_size=settings.row_group_size,
    )
    for split, records in assembled.items():
        writer.check_records(records, split=split)
    for split, records in assembled.items():
        result = writer.write(
            records,
            split_output_path(output_dir, split),
            split=split,
            cfg_hash=cfg_hash,
        )
        summary.splits[split] = SplitSummary(
            split=split,
            documents=len(records),
            mentions=sum(len(record.mentions) for record in records),
            result=result,
        )

    summary.duration_s = time.perf_counter() - started
    log_event(
        LOGGER,
        "info",
        "Conversion complete",
        output_dir=str(output_dir),
        duration_s=round(summary.duration_s, 3),
    )
    return summary

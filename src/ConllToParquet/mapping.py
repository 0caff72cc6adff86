"""
Title → identifier resolution.

The identifier table is seeded with manual corrections for titles the
external Wikipedia → Wikidata dump gets wrong or lacks, then filled from the
Avro mapping stream. Insertion is first-write-wins, so the corrections are
never replaced and a title repeated in the stream keeps its first row.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Set
from dataclasses import dataclass
from pathlib import Path

import fastavro

from .errors import MappingReadError
from .logging import get_logger, log_event
from .models import U32_MAX, ResolvedIdentifier

__all__ = [
    "MANUAL_OVERRIDES",
    "MappingRecord",
    "build_identifier_table",
    "iter_mapping_records",
    "missing_titles",
]

LOGGER = get_logger(__name__, base_fields={"stage": "mapping"})

_MISSING_SAMPLE_SIZE = 10

# Corrections applied ahead of the external mapping: (title, page id, QID).
MANUAL_OVERRIDES: tuple[tuple[str, int, int | None], ...] = (
    ("International_cricketers_of_South_African_origin", 17416221, 258),
    ("Independence_Day_(film)", 52389, 105387),
    ("Camelot,_Chesapeake,_Virginia", 91342, 49222),
    ("SBC_Communications", 26213969, 444015),
    ("Superman_(film)", 28381, 79015),
    ("Rabobank_(cycling_team)", 2354465, 6233),
    ("U._Chandana", 896434, 3520028),
    ("LPGA_Championship", 229059, 281917),
    ("Hapoel_Be'er_Sheva_A.F.C.", 5834903, 986529),
)


@dataclass(frozen=True, slots=True)
class MappingRecord:
    """One row of the title mapping stream."""

    title: str
    pageid: int
    qid: int | None = None

    @classmethod
    def from_avro(cls, record: Mapping[str, object]) -> "MappingRecord":
        """Build a record from a deserialized Avro row.

        Raises:
            KeyError: If ``title`` or ``pageid`` is missing.
            TypeError: If a field has the wrong type.
            ValueError: If an identifier does not fit in uint32.
        """
        title = record["title"]
        pageid = record["pageid"]
        qid = record.get("qid")
        if not isinstance(title, str):
            raise TypeError(f"title must be str, got {type(title).__name__}")
        if not _is_int(pageid):
            raise TypeError(f"pageid must be an int, got {pageid!r}")
        if qid is not None and not _is_int(qid):
            raise TypeError(f"qid must be an int or null, got {qid!r}")
        for name, value in (("pageid", pageid), ("qid", qid)):
            if value is not None and not 0 <= value <= U32_MAX:
                raise ValueError(f"{name} must fit in uint32, got {value}")
        return cls(title=title, pageid=pageid, qid=qid)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def iter_mapping_records(path: Path) -> Iterator[MappingRecord]:
    """Stream :class:`MappingRecord` rows from the Avro container at ``path``.

    Raises:
        MappingReadError: If the file cannot be read or a row is malformed.
    """

    path = Path(path)
    try:
        with path.open("rb") as handle:
            for index, raw in enumerate(fastavro.reader(handle)):
                try:
                    yield MappingRecord.from_avro(raw)
                except (KeyError, TypeError, ValueError) as exc:
                    raise MappingReadError(
                        f"Malformed mapping record #{index} in {path}: {exc}", path=path
                    ) from exc
    except (OSError, EOFError, ValueError) as exc:
        raise MappingReadError(f"Failed to read mapping stream {path}: {exc}", path=path) from exc


def build_identifier_table(
    titles: Set[str],
    records: Iterable[MappingRecord],
    *,
    overrides: Iterable[tuple[str, int, int | None]] = MANUAL_OVERRIDES,
) -> dict[str, ResolvedIdentifier]:
    """Return the title → identifier table for ``titles``.

    Overrides are inserted unconditionally first. Stream records are kept only
    when their title is requested and not yet present.
    """

    table: dict[str, ResolvedIdentifier] = {}
    for title, primary_id, secondary_id in overrides:
        table[title] = ResolvedIdentifier(primary_id=primary_id, secondary_id=secondary_id)
    override_count = len(table)

    scanned = 0
    matched = 0
    for record in records:
        scanned += 1
        if record.title not in titles or record.title in table:
            continue
        table[record.title] = ResolvedIdentifier(primary_id=record.pageid, secondary_id=record.qid)
        matched += 1

    missing = missing_titles(titles, table)
    log_event(
        LOGGER,
        "info",
        "Resolved title mapping",
        overrides=override_count,
        records_scanned=scanned,
        records_matched=matched,
        titles_requested=len(titles),
        titles_missing=len(missing),
    )
    if missing:
        log_event(
            LOGGER,
            "warning",
            "Candidate titles missing from mapping",
            error_code="UNRESOLVED_TITLES",
            count=len(missing),
            sample=missing[:_MISSING_SAMPLE_SIZE],
        )
    return table


def missing_titles(titles: Iterable[str], table: Mapping[str, ResolvedIdentifier]) -> list[str]:
    """Return the sorted titles from ``titles`` that ``table`` cannot resolve."""

    return sorted(title for title in titles if title not in table)

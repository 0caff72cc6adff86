"""
CoNLL token stream parser.

Reads the tab-separated AIDA CoNLL-YAGO layout line by line, tracking the
current document id and split from ``-DOCSTART-`` boundary lines, and tags
every token with one of the entity tag variants:

- 4 fields: entity present but deliberately left out of the mapping
  (``--NME--`` and friends) → ``OutOfMapping``
- more than 4 fields: field 4 is the title URL → ``Candidate(title)``
- anything else → ``Untagged``

The field-count rule is tied to this exact corpus layout; an extra trailing
column upstream would reclassify tokens without any error.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable
from pathlib import Path

from .errors import CorpusReadError
from .logging import get_logger, log_event
from .models import (
    OUT_OF_MAPPING,
    UNTAGGED,
    Candidate,
    EntityTag,
    ParsedCorpus,
    Split,
    TaggedToken,
    U32_MAX,
)
from .settings import TITLE_PREFIX_LENGTH

__all__ = [
    "DOCSTART_RE",
    "classify_fields",
    "normalize_text",
    "parse_boundary",
    "parse_conll",
    "parse_conll_lines",
]

LOGGER = get_logger(__name__, base_fields={"stage": "parse"})

# "-DOCSTART- (947testa CRICKET - ...)". The split marker may be glued to the
# digits or follow a single space, and the trailing description may be absent.
DOCSTART_RE = re.compile(
    r"-DOCSTART- \((\d+) ?(testa|testb)?(?: [^)\\]*(?:\\.[^)\\]*)*)?\)"
)

_SPLIT_MARKERS = {"testa": Split.VALIDATION, "testb": Split.TEST}


def normalize_text(value: str) -> str:
    """Return ``value`` in Unicode canonical composition (NFC)."""

    return unicodedata.normalize("NFC", value)


def parse_boundary(field: str) -> tuple[int, Split] | None:
    """Return ``(document_id, split)`` for a boundary line, or ``None`` if it is not one."""

    match = DOCSTART_RE.search(field)
    if match is None:
        return None
    document_id, marker = match.groups()
    return int(document_id), _SPLIT_MARKERS.get(marker or "", Split.TRAIN)


def classify_fields(
    fields: list[str], *, title_prefix_length: int = TITLE_PREFIX_LENGTH
) -> tuple[str, EntityTag]:
    """Return the normalised token text and entity tag for a non-boundary line."""

    token = normalize_text(fields[0])
    if len(fields) == 4:
        return token, OUT_OF_MAPPING
    if len(fields) > 4:
        title = normalize_text(fields[4][title_prefix_length:])
        return token, Candidate(title)
    return token, UNTAGGED


def parse_conll_lines(
    lines: Iterable[str], *, title_prefix_length: int = TITLE_PREFIX_LENGTH
) -> ParsedCorpus:
    """Route tagged tokens from ``lines`` into per-split sequences.

    Tokens seen before any boundary line belong to document 0 in the train
    split. Boundary lines that do not match :data:`DOCSTART_RE` are kept as
    untagged tokens.

    Raises:
        CorpusReadError: If a boundary carries a document id beyond uint32.
    """

    corpus = ParsedCorpus()
    document_id = 0
    split = Split.TRAIN

    for line_number, raw in enumerate(lines, start=1):
        line = raw.removesuffix("\n").removesuffix("\r")
        if not line:
            continue

        fields = line.split("\t")
        if len(fields) == 1:
            boundary = parse_boundary(fields[0])
            if boundary is not None:
                document_id, split = boundary
                if document_id > U32_MAX:
                    raise CorpusReadError(
                        f"Document id {document_id} on line {line_number} does not fit in uint32"
                    )
                continue

        token, tag = classify_fields(fields, title_prefix_length=title_prefix_length)
        corpus.tokens(split).append(TaggedToken(document_id=document_id, text=token, tag=tag))
        if isinstance(tag, Candidate):
            corpus.titles.add(tag.title)

    return corpus


def parse_conll(path: Path, *, title_prefix_length: int = TITLE_PREFIX_LENGTH) -> ParsedCorpus:
    """Parse the CoNLL file at ``path``.

    Raises:
        CorpusReadError: If the file cannot be opened or is not valid UTF-8.
    """

    path = Path(path)
    try:
        with path.open("r", encoding="utf-8", newline="\n") as handle:
            corpus = parse_conll_lines(handle, title_prefix_length=title_prefix_length)
    except (OSError, UnicodeDecodeError) as exc:
        raise CorpusReadError(f"Failed to read CoNLL corpus {path}: {exc}", path=path) from exc

    log_event(
        LOGGER,
        "info",
        "Parsed CoNLL corpus",
        input_path=str(path),
        tokens=corpus.counts(),
        titles=len(corpus.titles),
    )
    return corpus

"""
Document assembly: tagged tokens → dataset records.

A split's tokens arrive in corpus order. They are folded into runs of equal
``document_id`` and, inside a document, into runs of equal entity tag; each
tag run is one mention. Runs are positional: two separate runs with the same
key stay separate.

Offsets count Python ``str`` code points of the NFC-normalised text, so
``text[mention.start:mention.end]`` is always the mention's surface form.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Hashable, Iterable, Iterator, Mapping, Sequence
from typing import TypeVar

from .errors import UnresolvedTitleError
from .logging import get_logger, log_event
from .models import (
    Candidate,
    DatasetRecord,
    Mention,
    OutOfMapping,
    ResolvedIdentifier,
    TaggedToken,
)

__all__ = [
    "assemble_document",
    "assemble_split",
    "group_runs",
    "new_record_id",
]

LOGGER = get_logger(__name__, base_fields={"stage": "assemble"})

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def new_record_id() -> str:
    return str(uuid.uuid4())


def group_runs(items: Iterable[T], key: Callable[[T], K]) -> Iterator[tuple[K, list[T]]]:
    """Yield ``(key, run)`` for each maximal run of adjacent items sharing a key."""

    run: list[T] = []
    current: K | None = None
    for item in items:
        item_key = key(item)
        if run and item_key != current:
            yield current, run  # type: ignore[misc]
            run = []
        current = item_key
        run.append(item)
    if run:
        yield current, run  # type: ignore[misc]


def _mention_for(
    tag: object,
    start: int,
    end: int,
    table: Mapping[str, ResolvedIdentifier],
    document_id: int,
) -> Mention | None:
    if isinstance(tag, OutOfMapping):
        return Mention(start=start, end=end)
    if isinstance(tag, Candidate):
        resolved = table.get(tag.title)
        if resolved is None:
            raise UnresolvedTitleError(tag.title, document_id=document_id)
        return Mention(
            start=start,
            end=end,
            primary_id=resolved.primary_id,
            secondary_id=resolved.secondary_id,
        )
    return None


def assemble_document(
    document_id: int,
    tokens: Sequence[TaggedToken],
    table: Mapping[str, ResolvedIdentifier],
    *,
    id_factory: Callable[[], str] = new_record_id,
) -> DatasetRecord:
    """Rebuild one document's text and mention spans from its tokens.

    Raises:
        UnresolvedTitleError: If a candidate title is absent from ``table``.
    """

    text = ""
    mentions: list[Mention] = []
    for tag, run in group_runs(tokens, key=lambda token: token.tag):
        surface = " ".join(token.text for token in run)
        start = len(text) + (1 if text else 0)
        end = start + len(surface)

        mention = _mention_for(tag, start, end, table, document_id)
        if mention is not None:
            mentions.append(mention)

        text = f"{text} {surface}" if text else surface

    return DatasetRecord(
        id=id_factory(),
        document_id=document_id,
        text=text,
        mentions=tuple(mentions),
    )


def assemble_split(
    tokens: Iterable[TaggedToken],
    table: Mapping[str, ResolvedIdentifier],
    *,
    id_factory: Callable[[], str] = new_record_id,
    split: str | None = None,
) -> list[DatasetRecord]:
    """Assemble every document of a split, in corpus order.

    Documents without tokens never reach this function, so no record is
    emitted for them.
    """

    records = [
        assemble_document(document_id, run, table, id_factory=id_factory)
        for document_id, run in group_runs(tokens, key=lambda token: token.document_id)
    ]
    log_event(
        LOGGER.child(split=split),
        "info",
        "Assembled split",
        documents=len(records),
        mentions=sum(len(record.mentions) for record in records),
    )
    return records

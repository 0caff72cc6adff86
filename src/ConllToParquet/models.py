# === NAVMAP v1 ===
# {
#   "module": "ConllToParquet.models",
#   "purpose": "Typed data models passed between parsing, resolution, assembly, and output.",
#   "sections": [
#     {
#       "id": "split",
#       "name": "Split",
#       "anchor": "class-split",
#       "kind": "class"
#     },
#     {
#       "id": "entity-tags",
#       "name": "OutOfMapping / Candidate / Untagged",
#       "anchor": "class-outofmapping",
#       "kind": "class"
#     },
#     {
#       "id": "taggedtoken",
#       "name": "TaggedToken",
#       "anchor": "class-taggedtoken",
#       "kind": "class"
#     },
#     {
#       "id": "parsedcorpus",
#       "name": "ParsedCorpus",
#       "anchor": "class-parsedcorpus",
#       "kind": "class"
#     },
#     {
#       "id": "resolvedidentifier",
#       "name": "ResolvedIdentifier",
#       "anchor": "class-resolvedidentifier",
#       "kind": "class"
#     },
#     {
#       "id": "mention",
#       "name": "Mention",
#       "anchor": "class-mention",
#       "kind": "class"
#     },
#     {
#       "id": "datasetrecord",
#       "name": "DatasetRecord",
#       "anchor": "class-datasetrecord",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Typed data models used to coordinate corpus conversion.

Tokens flow out of the parser tagged with one of three entity tag variants,
are regrouped by the assembler into documents and mention spans, and leave as
``DatasetRecord`` rows shaped for the Parquet schema. All models are frozen:
once produced by one stage they are only read by the next.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

# Largest value the uint32 id columns can hold.
U32_MAX = 2**32 - 1

__all__ = [
    "Candidate",
    "DatasetRecord",
    "EntityTag",
    "Mention",
    "OUT_OF_MAPPING",
    "OutOfMapping",
    "ParsedCorpus",
    "ResolvedIdentifier",
    "Split",
    "TaggedToken",
    "U32_MAX",
    "UNTAGGED",
    "Untagged",
]


class Split(str, Enum):
    """Dataset partition a document is routed to."""

    TRAIN = "train"
    VALIDATION = "validation"
    TEST = "test"

    @property
    def filename(self) -> str:
        return f"{self.value}.parquet"


@dataclass(frozen=True, slots=True)
class OutOfMapping:
    """Token belongs to an entity that is intentionally left unresolved."""


@dataclass(frozen=True, slots=True)
class Candidate:
    """Token belongs to an entity whose title must be resolved to identifiers."""

    title: str


@dataclass(frozen=True, slots=True)
class Untagged:
    """Token is not part of any entity mention."""


EntityTag = Union[OutOfMapping, Candidate, Untagged]

OUT_OF_MAPPING = OutOfMapping()
UNTAGGED = Untagged()


@dataclass(frozen=True, slots=True)
class TaggedToken:
    """Single normalised token with its document and entity tag."""

    document_id: int
    text: str
    tag: EntityTag


@dataclass(slots=True)
class ParsedCorpus:
    """Tokens routed per split plus every candidate title seen while parsing."""

    train: list[TaggedToken] = field(default_factory=list)
    validation: list[TaggedToken] = field(default_factory=list)
    test: list[TaggedToken] = field(default_factory=list)
    titles: set[str] = field(default_factory=set)

    def tokens(self, split: Split) -> list[TaggedToken]:
        """Return the token sequence routed to ``split``."""

        return getattr(self, split.value)

    def counts(self) -> dict[str, int]:
        return {split.value: len(self.tokens(split)) for split in Split}


@dataclass(frozen=True, slots=True)
class ResolvedIdentifier:
    """Numeric identifiers a title resolves to (page id, optional QID)."""

    primary_id: int
    secondary_id: int | None = None


@dataclass(frozen=True, slots=True)
class Mention:
    """Character span of one entity mention inside a document's text."""

    start: int
    end: int
    primary_id: int | None = None
    secondary_id: int | None = None

    def to_row(self) -> dict[str, Any]:
        return {
            "start": self.start,
            "end": self.end,
            "primary_id": self.primary_id,
            "secondary_id": self.secondary_id,
        }


@dataclass(frozen=True, slots=True)
class DatasetRecord:
    """One reconstructed document with its mention spans."""

    id: str
    document_id: int
    text: str
    mentions: tuple[Mention, ...] = ()

    def to_row(self) -> dict[str, Any]:
        """Return a dict matching :func:`storage.parquet_schemas.dataset_schema`."""

        return {
            "id": self.id,
            "document_id": self.document_id,
            "text": self.text,
            "mentions": [mention.to_row() for mention in self.mentions],
        }

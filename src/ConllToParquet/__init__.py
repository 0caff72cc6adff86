"""
ConllToParquet: annotated CoNLL corpus → entity-linked Parquet splits.

The package parses the AIDA CoNLL-YAGO token stream, resolves the Wikipedia
titles it references against a title → (page id, Wikidata QID) mapping, and
writes one Parquet file per split where each row is a reconstructed document
with character-offset mention spans.

Modules:
- `parser`: line classifier and split/document router
- `mapping`: manual overrides plus Avro mapping join
- `assembler`: run-based regrouping into documents and mentions
- `storage`: Parquet schema, atomic writer, read-back validation
- `pipeline`: end-to-end orchestration
- `cli`: Typer command-line interface
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]

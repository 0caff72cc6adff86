# === NAVMAP v1 ===
# {
#   "module": "ConllToParquet.cli",
#   "purpose": "Typer CLI for converting and validating CoNLL Parquet datasets.",
#   "sections": [
#     {
#       "id": "app",
#       "name": "app",
#       "anchor": "variable-app",
#       "kind": "data"
#     },
#     {
#       "id": "convert-command",
#       "name": "convert",
#       "anchor": "function-convert",
#       "kind": "function"
#     },
#     {
#       "id": "validate-command",
#       "name": "validate",
#       "anchor": "function-validate",
#       "kind": "function"
#     },
#     {
#       "id": "main",
#       "name": "main",
#       "anchor": "function-main",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Typer CLI for converting AIDA CoNLL-YAGO into Parquet splits."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from pydantic import ValidationError

from .errors import ConversionError
from .logging import configure_logging, get_logger, log_event
from .pipeline import convert as run_conversion
from .settings import Settings
from .storage.readers import validate_dataset_file

LOGGER = get_logger(__name__, base_fields={"stage": "cli"})

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Convert an annotated CoNLL corpus into train/validation/test Parquet files.",
)


def _build_settings(**overrides: Any) -> Settings:
    try:
        return Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as exc:
        typer.secho(f"✗ Configuration error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def convert(
    input_conll: Annotated[
        Path,
        typer.Option("--input-conll", help="AIDA CoNLL-YAGO dataset in the TSV format."),
    ],
    input_wiki2qid: Annotated[
        Path,
        typer.Option(
            "--input-wiki2qid",
            help="Wikipedia title → Wikidata QID mapping in the Apache Avro format.",
        ),
    ],
    output_dir: Annotated[
        Path,
        typer.Option("--output-dir", help="Directory receiving the split Parquet files."),
    ],
    title_prefix_length: Annotated[
        Optional[int],
        typer.Option("--title-prefix-length", help="Characters stripped from title URLs."),
    ] = None,
    compression: Annotated[
        Optional[str],
        typer.Option("--compression", help="Parquet codec (zstd|snappy|gzip|brotli|lz4|none)."),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging level (DEBUG|INFO|WARNING|ERROR)."),
    ] = None,
    log_format: Annotated[
        Optional[str],
        typer.Option("--log-format", help="Logging format (console|json)."),
    ] = None,
) -> None:
    """Parse, resolve, assemble and commit the three dataset splits."""

    settings = _build_settings(
        title_prefix_length=title_prefix_length,
        compression=compression,
        log_level=log_level,
        log_format=log_format,
    )
    configure_logging(settings.log_level.value, settings.log_format.value)

    try:
        summary = run_conversion(input_conll, input_wiki2qid, output_dir, settings=settings)
    except ConversionError as exc:
        log_event(LOGGER, "error", "Conversion failed", error_code=type(exc).__name__, error=str(exc))
        typer.secho(f"✗ {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(json.dumps(summary.to_dict(), indent=2))


@app.command()
def validate(
    paths: Annotated[list[Path], typer.Argument(help="Dataset Parquet files to check.")],
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging level (DEBUG|INFO|WARNING|ERROR)."),
    ] = None,
) -> None:
    """Re-check schema, footer and mention offsets of committed files."""

    settings = _build_settings(log_level=log_level)
    configure_logging(settings.log_level.value, settings.log_format.value)

    results = [validate_dataset_file(path) for path in paths]
    for result in results:
        level = "info" if result.ok else "error"
        log_event(LOGGER, level, "Validated dataset file", **result.to_dict())
    typer.echo(json.dumps([result.to_dict() for result in results], indent=2))

    if not all(result.ok for result in results):
        raise typer.Exit(code=1)


def main() -> None:
    """Console-script entry point."""

    app()


if __name__ == "__main__":  # pragma: no cover - manual execution guard
    main()

"""
Pytest Configuration

Shared fixtures for the ConllToParquet suite: a small AIDA-style corpus, an
Avro title mapping written with fastavro, and logging isolation so handlers
installed by CLI tests never leak into later tests.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

import fastavro
import pytest

from ConllToParquet.logging import ROOT_LOGGER_NAME

WIKI = "http://en.wikipedia.org/wiki/"

MAPPING_SCHEMA = fastavro.parse_schema(
    {
        "type": "record",
        "name": "MappingRecord",
        "fields": [
            {"name": "title", "type": "string"},
            {"name": "pageid", "type": "long"},
            {"name": "qid", "type": ["null", "long"], "default": None},
        ],
    }
)

SAMPLE_CONLL = [
    "-DOCSTART- (1 EU)",
    "EU\tB\tEU\t--NME--",
    "rejects",
    f"German\tB\tGerman\tGermany\t{WIKI}Germany\t11867\t/m/0345h",
    "call",
    "to",
    "boycott",
    f"British\tB\tBritish\tUnited_Kingdom\t{WIKI}United_Kingdom\t31717\t/m/07ssc",
    "lamb",
    ".",
    "",
    "-DOCSTART- (947testa CRICKET)",
    "CRICKET",
    "-",
    f"LEICESTERSHIRE\tB\tLeicestershire\tLeicestershire_County_Cricket_Club\t{WIKI}Leicestershire_County_Cricket_Club\t1622318\t/m/03nkq5",
    "TAKE",
    "OVER",
    "",
    "-DOCSTART- (1163testb SOCCER)",
    "SOCCER",
    "-",
    f"JAPAN\tB\tJapan\tJapan_national_football_team\t{WIKI}Japan_national_football_team\t1250834\t/m/03_3d",
    "GET",
    "LUCKY",
    "WIN",
    ",",
    f"CHINA\tB\tChina\tChina_national_football_team\t{WIKI}China_national_football_team\t887850\t/m/0b6vcy",
    "IN",
    "SURPRISE",
    "DEFEAT",
    ".",
]

SAMPLE_MAPPING = [
    {"title": "Germany", "pageid": 11867, "qid": 183},
    {"title": "United_Kingdom", "pageid": 31717, "qid": 145},
    {"title": "Leicestershire_County_Cricket_Club", "pageid": 1622318, "qid": None},
    {"title": "Japan_national_football_team", "pageid": 1250834, "qid": 170566},
    {"title": "China_national_football_team", "pageid": 887850, "qid": 214011},
    {"title": "France", "pageid": 5843419, "qid": 142},
    {"title": "Germany", "pageid": 1, "qid": 1},
]


@pytest.fixture(autouse=True)
def _isolate_package_logging() -> Iterator[None]:
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(logger.handlers)
    propagate = logger.propagate
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
    logger.propagate = propagate
    logger.setLevel(level)


@pytest.fixture()
def write_conll(tmp_path: Path) -> Callable[..., Path]:
    def _write(lines: Iterable[str], name: str = "aida.tsv") -> Path:
        path = tmp_path / name
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def write_mapping(tmp_path: Path) -> Callable[..., Path]:
    def _write(
        records: Iterable[Mapping[str, Any]],
        name: str = "wiki2qid.avro",
        schema: Mapping[str, Any] | None = None,
    ) -> Path:
        path = tmp_path / name
        with path.open("wb") as handle:
            fastavro.writer(handle, schema or MAPPING_SCHEMA, list(records))
        return path

    return _write


@pytest.fixture()
def sample_conll(write_conll: Callable[..., Path]) -> Path:
    return write_conll(SAMPLE_CONLL)


@pytest.fixture()
def sample_mapping(write_mapping: Callable[..., Path]) -> Path:
    return write_mapping(SAMPLE_MAPPING)

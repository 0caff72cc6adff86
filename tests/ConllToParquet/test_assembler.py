from __future__ import annotations

import itertools

import pytest

from ConllToParquet.assembler import assemble_document, assemble_split, group_runs
from ConllToParquet.errors import UnresolvedTitleError
from ConllToParquet.models import (
    OUT_OF_MAPPING,
    UNTAGGED,
    Candidate,
    Mention,
    ResolvedIdentifier,
    TaggedToken,
)
from ConllToParquet.parser import parse_conll_lines

TABLE = {
    "Title": ResolvedIdentifier(10, 20),
    "New_York_City": ResolvedIdentifier(645042, 60),
    "Köln": ResolvedIdentifier(16478, None),
}


def _ids():
    counter = itertools.count()
    return lambda: f"rec-{next(counter)}"


def _assert_offsets_valid(record) -> None:
    previous_end = 0
    for mention in record.mentions:
        assert 0 <= mention.start < mention.end <= len(record.text)
        assert mention.start >= previous_end
        previous_end = mention.end


def test_group_runs_is_positional() -> None:
    runs = list(group_runs([1, 1, 2, 1], key=lambda x: x))
    assert runs == [(1, [1, 1]), (2, [2]), (1, [1])]
    assert list(group_runs([], key=lambda x: x)) == []


def test_distinct_tags_make_separate_mentions() -> None:
    tokens = [
        TaggedToken(0, "A", OUT_OF_MAPPING),
        TaggedToken(0, "B", Candidate("Title")),
    ]
    record = assemble_document(0, tokens, TABLE, id_factory=lambda: "r")
    assert record.text == "A B"
    assert record.mentions == (
        Mention(0, 1),
        Mention(2, 3, primary_id=10, secondary_id=20),
    )


def test_adjacent_tokens_with_same_candidate_form_one_mention() -> None:
    tokens = [
        TaggedToken(0, "in", UNTAGGED),
        TaggedToken(0, "New", Candidate("New_York_City")),
        TaggedToken(0, "York", Candidate("New_York_City")),
        TaggedToken(0, "today", UNTAGGED),
    ]
    record = assemble_document(0, tokens, TABLE)
    assert record.text == "in New York today"
    assert record.mentions == (Mention(3, 11, 645042, 60),)
    assert record.text[3:11] == "New York"


def test_same_title_split_by_untagged_token_gives_two_mentions() -> None:
    tokens = [
        TaggedToken(0, "Title", Candidate("Title")),
        TaggedToken(0, "and", UNTAGGED),
        TaggedToken(0, "Title", Candidate("Title")),
    ]
    record = assemble_document(0, tokens, TABLE)
    assert [(m.start, m.end) for m in record.mentions] == [(0, 5), (10, 15)]


def test_offsets_count_code_points() -> None:
    tokens = [
        TaggedToken(0, "🙂", UNTAGGED),
        TaggedToken(0, "Köln", Candidate("Köln")),
        TaggedToken(0, "北京", OUT_OF_MAPPING),
    ]
    record = assemble_document(0, tokens, TABLE)
    assert record.text == "🙂 Köln 北京"
    first, second = record.mentions
    assert record.text[first.start : first.end] == "Köln"
    assert record.text[second.start : second.end] == "北京"
    assert (first.primary_id, first.secondary_id) == (16478, None)
    assert (second.primary_id, second.secondary_id) == (None, None)


def test_untagged_only_document_has_no_mentions() -> None:
    record = assemble_document(4, [TaggedToken(4, "C", UNTAGGED)], TABLE)
    assert record.document_id == 4
    assert record.text == "C"
    assert record.mentions == ()


def test_unresolved_candidate_is_fatal() -> None:
    tokens = [TaggedToken(9, "Nowhere", Candidate("Nowhere"))]
    with pytest.raises(UnresolvedTitleError) as excinfo:
        assemble_document(9, tokens, TABLE)
    assert excinfo.value.title == "Nowhere"
    assert excinfo.value.document_id == 9


def test_assemble_split_keeps_document_order() -> None:
    tokens = [
        TaggedToken(5, "a", UNTAGGED),
        TaggedToken(5, "b", OUT_OF_MAPPING),
        TaggedToken(2, "c", UNTAGGED),
        TaggedToken(7, "d", Candidate("Title")),
    ]
    records = assemble_split(tokens, TABLE, id_factory=_ids())
    assert [(r.id, r.document_id, r.text) for r in records] == [
        ("rec-0", 5, "a b"),
        ("rec-1", 2, "c"),
        ("rec-2", 7, "d"),
    ]
    for record in records:
        _assert_offsets_valid(record)


def test_documents_without_tokens_are_skipped() -> None:
    corpus = parse_conll_lines(["-DOCSTART- (1 A)", "-DOCSTART- (2 B)", "x"])
    records = assemble_split(corpus.train, TABLE)
    assert [(r.document_id, r.text) for r in records] == [(2, "x")]


def test_assembly_is_deterministic_apart_from_ids() -> None:
    tokens = [
        TaggedToken(1, "New", Candidate("New_York_City")),
        TaggedToken(1, "York", Candidate("New_York_City")),
        TaggedToken(1, "EU", OUT_OF_MAPPING),
        TaggedToken(2, "x", UNTAGGED),
    ]
    first = assemble_split(tokens, TABLE)
    second = assemble_split(tokens, TABLE)
    assert [(r.document_id, r.text, r.mentions) for r in first] == [
        (r.document_id, r.text, r.mentions) for r in second
    ]
    assert {r.id for r in first}.isdisjoint({r.id for r in second})


def test_minimal_two_split_scenario() -> None:
    corpus = parse_conll_lines(
        [
            "A\t_\t_\t_",
            "B\t_\t_\t_\thttp://en.wikipedia.org/wiki/Title",
            "",
            "-DOCSTART- (2 testa)",
            "C\t_\t_\t_",
        ]
    )
    (train,) = assemble_split(corpus.train, TABLE)
    assert (train.document_id, train.text) == (0, "A B")
    assert train.mentions == (Mention(0, 1), Mention(2, 3, 10, 20))

    (validation,) = assemble_split(corpus.validation, TABLE)
    assert (validation.document_id, validation.text) == (2, "C")
    # Four fields mark an out-of-mapping entity, so "C" is an id-less mention.
    assert validation.mentions == (Mention(0, 1),)

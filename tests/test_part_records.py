#!/usr/bin/env python3
"""Tests for part validation and structural classification (tools/part_records.py)."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "tools"))

from part_records import (
    ContentPart,
    HeaderPart,
    MalformedInput,
    PartKind,
    classify,
    coerce_marker,
    group_key_of,
    ingest_part,
    is_continuation,
    snapshot,
)
from shamela_text import load_diacritics


@pytest.fixture(scope="module")
def diacritics():
    return load_diacritics()


def raw_part(part_id, hadith=None, caption_id=None, content="نص", **extra):
    rec = {"id": part_id, "content": content, "hadith": hadith}
    if caption_id is not None:
        rec["caption_id"] = caption_id
    rec.update(extra)
    return rec


# ─── classify ──────────────────────────────────────────────────────────────

class TestClassify:
    @pytest.mark.parametrize("hadith", [1, 5, 7563, "12"])
    def test_positive_marker_is_content(self, hadith):
        assert classify(raw_part(1, hadith=hadith)) is PartKind.CONTENT

    @pytest.mark.parametrize("hadith", [None, 0, -1, -40, "", "-3"])
    def test_null_or_non_positive_is_header(self, hadith):
        assert classify(raw_part(1, hadith=hadith)) is PartKind.HEADER

    def test_missing_marker_is_header(self):
        assert classify({"id": 1, "content": "x"}) is PartKind.HEADER

    def test_non_numeric_marker_rejected(self):
        with pytest.raises(MalformedInput):
            coerce_marker("abc")

    def test_boolean_marker_rejected(self):
        with pytest.raises(MalformedInput):
            coerce_marker(True)

    @pytest.mark.parametrize("value, expected", [(5.0, 5), (0.0, 0), (-1.0, -1)])
    def test_integral_float_marker(self, value, expected):
        assert coerce_marker(value) == expected

    def test_fractional_float_marker_rejected(self):
        with pytest.raises(MalformedInput):
            coerce_marker(2.5)


class TestGroupKey:
    def test_int_and_str_compare_equal(self):
        assert group_key_of({"caption_id": 17}) == group_key_of({"caption_id": "17"})

    def test_absent_or_blank(self):
        assert group_key_of({}) is None
        assert group_key_of({"caption_id": None}) is None
        assert group_key_of({"caption_id": "  "}) is None

    def test_continuation_same_key(self, diacritics):
        first = ingest_part(raw_part(1, caption_id="G"), 1, diacritics)
        second = ingest_part(raw_part(2, caption_id="G"), 2, diacritics)
        assert is_continuation(second, first)

    def test_no_continuation_without_key(self, diacritics):
        first = ingest_part(raw_part(1), 1, diacritics)
        second = ingest_part(raw_part(2), 2, diacritics)
        assert not is_continuation(second, first)

    def test_no_continuation_different_key(self, diacritics):
        first = ingest_part(raw_part(1, caption_id="G"), 1, diacritics)
        second = ingest_part(raw_part(2, caption_id="H"), 2, diacritics)
        assert not is_continuation(second, first)

    def test_no_previous_header(self, diacritics):
        part = ingest_part(raw_part(1, caption_id="G"), 1, diacritics)
        assert not is_continuation(part, None)


# ─── ingest_part ───────────────────────────────────────────────────────────

class TestIngestPart:
    def test_header_variant(self, diacritics):
        part = ingest_part(raw_part(1, caption_id=9, content="<b>كِتَابُ الإِيمَانِ</b>"), 1, diacritics)
        assert isinstance(part, HeaderPart)
        assert part.group_key == "9"
        assert part.name == "كِتَابُ الإِيمَانِ"
        assert part.fields["noTashkeelContent"] == " كتاب الإيمان "

    def test_content_variant(self, diacritics):
        part = ingest_part(raw_part(3, hadith=1, content="1 - حَدَّثَنَا"), 3, diacritics)
        assert isinstance(part, ContentPart)
        rec = part.to_record()
        assert rec["content"] == " حَدَّثَنَا"
        assert rec["noTashkeelContent"] == " حدثنا"
        assert "book" not in rec and "chapter" not in rec

    def test_original_fields_kept(self, diacritics):
        part = ingest_part(raw_part(2, hadith=4, page=33, part=1), 2, diacritics)
        rec = part.to_record()
        assert rec["page"] == 33
        assert rec["part"] == 1
        assert rec["hadith"] == 4

    def test_string_id_accepted(self, diacritics):
        part = ingest_part(raw_part("4", hadith=1), 4, diacritics)
        assert part.part_id == 4
        assert part.to_record()["id"] == 4

    def test_raw_record_not_mutated(self, diacritics):
        raw = raw_part(1, content="<b>x</b>")
        ingest_part(raw, 1, diacritics)
        assert raw["content"] == "<b>x</b>"
        assert "noTashkeelContent" not in raw

    def test_id_position_mismatch(self, diacritics):
        with pytest.raises(MalformedInput, match="position"):
            ingest_part(raw_part(5), 4, diacritics)

    def test_missing_content(self, diacritics):
        with pytest.raises(MalformedInput, match="content"):
            ingest_part({"id": 1, "hadith": None}, 1, diacritics)

    def test_not_an_object(self, diacritics):
        with pytest.raises(MalformedInput):
            ingest_part(["id", 1], 1, diacritics)

    def test_integral_float_hadith_is_content(self, diacritics):
        part = ingest_part(raw_part(3, hadith=5.0), 3, diacritics)
        assert isinstance(part, ContentPart)

    def test_bad_hadith_type(self, diacritics):
        with pytest.raises(MalformedInput):
            ingest_part(raw_part(1, hadith=[1]), 1, diacritics)

    def test_content_record_carries_bindings(self, diacritics):
        part = ingest_part(raw_part(3, hadith=2), 3, diacritics)
        part.book = {"id": 1, "sourceName": "كتاب"}
        part.chapter = {"id": 2, "sourceName": "باب"}
        rec = part.to_record()
        assert rec["book"]["id"] == 1
        assert rec["chapter"]["sourceName"] == "باب"


class TestSnapshot:
    def test_copy_with_source_name(self):
        record = {"id": 1, "content": "x", "tags": ["a"]}
        snap = snapshot(record, "كتاب الإيمان")
        assert snap["sourceName"] == "كتاب الإيمان"
        assert "sourceName" not in record
        snap["tags"].append("b")
        assert record["tags"] == ["a"]

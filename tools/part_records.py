#!/usr/bin/env python3
"""Part records: validation, structural classification and the header/content variants.

A scraped part is either a structural header (a book or chapter title) or a
content unit (a hadith). The `hadith` field decides which:

  - hadith > 0               → CONTENT
  - hadith null/absent/<= 0  → HEADER (negative values occur in Sahih al-Bukhari
                               and mean "header-like", same as null)

Headers that span several physical parts share one `caption_id`; the first
part of such a group is the authoritative one.
"""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import jsonschema

from shamela_text import normalize_text

SCHEMAS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "schemas")
PART_SCHEMA_PATH = os.path.join(SCHEMAS_DIR, "shamela_part_schema.json")

_PART_SCHEMA: Optional[dict] = None


# ─── Errors ──────────────────────────────────────────────────────────────────

class CategorizationError(Exception):
    """Base class for every error that aborts (or degrades) a categorization run."""


class NotFound(CategorizationError):
    """No enclosing book or chapter exists for a part id."""


class MalformedInput(CategorizationError):
    """A part, navigation tree or config does not have the expected shape."""


class AmbiguousClassification(CategorizationError):
    """A header cannot be told apart as book or chapter (no lookahead available)."""


# ─── Classification ──────────────────────────────────────────────────────────

class PartKind(Enum):
    CONTENT = "content"
    HEADER = "header"


def coerce_marker(value) -> Optional[int]:
    """Turn a raw `hadith` value into an int, or None when absent."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedInput(f"hadith must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    # JSON Schema "integer" admits 5.0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            raise MalformedInput(f"hadith must be an integer, got {value!r}") from None
    raise MalformedInput(f"hadith must be an integer, got {value!r}")


def group_key_of(record: dict) -> Optional[str]:
    """Return the `caption_id` as a comparable string, or None if the part has none."""
    key = record.get("caption_id")
    if key is None:
        return None
    key = str(key).strip()
    return key or None


def classify(record: dict) -> PartKind:
    """CONTENT iff the hadith marker is present and strictly positive."""
    marker = coerce_marker(record.get("hadith"))
    if marker is not None and marker > 0:
        return PartKind.CONTENT
    return PartKind.HEADER


def is_continuation(part: "HeaderPart", previous_header: Optional["HeaderPart"]) -> bool:
    """True when `part` belongs to the same multi-part header as `previous_header`.

    Parts without a caption_id never form a group.
    """
    if previous_header is None or part.group_key is None:
        return False
    return part.group_key == previous_header.group_key


# ─── Variants ────────────────────────────────────────────────────────────────

@dataclass
class HeaderPart:
    """A book or chapter title part."""
    part_id: int
    fields: dict                  # Original record, content sanitized, noTashkeelContent added
    group_key: Optional[str] = None

    kind = PartKind.HEADER

    @property
    def name(self) -> str:
        """Title text with whitespace runs folded, for labels and progress output."""
        return " ".join(self.fields.get("content", "").split())

    def to_record(self) -> dict:
        return copy.deepcopy(self.fields)


@dataclass
class ContentPart:
    """A hadith part, bound to its book and chapter once they are resolved."""
    part_id: int
    fields: dict
    book: Optional[dict] = None
    chapter: Optional[dict] = None

    kind = PartKind.CONTENT

    def to_record(self) -> dict:
        rec = copy.deepcopy(self.fields)
        if self.book is not None:
            rec["book"] = copy.deepcopy(self.book)
        if self.chapter is not None:
            rec["chapter"] = copy.deepcopy(self.chapter)
        return rec


Part = Union[HeaderPart, ContentPart]


# ─── Ingestion ───────────────────────────────────────────────────────────────

def load_part_schema() -> dict:
    global _PART_SCHEMA
    if _PART_SCHEMA is None:
        with open(PART_SCHEMA_PATH, encoding="utf-8") as f:
            _PART_SCHEMA = json.load(f)
    return _PART_SCHEMA


def validate_part(raw, position: int) -> None:
    """Check one raw record against the part schema and its stream position."""
    if not isinstance(raw, dict):
        raise MalformedInput(f"part {position}: expected a JSON object, got {type(raw).__name__}")
    try:
        jsonschema.validate(raw, load_part_schema())
    except jsonschema.ValidationError as e:
        raise MalformedInput(f"part {position}: schema: {e.message}") from e
    part_id = int(raw["id"])
    if part_id != position:
        raise MalformedInput(f"part {position}: id {part_id} does not match its position in the stream")


def ingest_part(raw: dict, position: int, diacritics: frozenset[str]) -> Part:
    """Validate, normalize and classify one raw part record."""
    validate_part(raw, position)

    fields = copy.deepcopy(raw)
    fields["id"] = position
    normalized = normalize_text(raw["content"], diacritics)
    fields["content"] = normalized.clean
    fields["noTashkeelContent"] = normalized.no_tashkeel

    if classify(raw) is PartKind.CONTENT:
        return ContentPart(part_id=position, fields=fields)
    return HeaderPart(part_id=position, fields=fields, group_key=group_key_of(raw))


def snapshot(record: dict, source_name: Optional[str]) -> dict:
    """Copy of an enriched header record with its label attached as `sourceName`."""
    snap = copy.deepcopy(record)
    snap["sourceName"] = source_name
    return snap

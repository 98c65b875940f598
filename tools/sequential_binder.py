#!/usr/bin/env python3
"""Heuristic book/chapter binding for parts without a navigation tree.

Categorization theory (Shamela part streams):
  - Parts are in order and none is missing.
  - Every book or chapter header has a null (or non-positive) `hadith`.
  - A book header is directly followed by the header of its first chapter.
  - A chapter header is directly followed by content.
  - A header spread over several parts repeats one `caption_id`; the first
    part of the group is the header.

The binder walks the stream forward once, looking exactly one part ahead
after every header. All running state lives in a BinderContext that the
driver threads through each step.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable, Optional

from part_records import (
    AmbiguousClassification,
    MalformedInput,
    Part,
    PartKind,
    is_continuation,
    snapshot,
)

BOOK = "book"
CHAPTER = "chapter"
HEADER_ROLES = (BOOK, CHAPTER)


@dataclass
class BinderContext:
    """Running state of one sequential pass."""
    current_book: Optional[dict] = None
    current_chapter: Optional[dict] = None
    pending_first: Optional[Part] = None     # First part of an unresolved multi-part header
    lookahead: Optional[Part] = None         # Single-slot cache of the part after a header
    books: int = 0
    chapters: int = 0
    warnings: list[str] = field(default_factory=list)
    verbose: bool = False

    def take(self, part_no: int, fetch: Callable[[int], Part]) -> Part:
        """Return part `part_no`, consuming the lookahead slot if it holds it."""
        cached = self.lookahead
        self.lookahead = None
        if cached is not None and cached.part_id == part_no:
            return cached
        return fetch(part_no)


def peek_next(ctx: BinderContext, part_no: int, total: int, fetch: Callable[[int], Part]) -> Part:
    """Read part `part_no + 1` into the lookahead slot."""
    if part_no >= total:
        raise AmbiguousClassification(
            f"header part {part_no} is the last part; cannot tell book from chapter"
        )
    nxt = fetch(part_no + 1)
    ctx.lookahead = nxt
    return nxt


def _resolve(ctx: BinderContext, header: Part, role: str) -> None:
    snap = snapshot(header.to_record(), header.name)
    if role == BOOK:
        ctx.current_book = snap
        ctx.current_chapter = None
        ctx.books += 1
    else:
        ctx.current_chapter = snap
        ctx.chapters += 1
    if ctx.verbose:
        print(f"[Binder] part {header.part_id} → {role}: {header.name[:60]}")


def bind_part(
    ctx: BinderContext,
    part_no: int,
    total: int,
    fetch: Callable[[int], Part],
    end_of_stream_default: str = CHAPTER,
) -> Part:
    """Process part `part_no` of `total` and return it ready to be written.

    Content parts leave with the current book and chapter attached. Header
    parts leave as they are; when the lookahead settles what they are, the
    group's first part becomes the current book or chapter.
    """
    if end_of_stream_default not in HEADER_ROLES:
        raise MalformedInput(f"end_of_stream_default must be one of {HEADER_ROLES}, got {end_of_stream_default!r}")

    part = ctx.take(part_no, fetch)

    if part.kind is PartKind.CONTENT:
        part.book = ctx.current_book
        part.chapter = ctx.current_chapter
        ctx.pending_first = None
        return part

    header = ctx.pending_first or part
    try:
        nxt = peek_next(ctx, part_no, total, fetch)
    except AmbiguousClassification as e:
        msg = f"{e}; treated as {end_of_stream_default}"
        ctx.warnings.append(msg)
        print(f"WARNING: {msg}", file=sys.stderr)
        role = end_of_stream_default
    else:
        if nxt.kind is PartKind.HEADER and is_continuation(nxt, part):
            if ctx.pending_first is None:
                ctx.pending_first = part
            return part
        role = BOOK if nxt.kind is PartKind.HEADER else CHAPTER

    _resolve(ctx, header, role)
    ctx.pending_first = None
    return part

#!/usr/bin/env python3
"""Interval index over a book's navigation tree (book → chapters, keyed by start part).

The navigation bar of a Shamela book lists every book and, lazily, its
chapters, each linking to the part id where it starts. Sorting both levels in
descending page order turns "which book/chapter contains part P" into a
linear scan that stops at the first entry whose page is <= P.

Usage:
  python tools/navigation_index.py --navigation nav.json --part 15
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass, field, replace
from typing import Optional

import jsonschema
import yaml

from part_records import SCHEMAS_DIR, MalformedInput, NotFound

NAVIGATION_SCHEMA_PATH = os.path.join(SCHEMAS_DIR, "navigation_tree_schema.json")


# ─── Data classes ────────────────────────────────────────────────────────────

@dataclass
class NavigationNode:
    """A book or chapter entry of the navigation tree."""
    name: str
    page: int                     # Part id the entry starts at
    chapters: list[NavigationNode] = field(default_factory=list)


@dataclass(frozen=True)
class Location:
    book: NavigationNode
    chapter: NavigationNode


# ─── Index ───────────────────────────────────────────────────────────────────

def _page_desc(node: NavigationNode) -> int:
    return -node.page


class NavigationIndex:
    """Read-only point→interval lookup built once per run.

    The index holds its own sorted copies of the book nodes; the caller's
    tree is left in its original order.
    """

    def __init__(self, books: list[NavigationNode]):
        self.books = [
            replace(book, chapters=sorted(book.chapters, key=_page_desc))
            for book in sorted(books, key=_page_desc)
        ]

    def __len__(self) -> int:
        return len(self.books)

    def locate(self, part_no: int) -> Location:
        """Return the book and chapter enclosing `part_no`.

        The first book (in descending order) starting at or before the part is
        the enclosing one; the same rule then picks the chapter inside it.
        """
        part_no = int(part_no)
        book = next((b for b in self.books if b.page <= part_no), None)
        if book is None:
            raise NotFound(f"no book starts at or before part {part_no}")
        chapter = next((c for c in book.chapters if c.page <= part_no), None)
        if chapter is None:
            raise NotFound(
                f"book '{book.name}' (page {book.page}) has no chapter starting at or before part {part_no}"
            )
        return Location(book=book, chapter=chapter)


# ─── Loading ─────────────────────────────────────────────────────────────────

def _load_schema() -> dict:
    with open(NAVIGATION_SCHEMA_PATH, encoding="utf-8") as f:
        return json.load(f)


def navigation_from_data(data, skip_chapterless_books: bool = True,
                         warnings: Optional[list[str]] = None) -> list[NavigationNode]:
    """Build navigation nodes from a parsed tree (list of books or {"books": [...]})."""
    if isinstance(data, list):
        data = {"books": data}
    if not isinstance(data, dict):
        raise MalformedInput(f"navigation tree must be a list or an object, got {type(data).__name__}")
    try:
        jsonschema.validate(data, _load_schema())
    except jsonschema.ValidationError as e:
        raise MalformedInput(f"navigation tree: schema: {e.message}") from e

    books: list[NavigationNode] = []
    for entry in data["books"]:
        chapters = [
            NavigationNode(name=c["name"], page=int(c["page"]))
            for c in entry.get("chapters") or []
        ]
        if not chapters and skip_chapterless_books:
            # Book introductions carry no chapter list
            msg = f"book '{entry['name']}' (page {entry['page']}) has no chapters; skipped"
            if warnings is not None:
                warnings.append(msg)
            print(f"WARNING: {msg}", file=sys.stderr)
            continue
        books.append(NavigationNode(name=entry["name"], page=int(entry["page"]), chapters=chapters))
    return books


def load_navigation(path: str, skip_chapterless_books: bool = True,
                    warnings: Optional[list[str]] = None) -> NavigationIndex:
    """Load a navigation tree from a JSON or YAML file and index it."""
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise MalformedInput(f"navigation tree {path}: {e}") from e
    books = navigation_from_data(data, skip_chapterless_books=skip_chapterless_books, warnings=warnings)
    return NavigationIndex(books)


# ─── CLI ─────────────────────────────────────────────────────────────────────

def main():
    ap = argparse.ArgumentParser(description="Locate the book and chapter enclosing a part id.")
    ap.add_argument("--navigation", required=True, help="Navigation tree (JSON or YAML)")
    ap.add_argument("--part", required=True, type=int, help="Part id to locate")
    args = ap.parse_args()

    try:
        index = load_navigation(args.navigation)
        loc = index.locate(args.part)
    except (MalformedInput, NotFound) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"[Navigation] {len(index)} books indexed")
    print(f"Part {args.part}: book '{loc.book.name}' (page {loc.book.page}), "
          f"chapter '{loc.chapter.name}' (page {loc.chapter.page})")
    return 0


if __name__ == "__main__":
    sys.exit(main())

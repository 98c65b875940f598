#!/usr/bin/env python3
"""Categorize scraped Shamela parts into books and chapters.

Reads a directory of scraped parts (one JSON file per part, named 1..N),
cleans each part's content, adds a diacritic-free `noTashkeelContent`, and
attaches to every hadith part a snapshot of its enclosing book and chapter.

Two strategies:
  - navigation: a navigation tree (book → chapters, keyed by start part) is
    given; each hadith part is located by interval lookup and the header
    snapshots are read back from the already-written output.
  - sequential: no tree; books and chapters are inferred from the header
    parts themselves with one part of lookahead (see sequential_binder.py).

Parts are processed strictly in id order; each enriched record is written to
the same file name under the output directory.

Usage:
  python tools/categorize_parts.py source/1681 \\
    [--navigation source/1681_navigation.json] \\
    [--config tools/categorize_config.yaml] \\
    [--out-dir processed/1681] \\
    [--report processed/1681_categorization_report.json] \\
    [--verbose]
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

import yaml

from navigation_index import NavigationIndex, load_navigation
from part_records import CategorizationError, MalformedInput, PartKind, ingest_part, snapshot
from part_store import PartDirectory
from sequential_binder import CHAPTER, HEADER_ROLES, BinderContext, bind_part
from shamela_text import DEFAULT_DIACRITICS_PATH, load_diacritics

TOOL_VERSION = "v0.1"
TOOL_NAME = "tools/categorize_parts.py"

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "categorize_config.yaml")

DEFAULT_CONFIG = {
    "diacritics_file": DEFAULT_DIACRITICS_PATH,
    "output_root": "processed",
    "end_of_stream_default": CHAPTER,
    "skip_chapterless_books": True,
}


# ─── Data classes ────────────────────────────────────────────────────────────

@dataclass
class CategorizationReport:
    """Statistics from one categorization pass."""
    strategy: str                 # navigation | sequential
    source_dir: str
    output_dir: str
    total_parts: int = 0
    header_parts: int = 0
    content_parts: int = 0
    books: int = 0
    chapters: int = 0
    double_writes: int = 0        # Hadith parts that also open their book/chapter
    warnings: list[str] = field(default_factory=list)


# ─── Config ──────────────────────────────────────────────────────────────────

def load_config(path: Optional[str] = None) -> dict:
    """Load the YAML run config and merge it over DEFAULT_CONFIG.

    A relative `diacritics_file` is resolved against the config file's directory.
    """
    config = dict(DEFAULT_CONFIG)
    if path is None:
        return config

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise MalformedInput(f"config {path}: {e}") from e
    if not isinstance(data, dict):
        raise MalformedInput(f"config {path}: expected a mapping at top level")

    unknown = sorted(set(data) - set(DEFAULT_CONFIG))
    if unknown:
        raise MalformedInput(f"config {path}: unknown keys {unknown}")
    config.update(data)

    if config["end_of_stream_default"] not in HEADER_ROLES:
        raise MalformedInput(
            f"config {path}: end_of_stream_default must be one of {HEADER_ROLES}, "
            f"got {config['end_of_stream_default']!r}"
        )
    if not isinstance(config["skip_chapterless_books"], bool):
        raise MalformedInput(f"config {path}: skip_chapterless_books must be true or false")
    for key in ("diacritics_file", "output_root"):
        if not isinstance(config[key], str) or not config[key]:
            raise MalformedInput(f"config {path}: {key} must be a non-empty string")

    base = os.path.dirname(os.path.abspath(path))
    if "diacritics_file" in data and not os.path.isabs(config["diacritics_file"]):
        config["diacritics_file"] = os.path.join(base, config["diacritics_file"])
    return config


def default_output_dir(source_dir: str, output_root: str) -> str:
    """processed/<source dir name>, as the scraper's source/<bookId> layout implies."""
    return os.path.join(output_root, os.path.basename(os.path.normpath(source_dir)))


# ─── Strategies ──────────────────────────────────────────────────────────────

def categorize_with_navigation(
    source: PartDirectory,
    target: PartDirectory,
    index: NavigationIndex,
    diacritics: frozenset[str],
    verbose: bool = False,
) -> CategorizationReport:
    """Bind every hadith part through interval lookup in the navigation tree.

    Header parts are written as they come, so by the time a hadith part is
    reached its book and chapter records already sit in the output store.
    """
    report = CategorizationReport(strategy="navigation", source_dir=source.path, output_dir=target.path)
    report.books = len(index)
    report.chapters = sum(len(b.chapters) for b in index.books)
    report.total_parts = source.count()

    for part_no in range(1, report.total_parts + 1):
        part = ingest_part(source.read(part_no), part_no, diacritics)

        if part.kind is PartKind.HEADER:
            target.write(part_no, part.to_record())
            report.header_parts += 1
            continue

        report.content_parts += 1
        loc = index.locate(part_no)
        written_early = False

        # A hadith part can open its own book or chapter (seen in Sahih Muslim):
        # the header view has to be in the store before it is read back.
        if loc.book.page == part_no:
            target.write(part_no, part.to_record())
            written_early = True
        part.book = snapshot(target.read(loc.book.page), loc.book.name)

        if loc.chapter.page == part_no:
            target.write(part_no, part.to_record())
            written_early = True
        part.chapter = snapshot(target.read(loc.chapter.page), loc.chapter.name)

        target.write(part_no, part.to_record())
        if written_early:
            report.double_writes += 1
        if verbose:
            print(f"[Categorize] part {part_no} → book {loc.book.page}, chapter {loc.chapter.page}")

    return report


def categorize_sequential(
    source: PartDirectory,
    target: PartDirectory,
    diacritics: frozenset[str],
    end_of_stream_default: str = CHAPTER,
    verbose: bool = False,
) -> CategorizationReport:
    """Infer books and chapters from the header parts themselves."""
    report = CategorizationReport(strategy="sequential", source_dir=source.path, output_dir=target.path)
    report.total_parts = source.count()
    ctx = BinderContext(verbose=verbose)

    def fetch(part_no: int):
        return ingest_part(source.read(part_no), part_no, diacritics)

    for part_no in range(1, report.total_parts + 1):
        part = bind_part(ctx, part_no, report.total_parts, fetch, end_of_stream_default)
        target.write(part_no, part.to_record())
        if part.kind is PartKind.HEADER:
            report.header_parts += 1
        else:
            report.content_parts += 1

    report.books = ctx.books
    report.chapters = ctx.chapters
    report.warnings.extend(ctx.warnings)
    return report


def run_categorization(
    source: PartDirectory,
    target: PartDirectory,
    diacritics: frozenset[str],
    index: Optional[NavigationIndex] = None,
    end_of_stream_default: str = CHAPTER,
    verbose: bool = False,
) -> CategorizationReport:
    """Run one pass with the navigation strategy if an index is given, else sequentially."""
    if index is not None:
        return categorize_with_navigation(source, target, index, diacritics, verbose=verbose)
    return categorize_sequential(source, target, diacritics,
                                 end_of_stream_default=end_of_stream_default, verbose=verbose)


def write_report(report: CategorizationReport, path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)
    data = {
        "tool": TOOL_NAME,
        "tool_version": TOOL_VERSION,
        "generated_utc": datetime.now(timezone.utc).isoformat(),
        **asdict(report),
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


# ─── CLI ─────────────────────────────────────────────────────────────────────

def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        description="Categorize scraped Shamela parts into books and chapters.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ap.add_argument("source_dir", help="Directory of scraped parts (files named 1..N)")
    ap.add_argument("--navigation", default=None,
                    help="Navigation tree (JSON or YAML). Without it, books and chapters are inferred.")
    ap.add_argument("--config", default=None,
                    help=f"Run config YAML (default: {DEFAULT_CONFIG_PATH} if present)")
    ap.add_argument("--diacritics", default=None, help="Tashkeel file (overrides config)")
    ap.add_argument("--out-dir", default=None,
                    help="Output directory (default: <output_root>/<source dir name>)")
    ap.add_argument("--end-of-stream", choices=HEADER_ROLES, default=None,
                    help="Role of a header that is the last part (sequential strategy only)")
    ap.add_argument("--report", default=None,
                    help="Report JSON path (default: <out-dir>_categorization_report.json)")
    ap.add_argument("--verbose", "-v", action="store_true", help="Print every resolution")
    args = ap.parse_args(argv)

    if not os.path.isdir(args.source_dir):
        print(f"ERROR: source directory not found: {args.source_dir}", file=sys.stderr)
        return 1

    config_path = args.config
    if config_path is None and os.path.exists(DEFAULT_CONFIG_PATH):
        config_path = DEFAULT_CONFIG_PATH

    try:
        config = load_config(config_path)
        diacritics_path = args.diacritics or config["diacritics_file"]
        diacritics = load_diacritics(diacritics_path)
        if args.verbose:
            print(f"[Categorize] Loaded {len(diacritics)} diacritics from {diacritics_path}")

        warnings: list[str] = []
        index = None
        if args.navigation:
            index = load_navigation(args.navigation,
                                    skip_chapterless_books=config["skip_chapterless_books"],
                                    warnings=warnings)
            print(f"[Navigation] Indexed {len(index)} books from {args.navigation}")

        out_dir = args.out_dir or default_output_dir(args.source_dir, config["output_root"])
        source = PartDirectory(args.source_dir)
        target = PartDirectory(out_dir, create=True)
        print(f"[Categorize] Source: {source.path} ({source.count()} parts)")
        print(f"[Categorize] Strategy: {'navigation' if index is not None else 'sequential'}")

        report = run_categorization(
            source, target, diacritics, index=index,
            end_of_stream_default=args.end_of_stream or config["end_of_stream_default"],
            verbose=args.verbose,
        )
    except CategorizationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    report.warnings[:0] = warnings

    report_path = args.report or f"{os.path.normpath(out_dir)}_categorization_report.json"
    write_report(report, report_path)

    print(f"\nCategorized {report.total_parts} parts")
    print(f"  Header parts: {report.header_parts}")
    print(f"  Hadith parts: {report.content_parts}")
    print(f"  Books: {report.books}  Chapters: {report.chapters}")
    if report.double_writes:
        print(f"  Hadith parts opening their own book/chapter: {report.double_writes}")
    if report.warnings:
        print(f"  ⚠ Warnings: {len(report.warnings)}")

    print(f"\nWrote: {target.path}")
    print(f"Wrote: {report_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

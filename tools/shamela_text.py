#!/usr/bin/env python3
"""Clean scraped Shamela part text and derive its diacritic-free search form.

Every scraped part carries HTML markup, a handful of literal entity tokens and
"N - " list numbering inside its `content`. This module removes that noise and
produces the `noTashkeelContent` field used for fuzzy search.

Design principles:
  - Each removed token is replaced by ONE space, so neighbouring words stay apart
  - No case folding and no whitespace collapsing
  - The diacritic set is a static resource (tashkeel.txt) loaded once per run

Usage:
  python tools/shamela_text.py --text "<b>3 - text &quot;here</b>"
  python tools/shamela_text.py --text "..." --diacritics tools/tashkeel.txt
"""

from __future__ import annotations

import argparse
import json
import os
import re
from dataclasses import dataclass


# ─── Patterns ────────────────────────────────────────────────────────────────

# Markup tag (non-greedy, may span lines), the literal &quot; token Shamela
# leaves behind, and list numbering such as "12 - ".
NOISE_RE = re.compile(r"<(?:.|\n)*?>|&quot;|\d+ - ", re.MULTILINE)

DEFAULT_DIACRITICS_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "tashkeel.txt")


# ─── Data classes ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class NormalizedText:
    """Result of normalizing one part's content."""
    clean: str          # Markup, entity and numbering noise replaced by spaces
    no_tashkeel: str    # `clean` with every diacritic removed


# ─── Normalization functions ─────────────────────────────────────────────────

def load_diacritics(path: str = DEFAULT_DIACRITICS_PATH) -> frozenset[str]:
    """Load the diacritic character set from a tashkeel file.

    The file lists the marks across one or more lines; line breaks are
    separators and never members of the set.
    """
    with open(path, encoding="utf-8") as f:
        raw = f.read()
    return frozenset("".join(raw.splitlines()))


def sanitize_content(raw: str) -> str:
    """Replace markup tags, quote entities and list numbering with a space.

    Removing a tag can join a digit to a following "- " (as in
    "<span>3</span>- ..."), so substitution repeats until nothing matches.
    Every match is longer than its replacement, so the loop terminates.
    """
    text = NOISE_RE.sub(" ", raw)
    while NOISE_RE.search(text):
        text = NOISE_RE.sub(" ", text)
    return text


def strip_diacritics(text: str, diacritics: frozenset[str]) -> str:
    """Drop every character that belongs to the diacritic set."""
    if not diacritics:
        return text
    return "".join(c for c in text if c not in diacritics)


def normalize_text(raw: str, diacritics: frozenset[str]) -> NormalizedText:
    """Sanitize raw part content, then strip its diacritics."""
    clean = sanitize_content(raw)
    return NormalizedText(clean=clean, no_tashkeel=strip_diacritics(clean, diacritics))


# ─── CLI ─────────────────────────────────────────────────────────────────────

def main():
    ap = argparse.ArgumentParser(description="Show how a Shamela part text is normalized.")
    ap.add_argument("--text", required=True, help="Raw part content")
    ap.add_argument("--diacritics", default=DEFAULT_DIACRITICS_PATH,
                    help="Path to the tashkeel file (default: bundled tashkeel.txt)")
    args = ap.parse_args()

    result = normalize_text(args.text, load_diacritics(args.diacritics))
    print(json.dumps({"content": result.clean, "noTashkeelContent": result.no_tashkeel},
                     ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()

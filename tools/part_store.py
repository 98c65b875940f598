#!/usr/bin/env python3
"""Directory-backed part store: one JSON file per part, named by its position.

The scraper writes `source/<bookId>/<n>` for n = 1..N; categorization writes
the enriched record to the same name under the output directory.
"""

from __future__ import annotations

import json
import os
import tempfile

from part_records import MalformedInput, NotFound


class PartDirectory:
    """Addressable, order-preserving store of part records."""

    def __init__(self, path: str, create: bool = False):
        self.path = os.path.abspath(path)
        if create:
            os.makedirs(self.path, exist_ok=True)

    def __repr__(self) -> str:
        return f"PartDirectory({self.path!r})"

    def part_path(self, part_no: int) -> str:
        return os.path.join(self.path, str(part_no))

    def count(self) -> int:
        """Number of part files (N of the 1..N stream)."""
        return sum(
            1 for name in os.listdir(self.path)
            if os.path.isfile(os.path.join(self.path, name)) and not name.startswith(".")
        )

    def read(self, part_no: int) -> dict:
        path = self.part_path(part_no)
        if not os.path.isfile(path):
            raise NotFound(f"part {part_no} not found in {self.path}")
        with open(path, encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise MalformedInput(f"part {part_no} ({path}) is not valid JSON: {e}") from e

    def write(self, part_no: int, record: dict) -> str:
        """Write one record atomically (temp file in the same dir, then replace)."""
        path = self.part_path(part_no)
        fd, tmp = tempfile.mkstemp(prefix=f".{part_no}.", dir=self.path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record, f, ensure_ascii=False)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        return path

#!/usr/bin/env python3
"""Check that sectionizing a listing is lossless.

Usage:
  python tools/check_sections.py path/to/shader.asm [more.asm ...]

Splits each listing into its five regions, joins them back and compares the
sha256 of the original lines with the rebuilt ones.
"""

from __future__ import annotations

import hashlib
import os
import sys
from typing import List

from libshaderfix.asm_reader import read_asm, split_lines
from libshaderfix.model import SECTION_ORDER


def _sha256(lines: List[str]) -> str:
    h = hashlib.sha256()
    for line in lines:
        h.update(line.encode("utf-8"))
        h.update(b"\n")
    return h.hexdigest()


def check(path: str) -> bool:
    with open(path, "r", encoding="utf-8", newline="") as f:
        original = split_lines(f.read())
    listing = read_asm(path)

    a = _sha256(original)
    b = _sha256(listing.lines)
    print(f"IN : {path}\n     sha256={a}")
    counts = " ".join(str(len(listing.region(s))) for s in SECTION_ORDER)
    print(f"OUT: regions {counts}")
    print(f"     sha256={b}")
    print("IDENTICAL" if a == b else "DIFF")
    return a == b


def main(argv: List[str]) -> int:
    if len(argv) < 2:
        print("Usage: python tools/check_sections.py <shader.asm> [more.asm ...]")
        return 2

    ok = True
    for p in argv[1:]:
        p = os.path.abspath(p)
        if not os.path.exists(p):
            print(f"File not found: {p}")
            ok = False
            continue
        ok = check(p) and ok
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))

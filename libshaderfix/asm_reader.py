"""libshaderfix.asm_reader

Region-preserving reader for D3D SM5 disassembly listings (fxc / dxbc2asm
style text).

A listing is split, without overlap, into five regions:

  header            leading // comments
  input signature   from the "Input signature:" comment
  output signature  from the "Output signature:" comment
  declarations      vs_/ps_ version token and dcl_* lines
  code              everything after the first non-declaration line

Every line lands in exactly one region, so joining the regions in order gives
back the input lines. That property is what lets the writer touch only the
declarations and code and leave everything else byte-identical.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List

from .model import SECTION_ORDER, Section, ShaderListing
from .signature import parse_input_registers

COMMENT = "//"
INPUT_SIGNATURE_MARKER = "Input signature:"
OUTPUT_SIGNATURE_MARKER = "Output signature:"
DECLARATION_PREFIXES = ("dcl_", "vs_", "ps_")
TEMPS_DECL = "dcl_temps"

_TEMPS_RE = re.compile(r"^dcl_temps\s+(\S+)")


class AsmReadError(ValueError):
    pass


def next_section(section: Section, line: str) -> Section:
    """Transition for ``line``; the line is then filed under the result."""
    if section is Section.HEADER:
        if INPUT_SIGNATURE_MARKER in line:
            return Section.INPUT_SIGNATURE
        if not line.startswith(COMMENT):
            # No signature block at all.
            return Section.DECLARATIONS
    elif section is Section.INPUT_SIGNATURE:
        if OUTPUT_SIGNATURE_MARKER in line:
            return Section.OUTPUT_SIGNATURE
        if not line.startswith(COMMENT):
            return Section.DECLARATIONS
    elif section is Section.OUTPUT_SIGNATURE:
        if not line.startswith(COMMENT):
            return Section.DECLARATIONS
    elif section is Section.DECLARATIONS:
        if not line.startswith(DECLARATION_PREFIXES):
            return Section.CODE
    return section


def sectionize(lines: Iterable[str]) -> Dict[Section, List[str]]:
    regions: Dict[Section, List[str]] = {s: [] for s in SECTION_ORDER}
    section = Section.HEADER
    for line in lines:
        section = next_section(section, line)
        regions[section].append(line)
    return regions


def parse_temp_count(declarations: Iterable[str]) -> int:
    count = 0
    for line in declarations:
        m = _TEMPS_RE.match(line)
        if not m:
            continue
        try:
            count = int(m.group(1))
        except ValueError:
            raise AsmReadError(f"Bad register count in {line.strip()!r}") from None
        if count < 0:
            raise AsmReadError(f"Negative register count in {line.strip()!r}")
    return count


def split_lines(text: str) -> List[str]:
    """Split on LF only, dropping one trailing CR per line.

    Form feeds and the other separators str.splitlines() honours stay inside
    the line they belong to.
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def read_listing(text: str) -> ShaderListing:
    regions = sectionize(split_lines(text))
    return ShaderListing(
        header=regions[Section.HEADER],
        input_signature=regions[Section.INPUT_SIGNATURE],
        output_signature=regions[Section.OUTPUT_SIGNATURE],
        declarations=regions[Section.DECLARATIONS],
        code=regions[Section.CODE],
        input_registers=parse_input_registers(regions[Section.INPUT_SIGNATURE]),
        temp_reg_count=parse_temp_count(regions[Section.DECLARATIONS]),
    )


def read_asm(path: str) -> ShaderListing:
    with open(path, "r", encoding="utf-8", newline="") as f:
        return read_listing(f.read())

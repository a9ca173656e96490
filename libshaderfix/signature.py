"""libshaderfix.signature

Input-signature rows of a D3D SM5 disassembly look like:

  // Name                 Index   Mask Register SysValue  Format   Used
  // -------------------- ----- ------ -------- -------- ------- ------
  // POSITION                 0   xyzw        0     NONE   float   xyz
  // TEXCOORD                 1   xy          3     NONE   float   xy

Only rows with a numeric index and register are bindings; the column header
and the dashed separator never match.
"""

from __future__ import annotations

import re
from typing import Iterable, List

from .model import InputRegister

# Semantic carrying the packed lightmap UV.
LIGHTMAP_SEMANTIC = "TEXCOORD"
LIGHTMAP_SEMANTIC_INDEX = 1

_ROW_RE = re.compile(r"^//\s(\w+)\s+(\d+)\s+(\w+)\s+(\d+)(?:\s|$)")


class RegisterNotFoundError(LookupError):
    def __init__(self, name: str, index: int):
        super().__init__(f"{name} {index} not found in input signature")
        self.name = name
        self.index = index


def parse_input_registers(lines: Iterable[str]) -> List[InputRegister]:
    regs: List[InputRegister] = []
    for line in lines:
        m = _ROW_RE.match(line)
        if not m:
            continue
        regs.append(
            InputRegister(
                name=m.group(1),
                index=int(m.group(2)),
                mask=m.group(3),
                reg=int(m.group(4)),
            )
        )
    return regs


def find_register(registers: Iterable[InputRegister], name: str, index: int) -> int:
    """Return the input register number bound to ``name``/``index``.

    First match wins. Never guesses: raises RegisterNotFoundError instead.
    """
    for r in registers:
        if r.name == name and r.index == index:
            return r.reg
    raise RegisterNotFoundError(name, index)

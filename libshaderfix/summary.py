from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from .asm_reader import read_asm
from .asm_writer import is_patched
from .model import SECTION_ORDER, InputRegister
from .signature import (
    LIGHTMAP_SEMANTIC,
    LIGHTMAP_SEMANTIC_INDEX,
    RegisterNotFoundError,
    find_register,
)


@dataclass
class ListingSummary:
    path: str
    file_size: int
    region_lines: Dict[str, int]
    input_registers: List[InputRegister]
    temp_reg_count: int
    lightmap_register: Optional[int]
    patched: bool


def summarize_listing(path: str) -> ListingSummary:
    listing = read_asm(path)

    try:
        reg: Optional[int] = find_register(
            listing.input_registers, LIGHTMAP_SEMANTIC, LIGHTMAP_SEMANTIC_INDEX
        )
    except RegisterNotFoundError:
        reg = None

    return ListingSummary(
        path=path,
        file_size=os.path.getsize(path),
        region_lines={s.value: len(listing.region(s)) for s in SECTION_ORDER},
        input_registers=listing.input_registers,
        temp_reg_count=listing.temp_reg_count,
        lightmap_register=reg,
        patched=reg is not None and is_patched(listing, reg),
    )

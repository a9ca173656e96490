"""libshaderfix.asm_writer

Rewrites a parsed listing so the lightmap UV is rebuilt from its packed form.

The engine stores the lightmap UV in TEXCOORD1.x as a half float holding a
4-bit sub-texel index in the integer part and a fraction. Reading it back as a
plain UV loses precision, so we decompose it into a new scratch register:

  r<n>.z = v<src>.x * 15.9375
  r<n>.x = frac(r<n>.z)
  r<n>.w = round_ni(r<n>.z)
  r<n>.y = r<n>.w * 0.0625

and point every later read of v<src> at r<n> instead.
"""

from __future__ import annotations

import logging
import re
from typing import List

from .asm_reader import TEMPS_DECL, read_listing
from .model import ShaderListing
from .signature import LIGHTMAP_SEMANTIC, LIGHTMAP_SEMANTIC_INDEX, find_register

log = logging.getLogger(__name__)

# Downstream consumers depend on these exact literals.
LIGHTMAP_SCALE = "15.937500"
LIGHTMAP_INV_SCALE = "0.062500"


class AlreadyPatchedError(RuntimeError):
    pass


def lightmap_instructions(src: int, temp: int) -> List[str]:
    return [
        f"mul r{temp}.z, v{src}.x, l({LIGHTMAP_SCALE})",
        f"frc r{temp}.x, r{temp}.z",
        f"round_ni r{temp}.w, r{temp}.z",
        f"mul r{temp}.y, r{temp}.w, l({LIGHTMAP_INV_SCALE})",
    ]


def is_patched(listing: ShaderListing, src: int) -> bool:
    first = re.compile(
        rf"^\s*mul r\d+\.z, v{src}\.x, l\({re.escape(LIGHTMAP_SCALE)}\)\s*$"
    )
    return any(first.match(line) for line in listing.code)


def write_listing(listing: ShaderListing, src: int) -> str:
    """Emit the patched listing text using scratch register r<temp_reg_count>."""
    temp = listing.temp_reg_count
    out: List[str] = []

    out.extend(listing.header)
    out.extend(listing.input_signature)
    out.extend(listing.output_signature)

    out.extend(line for line in listing.declarations if not line.startswith(TEMPS_DECL))
    out.append(f"{TEMPS_DECL} {temp + 1}")

    out.extend(lightmap_instructions(src, temp))

    # The trailing '.' keeps v3 from matching v31 and friends.
    pattern = f"v{src}."
    replacement = f"r{temp}."
    log.info("replacing %s => %s", pattern, replacement)
    out.extend(line.replace(pattern, replacement) for line in listing.code)

    return "".join(line + "\n" for line in out)


def fix_shader(text: str) -> str:
    listing = read_listing(text)
    src = find_register(listing.input_registers, LIGHTMAP_SEMANTIC, LIGHTMAP_SEMANTIC_INDEX)
    log.info("Found %s %d at register: v%d", LIGHTMAP_SEMANTIC, LIGHTMAP_SEMANTIC_INDEX, src)
    if is_patched(listing, src):
        raise AlreadyPatchedError(
            f"lightmap fix already applied to v{src} (found mul ... l({LIGHTMAP_SCALE}))"
        )
    return write_listing(listing, src)

"""libshaderfix.bytepatch

Guarded find-and-splice on the GLSL source embedded in a bgfx shader buffer.

A patch only goes in when the buffer demonstrably has the defect (one of the
``required_any`` patterns is present) and has not been patched already (no
``applied_marker``). Everything else in the buffer stays byte-identical.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .codec import BgfxCodec, BgfxDecodeError
from .model import ShaderCode

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BytePatch:
    name: str
    anchor: bytes
    replacement: bytes
    applied_marker: Optional[bytes] = None
    required_any: Tuple[bytes, ...] = ()

    def guard(self, code: bytes) -> Optional[str]:
        """Return why the patch must be skipped, or None if it may be applied."""
        if self.applied_marker is not None and self.applied_marker in code:
            return "already patched"
        if self.required_any and not any(p in code for p in self.required_any):
            return "unpatched pattern not present"
        return None


# Same decomposition as the assembly path, expressed as a GLSL macro that
# shadows the attribute inside main().
LIGHTMAP_PATCH = BytePatch(
    name="lightmap",
    anchor=b"void main",
    replacement=(
        b"\n#define a_texcoord1 vec2(fract(a_texcoord1.x*15.9375)+0.0001,"
        b"floor(a_texcoord1.x*15.9375)*0.0625+0.0001)\n"
        b"void main"
    ),
    applied_marker=b"#define a_texcoord1 ",
    required_any=(b"v_lightmapUV = a_texcoord1;", b"v_lightmapUV=a_texcoord1;"),
)

SAMPLER_PATCH = BytePatch(
    name="sampler",
    anchor=b"void main ()",
    replacement=(
        b"\n#if __VERSION__ >= 300\n"
        b" #define texture(tex,uv) textureLod(tex,uv,0.0)\n"
        b"#else\n"
        b" #define texture2D(tex,uv) texture2DLod(tex,uv,0.0)\n"
        b"#endif\n"
        b"void main ()"
    ),
    applied_marker=b"#define texture2D(tex,uv) texture2DLod",
)


def replace_bytes(buf: bytearray, pattern: bytes, replacement: bytes) -> bool:
    """Splice ``replacement`` over the first ``pattern`` in ``buf``."""
    at = buf.find(pattern)
    if at < 0:
        log.warning("Pattern %r not found, buffer left as is", pattern)
        return False
    buf[at : at + len(pattern)] = replacement
    return True


def patch_shader_code(code: ShaderCode, patch: BytePatch, bgfx: BgfxCodec) -> bool:
    """Apply ``patch`` to one embedded bgfx buffer, re-encoding it in place.

    Returns True if the buffer changed. Raises BgfxDecodeError if the buffer
    cannot be decoded at all (unexpected container layout).
    """
    try:
        shader = bgfx.decode(bytes(code.bgfx_shader_data))
    except Exception as e:
        raise BgfxDecodeError(f"Embedded bgfx shader not decodable: {e}") from e
    if not isinstance(shader.code, bytearray):
        shader.code = bytearray(shader.code)

    reason = patch.guard(shader.code)
    if reason is not None:
        log.warning("Skipping %s replacement: %s", patch.name, reason)
        return False

    log.info("autofix is doing %s replacing...", patch.name)
    if not replace_bytes(shader.code, patch.anchor, patch.replacement):
        return False

    data = bgfx.encode(shader)
    code.bgfx_shader_data.clear()
    code.bgfx_shader_data.extend(data)
    return True

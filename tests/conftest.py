from __future__ import annotations

from typing import Iterable, List, Optional, Set, Tuple

import pytest

from libshaderfix.model import (
    BgfxShader,
    CompiledMaterial,
    MaterialPass,
    ShaderCode,
    ShaderStage,
    ShaderVariant,
    StageKey,
)
from libshaderfix.versions import MinecraftVersion, VersionState

SAMPLE_VS = """\
//
// Generated by Microsoft (R) HLSL Shader Compiler 10.1
//
//
// Input signature:
//
// Name                 Index   Mask Register SysValue  Format   Used
// -------------------- ----- ------ -------- -------- ------- ------
// POSITION                 0   xyz         0     NONE   float   xyz
// COLOR                    0   xyzw        1     NONE   float   xyzw
// TEXCOORD                 0   xy          2     NONE   float   xy
// TEXCOORD                 1   xy          3     NONE   float   xy
//
//
// Output signature:
//
// Name                 Index   Mask Register SysValue  Format   Used
// -------------------- ----- ------ -------- -------- ------- ------
// SV_Position              0   xyzw        0      POS   float   xyzw
// TEXCOORD                 0   xy          1     NONE   float   xy
// TEXCOORD                 1   xy          2     NONE   float   xy
//
vs_5_0
dcl_globalFlags refactoringAllowed
dcl_constantbuffer CB0[4], immediateIndexed
dcl_input v0.xyz
dcl_input v1.xyzw
dcl_input v2.xy
dcl_input v3.xy
dcl_output_siv o0.xyzw, position
dcl_output o1.xy
dcl_output o2.xy
dcl_temps 2
mul r0.xyzw, v0.yyyy, cb0[1].xyzw
mad r0.xyzw, cb0[0].xyzw, v0.xxxx, r0.xyzw
mad r1.xy, v3.xyxx, l(2.000000, 2.000000, 0.000000, 0.000000), l(-1.000000, -1.000000, 0.000000, 0.000000)
mov o0.xyzw, r0.xyzw
mov o1.xy, v2.xyxx
mov o2.xy, v3.xyxx
ret
// Approximately 6 instruction slots used
"""

VERTEX_GLSL = (
    b"attribute vec2 a_texcoord1;\n"
    b"varying vec2 v_lightmapUV;\n"
    b"void main ()\n"
    b"{\n"
    b"  v_lightmapUV = a_texcoord1;\n"
    b"}\n"
)

FRAGMENT_GLSL = (
    b"uniform sampler2D s_MatTexture;\n"
    b"varying vec2 v_texcoord0;\n"
    b"void main ()\n"
    b"{\n"
    b"  gl_FragColor = texture2D(s_MatTexture, v_texcoord0);\n"
    b"}\n"
)


@pytest.fixture
def sample_vs() -> str:
    return SAMPLE_VS


class FakeBgfxCodec:
    """Embedded buffer = b'BGFX' + code."""

    MAGIC = b"BGFX"

    def __init__(self) -> None:
        self.decoded = 0

    def wrap(self, code: bytes) -> bytearray:
        return bytearray(self.MAGIC + code)

    def decode(self, data: bytes) -> BgfxShader:
        self.decoded += 1
        if not data.startswith(self.MAGIC):
            raise ValueError("bad bgfx magic")
        return BgfxShader(code=bytearray(data[len(self.MAGIC) :]), header=self.MAGIC)

    def encode(self, shader: BgfxShader) -> bytes:
        return shader.header + bytes(shader.code)


class FakeMaterialCodec:
    def __init__(
        self,
        material: CompiledMaterial,
        accepts: Iterable[MinecraftVersion],
        fail_encode: bool = False,
    ) -> None:
        self.material = material
        self.accepts: Set[MinecraftVersion] = set(accepts)
        self.fail_encode = fail_encode
        self.attempts: List[MinecraftVersion] = []
        self.encoded: List[Tuple[CompiledMaterial, MinecraftVersion]] = []

    def decode(self, data: bytes, version: MinecraftVersion) -> CompiledMaterial:
        self.attempts.append(version)
        if version not in self.accepts:
            raise ValueError(f"unsupported version {version}")
        return self.material

    def encode(self, material: CompiledMaterial, version: MinecraftVersion) -> bytes:
        if self.fail_encode:
            raise IOError("encode failed")
        self.encoded.append((material, version))
        return f"{material.name}@{version}".encode("ascii")


VERTEX_ESSL = StageKey(ShaderStage.VERTEX, "ESSL_100")
FRAGMENT_ESSL = StageKey(ShaderStage.FRAGMENT, "ESSL_100")
FRAGMENT_ESSL_300 = StageKey(ShaderStage.FRAGMENT, "ESSL_300")


def make_material(
    bgfx: FakeBgfxCodec,
    name: str = "RenderChunk",
    passes: Iterable[str] = ("Opaque", "AlphaTest", "Transparent"),
    variants: int = 2,
    vertex_src: bytes = VERTEX_GLSL,
    fragment_src: bytes = FRAGMENT_GLSL,
) -> CompiledMaterial:
    material = CompiledMaterial(name=name)
    for pass_name in passes:
        mpass = MaterialPass()
        for _ in range(variants):
            mpass.variants.append(
                ShaderVariant(
                    shader_codes={
                        VERTEX_ESSL: ShaderCode(bgfx.wrap(vertex_src)),
                        FRAGMENT_ESSL: ShaderCode(bgfx.wrap(fragment_src)),
                        FRAGMENT_ESSL_300: ShaderCode(bgfx.wrap(fragment_src)),
                    }
                )
            )
        material.passes[pass_name] = mpass
    return material


def detector_for(release: Optional[str]):
    calls: List[object] = []

    def detect(handle: object) -> Optional[str]:
        calls.append(handle)
        return release

    detect.calls = calls  # type: ignore[attr-defined]
    return detect


@pytest.fixture
def bgfx() -> FakeBgfxCodec:
    return FakeBgfxCodec()


@pytest.fixture
def state() -> VersionState:
    return VersionState()

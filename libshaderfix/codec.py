"""libshaderfix.codec

The material.bin container and the embedded bgfx shader buffers are decoded
and encoded by external code (the host's materialbin library). We only rely
on the capabilities below; any failure is signalled by raising.
"""

from __future__ import annotations

from typing import Protocol

from .model import BgfxShader, CompiledMaterial
from .versions import MinecraftVersion


class MaterialCodec(Protocol):
    def decode(self, data: bytes, version: MinecraftVersion) -> CompiledMaterial: ...

    def encode(self, material: CompiledMaterial, version: MinecraftVersion) -> bytes: ...


class BgfxCodec(Protocol):
    def decode(self, data: bytes) -> BgfxShader: ...

    def encode(self, shader: BgfxShader) -> bytes: ...


class BgfxDecodeError(RuntimeError):
    pass

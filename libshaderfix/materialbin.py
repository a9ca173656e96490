"""libshaderfix.materialbin

Entry point for the host: patch one compiled material (material.bin) as it is
loaded.

  bytes --decode per format revision--> CompiledMaterial
        --route on (name, decode version, detected version)--> fixes
        --patch bgfx buffers in place--> encode for the detected version

Nothing here raises to the host. ``None`` means "keep the original bytes".
"""

from __future__ import annotations

import logging
from typing import Any, Collection, Iterator, Optional, Tuple

from .bytepatch import LIGHTMAP_PATCH, SAMPLER_PATCH, BytePatch, patch_shader_code
from .codec import BgfxCodec, MaterialCodec
from .model import CompiledMaterial, ShaderCode, ShaderStage, StageKey
from .versions import (
    ALL_VERSIONS,
    DEFAULT_STATE,
    MinecraftVersion,
    VersionDetector,
    VersionState,
)

log = logging.getLogger(__name__)

LIGHTMAP_MATERIALS = frozenset({"RenderChunk", "RenderChunkPrepass"})
# Revision whose RenderChunk already decodes the lightmap UV correctly.
LIGHTMAP_GOOD_VERSION = MinecraftVersion.V1_21_110

SAMPLER_MATERIALS = frozenset({"RenderChunk"})
SAMPLER_PASSES = frozenset({"AlphaTest", "Opaque"})
SAMPLER_PLATFORM = "ESSL_100"
SAMPLER_DETECTED_VERSIONS = frozenset(
    {MinecraftVersion.V1_20_80, MinecraftVersion.V1_21_20, MinecraftVersion.V1_21_110}
)
SAMPLER_LEGACY_VERSIONS = frozenset({MinecraftVersion.V1_19_60, MinecraftVersion.V1_18_30})

# Materials ported to the detected format whether or not a fix applies.
TARGET_MATERIALS = LIGHTMAP_MATERIALS | SAMPLER_MATERIALS


def iter_shader_codes(
    material: CompiledMaterial,
    stage: ShaderStage,
    platform_name: Optional[str] = None,
    pass_names: Optional[Collection[str]] = None,
) -> Iterator[Tuple[str, StageKey, ShaderCode]]:
    for pass_name, mpass in material.passes.items():
        if pass_names is not None and pass_name not in pass_names:
            continue
        for variant in mpass.variants:
            for key, code in variant.shader_codes.items():
                if key.stage is not stage:
                    continue
                if platform_name is not None and key.platform_name != platform_name:
                    continue
                yield pass_name, key, code


def needs_lightmap_fix(name: str, decode_version: MinecraftVersion, recent_release: bool) -> bool:
    return (
        name in LIGHTMAP_MATERIALS
        and decode_version is not LIGHTMAP_GOOD_VERSION
        and recent_release
    )


def needs_sampler_fix(
    name: str, decode_version: MinecraftVersion, detected: MinecraftVersion
) -> bool:
    return (
        name in SAMPLER_MATERIALS
        and detected in SAMPLER_DETECTED_VERSIONS
        and decode_version in SAMPLER_LEGACY_VERSIONS
    )


def _apply(
    material: CompiledMaterial,
    patch: BytePatch,
    bgfx: BgfxCodec,
    stage: ShaderStage,
    platform_name: Optional[str] = None,
    pass_names: Optional[Collection[str]] = None,
) -> int:
    patched = 0
    for _pass_name, _key, code in iter_shader_codes(material, stage, platform_name, pass_names):
        if patch_shader_code(code, patch, bgfx):
            patched += 1
    return patched


def handle_lightmaps(material: CompiledMaterial, bgfx: BgfxCodec) -> int:
    log.info("%s: handle_lightmaps", material.name)
    return _apply(material, LIGHTMAP_PATCH, bgfx, ShaderStage.VERTEX)


def handle_samplers(material: CompiledMaterial, bgfx: BgfxCodec) -> int:
    log.info("%s: handle_samplers", material.name)
    return _apply(
        material,
        SAMPLER_PATCH,
        bgfx,
        ShaderStage.FRAGMENT,
        platform_name=SAMPLER_PLATFORM,
        pass_names=SAMPLER_PASSES,
    )


def _decode_any(
    data: bytes, codec: MaterialCodec
) -> Optional[Tuple[CompiledMaterial, MinecraftVersion]]:
    for version in ALL_VERSIONS:
        try:
            return codec.decode(data, version), version
        except Exception as e:
            log.debug("[%s] Parsing failed: %s", version, e)
    return None


def process_material(
    data: bytes,
    handle: Any,
    detector: VersionDetector,
    codec: MaterialCodec,
    bgfx: BgfxCodec,
    state: Optional[VersionState] = None,
) -> Optional[bytes]:
    """Patch one material.bin blob. Returns new bytes, or None to keep ``data``."""
    state = state or DEFAULT_STATE

    detected = state.detect(handle, detector)
    if detected is None:
        return None

    decoded = _decode_any(data, codec)
    if decoded is None:
        return None
    material, version = decoded
    if material.name not in TARGET_MATERIALS:
        return None

    lightmaps = needs_lightmap_fix(material.name, version, state.recent_release)
    samplers = needs_sampler_fix(material.name, version, detected)

    try:
        if lightmaps:
            handle_lightmaps(material, bgfx)
        if samplers:
            handle_samplers(material, bgfx)
    except Exception as e:
        log.error("%s: patching failed, keeping original: %s", material.name, e)
        return None

    try:
        return codec.encode(material, detected)
    except Exception as e:
        log.warning("[%s] Write error: %s", detected, e)
        return None

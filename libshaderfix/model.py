from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


# -----------------------------
# Assembly listing (D3D SM5 disassembly text)
# -----------------------------

class Section(Enum):
    HEADER = "header"
    INPUT_SIGNATURE = "input_signature"
    OUTPUT_SIGNATURE = "output_signature"
    DECLARATIONS = "declarations"
    CODE = "code"


SECTION_ORDER = (
    Section.HEADER,
    Section.INPUT_SIGNATURE,
    Section.OUTPUT_SIGNATURE,
    Section.DECLARATIONS,
    Section.CODE,
)


@dataclass(frozen=True)
class InputRegister:
    """One row of the input signature comment table."""

    name: str
    index: int
    mask: str
    reg: int


@dataclass
class ShaderListing:
    header: List[str]
    input_signature: List[str]
    output_signature: List[str]
    declarations: List[str]
    code: List[str]

    input_registers: List[InputRegister] = field(default_factory=list)
    temp_reg_count: int = 0

    def region(self, section: Section) -> List[str]:
        # Section values double as field names.
        return getattr(self, section.value)

    @property
    def lines(self) -> List[str]:
        out: List[str] = []
        for section in SECTION_ORDER:
            out.extend(self.region(section))
        return out


# -----------------------------
# Compiled material (material.bin) object graph
#
# The binary layout is decoded/encoded by an external codec; these types are
# only the shape that codec hands us. We walk it and mutate the embedded
# bgfx buffers in place.
# -----------------------------

class ShaderStage(Enum):
    VERTEX = "Vertex"
    FRAGMENT = "Fragment"
    COMPUTE = "Compute"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class StageKey:
    stage: ShaderStage
    platform_name: str  # e.g. "ESSL_100", "Direct3D_SM50"


@dataclass
class ShaderCode:
    # Serialized BgfxShader, decoded separately from the container.
    bgfx_shader_data: bytearray


@dataclass
class ShaderVariant:
    shader_codes: Dict[StageKey, ShaderCode] = field(default_factory=dict)


@dataclass
class MaterialPass:
    variants: List[ShaderVariant] = field(default_factory=list)


@dataclass
class CompiledMaterial:
    name: str
    passes: Dict[str, MaterialPass] = field(default_factory=dict)


@dataclass
class BgfxShader:
    """Decoded embedded shader buffer.

    Only ``code`` (GLSL source or bytecode) is touched by the patcher; whatever
    else the codec needs to re-encode is carried in ``header`` untouched.
    """

    code: bytearray
    header: bytes = b""

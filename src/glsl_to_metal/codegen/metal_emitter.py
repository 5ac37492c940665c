"""
Metal Program Assembler - wraps transformed GLSL in Metal boilerplate.

Produces one self-contained Metal Shading Language program:

    header        metal_stdlib include, uniform struct, shared sampler
    [glsl_mod]    exact GLSL mod() helper when requested
    preamble      transformed constants and helper functions
    trailing      anything that followed the entry function
    fragment fn   binds uniforms to the ambient names, declares the
                  coordinate and colour locals, runs the entry body and
                  returns the colour

The uniform struct always carries exactly the two per-frame ambient
values (iResolution, iTime); iChannel0 is bound at texture(0) and the
uniform buffer at buffer(0).
"""

from dataclasses import dataclass
from typing import List

from ..ambient import AmbientValue, CHANNEL0, uniform_fields
from ..config import DEFAULT_FUNCTION_NAME
from ..transformer.builtin_functions import EXACT_MOD_FUNCTION
from ..transformer.entry_point import ExtractedEntry
from ..transformer.texture_calls import SAMPLER_NAME

UNIFORM_STRUCT = 'PostProcessUniforms'

GLSL_MOD_HELPER = f"""\
// GLSL mod(): result takes the sign of the divisor
template <typename T, typename U>
inline T {EXACT_MOD_FUNCTION}(T x, U y) {{
    return x - y * floor(x / y);
}}
"""


@dataclass(frozen=True)
class AssembledProgram:
    """
    Final Metal program text.

    Attributes:
        source: Complete Metal Shading Language source
        entry_point: Fragment function name to request from the library
        used_fallback: True when the passthrough body replaced a missing entry
    """
    source: str
    entry_point: str
    used_fallback: bool = False

    def __str__(self) -> str:
        return self.source


class ProgramAssembler:
    """
    Wraps an extracted entry in the fixed Metal boilerplate.

    Usage:
        assembler = ProgramAssembler()
        program = assembler.assemble(extracted, function_name='customPostProcess')
    """

    def __init__(self, exact_mod: bool = False, flip_y: bool = False, indent_size: int = 4):
        """
        Initialize the assembler.

        Args:
            exact_mod: Emit the glsl_mod helper
            flip_y: Give the coordinate a bottom-left origin like Shadertoy
            indent_size: Number of spaces per indentation level
        """
        self.exact_mod = exact_mod
        self.flip_y = flip_y
        self.indent_size = indent_size

    def indent(self, level: int = 1) -> str:
        """Get indentation string for a nesting level."""
        return ' ' * (level * self.indent_size)

    def assemble(self, extracted: ExtractedEntry, function_name: str = DEFAULT_FUNCTION_NAME) -> AssembledProgram:
        """
        Build the final program.

        Args:
            extracted: Preamble/body split from the EntryPointExtractor
            function_name: Fragment function symbol

        Returns:
            AssembledProgram with source and entry point name
        """
        parts = [self.emit_header()]
        if self.exact_mod:
            parts.append(GLSL_MOD_HELPER)
        parts.append('// Transpiled GLSL preamble (constants, helper functions)')
        parts.append(extracted.preamble.strip('\n'))
        if extracted.trailing.strip():
            parts.append(extracted.trailing.strip('\n'))
        parts.append(self.emit_fragment_function(extracted, function_name))

        return AssembledProgram(
            source='\n'.join(parts) + '\n',
            entry_point=function_name,
            used_fallback=not extracted.found,
        )

    def emit_header(self) -> str:
        """Emit includes, the uniform struct and the shared sampler."""
        lines = [
            '// Auto-transpiled from GLSL',
            '#include <metal_stdlib>',
            'using namespace metal;',
            '',
            '// Uniforms for Ghostty/Shadertoy compatibility',
            f'struct {UNIFORM_STRUCT} {{',
        ]
        for value in uniform_fields():
            lines.append(f'{self.indent()}{value.type_name} {value.name};')
        lines.append('};')
        lines.append('')
        lines.append(f'constexpr sampler {SAMPLER_NAME}(')
        lines.append(f'{self.indent()}mag_filter::linear,')
        lines.append(f'{self.indent()}min_filter::linear,')
        lines.append(f'{self.indent()}address::clamp_to_edge')
        lines.append(');')
        lines.append('')
        return '\n'.join(lines)

    def emit_fragment_function(self, extracted: ExtractedEntry, function_name: str) -> str:
        """Emit the fragment function scaffold around the entry body."""
        ind = self.indent()
        lines: List[str] = [
            '',
            '// Main fragment shader',
            f'fragment float4 {function_name}(',
            f'{ind}float4 position [[position]],',
            f'{ind}constant {UNIFORM_STRUCT} &uniforms [[buffer(0)]],',
            f'{ind}{CHANNEL0.type_name} {CHANNEL0.name} [[texture(0)]]',
            ') {',
            f'{ind}// Shadertoy/Ghostty compatibility',
        ]
        lines.extend(self._uniform_aliases())
        lines.append(f'{ind}float2 {extracted.coord_name} = {self._coordinate_expression()};')
        lines.append(f'{ind}float4 {extracted.color_name} = float4(0.0);')
        lines.append('')
        lines.append(f'{ind}// Transpiled mainImage body')
        lines.append(extracted.body.strip('\n'))
        lines.append('')
        lines.append(f'{ind}return {extracted.color_name};')
        lines.append('}')
        return '\n'.join(lines)

    def _uniform_aliases(self) -> List[str]:
        fields: List[AmbientValue] = list(uniform_fields())
        return [
            f'{self.indent()}{v.type_name} {v.name} = uniforms.{v.name};' for v in fields
        ]

    def _coordinate_expression(self) -> str:
        if self.flip_y:
            return 'float2(position.x, uniforms.iResolution.y - position.y)'
        return 'position.xy'

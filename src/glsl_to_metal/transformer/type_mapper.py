"""
Type Mapper - rewrites GLSL type spellings to Metal equivalents.

Handles:
1. Float vectors: vec2 -> float2, vec3 -> float3, vec4 -> float4
2. Integer/unsigned/boolean vectors: ivec3 -> int3, uvec2 -> uint2, bvec4 -> bool4
3. Square matrices: mat2 -> float2x2, mat3 -> float3x3, mat4 -> float4x4
4. Non-square matrices: mat2x3 -> float2x3 (GLSL and Metal both name columns first)
5. Samplers: sampler2D -> texture2d<float>

Every substitution is whole-token, so identifiers that merely contain a
type spelling (myvec2, vec2_offset, ivec2 for vec2) are never mangled.
Running the mapper on already mapped text is a no-op.

Must run before texture call rewriting and parameter qualifier rewriting,
whose patterns expect Metal type spellings.
"""

import re
from typing import Dict


class TypeMapper:
    """
    Whole-token GLSL -> Metal type substitution.

    Usage:
        mapper = TypeMapper()
        metal_source = mapper.transform(glsl_source)
    """

    def __init__(self):
        """Initialize the type table."""
        # Type name mapping: GLSL -> Metal
        self.type_map: Dict[str, str] = {
            # Vectors
            'vec2': 'float2',
            'vec3': 'float3',
            'vec4': 'float4',
            'ivec2': 'int2',
            'ivec3': 'int3',
            'ivec4': 'int4',
            'uvec2': 'uint2',
            'uvec3': 'uint3',
            'uvec4': 'uint4',
            'bvec2': 'bool2',
            'bvec3': 'bool3',
            'bvec4': 'bool4',
            # Matrices
            'mat2': 'float2x2',
            'mat3': 'float3x3',
            'mat4': 'float4x4',
            # Samplers
            'sampler2D': 'texture2d<float>',
        }
        for columns in '234':
            for rows in '234':
                self.type_map[f'mat{columns}x{rows}'] = f'float{columns}x{rows}'

        # Longest names first so the alternation never stops at a prefix
        names = sorted(self.type_map, key=len, reverse=True)
        self.pattern = re.compile(r'\b(' + '|'.join(map(re.escape, names)) + r')\b')

    def transform(self, source: str) -> str:
        """
        Replace GLSL type names with Metal type names.

        Args:
            source: GLSL source code string

        Returns:
            Source with Metal type spellings
        """
        return self.pattern.sub(lambda m: self.type_map[m.group(1)], source)

    def map_type(self, type_name: str) -> str:
        """Map a single type token, returning unknown names unchanged."""
        return self.type_map.get(type_name, type_name)

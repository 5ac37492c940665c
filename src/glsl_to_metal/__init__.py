"""
glsl_to_metal - Shadertoy/Ghostty GLSL to Metal Shading Language transpiler.

Usage:
    from glsl_to_metal import transpile
    program = transpile(glsl_source)
    print(program.source)
"""

from .codegen.metal_emitter import AssembledProgram
from .config import TranspilerConfig
from .errors import (
    PipelineBuildError,
    ShaderCompileError,
    ShaderSourceUnavailable,
    TranspileError,
)
from .transpiler import GLSLTranspiler, transpile, transpile_file

__all__ = [
    'AssembledProgram',
    'GLSLTranspiler',
    'PipelineBuildError',
    'ShaderCompileError',
    'ShaderSourceUnavailable',
    'TranspileError',
    'TranspilerConfig',
    'transpile',
    'transpile_file',
]

"""GLSL -> Metal text transformation stages."""

from .address_space import AddressSpaceNormalizer
from .builtin_functions import BuiltinFunctionMapper
from .entry_point import EntryPointExtractor, ExtractedEntry, is_entry_signature
from .parameter_qualifiers import ParameterQualifierRewriter
from .source_scanner import FunctionSignature, Parameter, SourceProgram, find_functions
from .texture_calls import TextureCallRewriter
from .type_mapper import TypeMapper
from .uniform_propagation import UniformUsagePropagator

__all__ = [
    'AddressSpaceNormalizer',
    'BuiltinFunctionMapper',
    'EntryPointExtractor',
    'ExtractedEntry',
    'FunctionSignature',
    'Parameter',
    'ParameterQualifierRewriter',
    'SourceProgram',
    'TextureCallRewriter',
    'TypeMapper',
    'UniformUsagePropagator',
    'find_functions',
    'is_entry_signature',
]

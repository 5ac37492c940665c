"""
GLSL Transpiler - converts Shadertoy/Ghostty GLSL to Metal.

Pipeline (each stage consumes and produces program text):

    DirectiveStripper          #version / #extension / precision removal
    TypeMapper                 vec3 -> float3, sampler2D -> texture2d<float>
    TextureCallRewriter        texture(s, uv) -> s.sample(texSampler, uv)
    BuiltinFunctionMapper      mod -> fmod, dFdx -> dfdx, ...
    AddressSpaceNormalizer     program-scope declarations -> constant
    ParameterQualifierRewriter out/inout -> thread references
    UniformUsagePropagator     iResolution/iTime/iChannel0 -> parameters
    EntryPointExtractor        mainImage -> preamble + body
    ProgramAssembler           Metal boilerplate around preamble + body

The transpiler never rejects its input: constructs the patterns do not
recognise pass through unchanged and the Metal compiler has the final say.

Usage:
    program = transpile(glsl_source)
    library = device.newLibraryWithSource_options_error_(program.source, None, None)
"""

from pathlib import Path
from typing import Optional, Union

from .codegen.metal_emitter import AssembledProgram, ProgramAssembler
from .config import TranspilerConfig
from .errors import ShaderSourceUnavailable
from .logging import get_logger
from .preprocessor.directive_stripper import DirectiveStripper
from .transformer.address_space import AddressSpaceNormalizer
from .transformer.builtin_functions import BuiltinFunctionMapper
from .transformer.entry_point import EntryPointExtractor
from .transformer.parameter_qualifiers import ParameterQualifierRewriter
from .transformer.texture_calls import TextureCallRewriter
from .transformer.type_mapper import TypeMapper
from .transformer.uniform_propagation import UniformUsagePropagator

logger = get_logger(__name__)


class GLSLTranspiler:
    """
    Runs the GLSL -> Metal stages in order.

    Stage objects only hold configuration, so one transpiler can be reused
    for any number of shaders.

    Usage:
        transpiler = GLSLTranspiler(TranspilerConfig(transitive_uniforms=True))
        program = transpiler.transpile(source, function_name='errorPage404')
    """

    def __init__(self, config: Optional[TranspilerConfig] = None):
        """
        Initialize the stages.

        Args:
            config: Transpiler options (defaults to TranspilerConfig())
        """
        self.config = config or TranspilerConfig()
        self.stages = [
            DirectiveStripper(),
            TypeMapper(),
            TextureCallRewriter(),
            BuiltinFunctionMapper(exact_mod=self.config.exact_mod),
            AddressSpaceNormalizer(),
            ParameterQualifierRewriter(),
            UniformUsagePropagator(transitive=self.config.transitive_uniforms),
        ]
        self.extractor = EntryPointExtractor()
        self.assembler = ProgramAssembler(
            exact_mod=self.config.exact_mod,
            flip_y=self.config.flip_y,
        )

    def transform(self, source: str) -> str:
        """
        Apply the text rewriting stages without extraction or wrapping.

        Args:
            source: GLSL source

        Returns:
            Metal-flavoured program text, still shaped like the input
        """
        text = source
        for stage in self.stages:
            text = stage.transform(text)
        return text

    def transpile(self, source: str, function_name: Optional[str] = None) -> AssembledProgram:
        """
        Transpile GLSL source to a complete Metal program.

        Args:
            source: GLSL source text
            function_name: Fragment symbol override, useful when several
                custom shaders are compiled in one process

        Returns:
            AssembledProgram with the Metal source and entry point name
        """
        function_name = function_name or self.config.function_name
        text = self.transform(source)
        extracted = self.extractor.extract(text)
        program = self.assembler.assemble(extracted, function_name)
        logger.debug(
            f"Transpiled shader to '{function_name}' ({len(program.source)} chars)"
        )
        return program


def transpile(
    source: str,
    function_name: Optional[str] = None,
    config: Optional[TranspilerConfig] = None,
) -> AssembledProgram:
    """
    Transpile GLSL source text with a fresh transpiler.

    Args:
        source: GLSL source text
        function_name: Fragment symbol override
        config: Transpiler options

    Returns:
        AssembledProgram
    """
    return GLSLTranspiler(config).transpile(source, function_name)


def transpile_file(
    path: Union[str, Path],
    function_name: Optional[str] = None,
    config: Optional[TranspilerConfig] = None,
) -> AssembledProgram:
    """
    Read a GLSL file and transpile it.

    Args:
        path: Shader file path
        function_name: Fragment symbol override
        config: Transpiler options

    Returns:
        AssembledProgram

    Raises:
        ShaderSourceUnavailable: If the file cannot be read
    """
    try:
        source = Path(path).read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ShaderSourceUnavailable(f"Failed to read shader file: {e}", str(path)) from e

    logger.info(f"Transpiling shader from {path}")
    return transpile(source, function_name, config)

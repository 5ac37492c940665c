"""
Metal pipeline construction for transpiled shaders.

Compiles an AssembledProgram with the host Metal compiler through pyobjc,
looks up the fragment function and pairs it with a caller-supplied vertex
function in a render pipeline state.

- compile_function(): source -> MTLFunction, raises ShaderCompileError
- build(): MTLFunction + vertex function -> MTLRenderPipelineState,
  raises PipelineBuildError
- load_custom_pipeline(): transpile + build, logging failures and returning
  None so the caller can fall back to its built-in effect

Metal is only available on macOS. Elsewhere (and in tests) a device and a
descriptor factory can be injected.
"""

import sys
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..codegen.metal_emitter import AssembledProgram
from ..config import TranspilerConfig
from ..errors import PipelineBuildError, ShaderCompileError
from ..logging import get_logger
from ..transpiler import transpile

logger = get_logger(__name__)

HAS_METAL = False
if sys.platform == 'darwin':
    try:
        import Metal
        HAS_METAL = True
    except ImportError:
        pass

# MTLPixelFormatBGRA8Unorm
DEFAULT_PIXEL_FORMAT = 80
PIPELINE_LABEL = 'Custom GLSL Pipeline'


@dataclass
class CustomPipeline:
    """
    A ready-to-use pipeline plus the program it was built from.

    Attributes:
        pipeline_state: MTLRenderPipelineState for per-frame use
        fragment_function: Compiled MTLFunction
        program: Assembled Metal source, kept for diagnostics
    """
    pipeline_state: Any
    fragment_function: Any
    program: AssembledProgram


def _default_descriptor():
    return Metal.MTLRenderPipelineDescriptor.alloc().init()


class MetalPipelineBuilder:
    """
    Compiles assembled programs and builds render pipeline states.

    Usage:
        builder = MetalPipelineBuilder()
        pipeline = builder.build(program, vertex_function)
    """

    def __init__(
        self,
        device: Any = None,
        descriptor_factory: Optional[Callable[[], Any]] = None,
    ):
        """
        Initialize the builder.

        Args:
            device: MTLDevice (default: system default device)
            descriptor_factory: Creates MTLRenderPipelineDescriptor objects

        Raises:
            RuntimeError: If no device is given and Metal is unavailable
        """
        if device is None:
            if not HAS_METAL:
                raise RuntimeError("Metal not available (are you on macOS?)")
            device = Metal.MTLCreateSystemDefaultDevice()
            if device is None:
                raise RuntimeError("Failed to create Metal device")

        if descriptor_factory is None:
            if not HAS_METAL:
                raise RuntimeError("Metal not available, pass a descriptor_factory")
            descriptor_factory = _default_descriptor

        self.device = device
        self.descriptor_factory = descriptor_factory

    def compile_function(self, program: AssembledProgram) -> Any:
        """
        Compile the program and fetch its fragment function.

        Args:
            program: Assembled Metal program

        Returns:
            MTLFunction for program.entry_point

        Raises:
            ShaderCompileError: With compiler diagnostics and the full source
        """
        result = self.device.newLibraryWithSource_options_error_(program.source, None, None)
        if result is None or len(result) != 2:
            raise ShaderCompileError(
                "Failed to create Metal library", source=program.source
            )

        library, error = result
        if error is not None or library is None:
            diagnostics = str(error) if error is not None else "Unknown error"
            raise ShaderCompileError(
                "Metal shader compilation failed",
                diagnostics=diagnostics,
                source=program.source,
            )

        function = library.newFunctionWithName_(program.entry_point)
        if function is None:
            raise ShaderCompileError(
                f"Function '{program.entry_point}' not found in compiled library",
                source=program.source,
            )

        logger.info("Shader compiled successfully")
        return function

    def build(
        self,
        program: AssembledProgram,
        vertex_function: Any,
        pixel_format: int = DEFAULT_PIXEL_FORMAT,
    ) -> CustomPipeline:
        """
        Compile the program and build a render pipeline state.

        Args:
            program: Assembled Metal program
            vertex_function: Caller-supplied MTLFunction for the vertex stage
            pixel_format: Colour attachment 0 pixel format

        Returns:
            CustomPipeline

        Raises:
            ShaderCompileError: If compilation fails
            PipelineBuildError: If the pipeline state cannot be created
        """
        fragment_function = self.compile_function(program)

        descriptor = self.descriptor_factory()
        descriptor.setLabel_(PIPELINE_LABEL)
        descriptor.setVertexFunction_(vertex_function)
        descriptor.setFragmentFunction_(fragment_function)
        descriptor.colorAttachments().objectAtIndexedSubscript_(0).setPixelFormat_(pixel_format)

        result = self.device.newRenderPipelineStateWithDescriptor_error_(descriptor, None)
        if not result or len(result) != 2:
            raise PipelineBuildError(
                "Failed to create render pipeline", source=program.source
            )

        pipeline_state, error = result
        if error is not None or pipeline_state is None:
            raise PipelineBuildError(
                "Failed to create render pipeline",
                diagnostics=str(error) if error is not None else "Pipeline state is None",
                source=program.source,
            )

        return CustomPipeline(
            pipeline_state=pipeline_state,
            fragment_function=fragment_function,
            program=program,
        )


def load_custom_pipeline(
    source: str,
    builder: MetalPipelineBuilder,
    vertex_function: Any,
    function_name: Optional[str] = None,
    pixel_format: int = DEFAULT_PIXEL_FORMAT,
    config: Optional[TranspilerConfig] = None,
) -> Optional[CustomPipeline]:
    """
    Transpile and build a custom shader, never raising on shader errors.

    A failing custom shader must not interrupt the session: failures are
    logged with their diagnostics and None is returned so the caller keeps
    its built-in effect.

    Args:
        source: GLSL source text
        builder: Pipeline builder
        vertex_function: Vertex-stage MTLFunction
        function_name: Fragment symbol override
        pixel_format: Colour attachment pixel format
        config: Transpiler options

    Returns:
        CustomPipeline, or None on failure
    """
    program = transpile(source, function_name, config)
    try:
        pipeline = builder.build(program, vertex_function, pixel_format)
    except ShaderCompileError as e:
        logger.error(f"{e.message}: {e.diagnostics}")
        logger.error(f"Metal source:\n{e.source}")
        return None

    if program.used_fallback:
        logger.warning("Custom shader has no entry point, built passthrough pipeline")
    return pipeline

"""Metal render pipeline construction for transpiled shaders."""

from .metal_pipeline import CustomPipeline, MetalPipelineBuilder, load_custom_pipeline

__all__ = ['CustomPipeline', 'MetalPipelineBuilder', 'load_custom_pipeline']

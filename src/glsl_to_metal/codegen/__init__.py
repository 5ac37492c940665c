"""Metal program assembly."""

from .metal_emitter import AssembledProgram, ProgramAssembler

__all__ = ['AssembledProgram', 'ProgramAssembler']

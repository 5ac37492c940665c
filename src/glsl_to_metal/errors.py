"""
Error types raised by the transpiler and the Metal pipeline adapter.

Malformed shader text is never an error for the transpiler itself: it
emits a best-effort program and the host compiler's rejection is the only
hard failure. These exceptions cover the cases around that.
"""

from typing import Optional


class TranspileError(Exception):
    """Base class for transpiler failures."""
    def __init__(self, message: str, location: Optional[str] = None):
        self.message = message
        self.location = location
        if location:
            super().__init__(f"{message} ({location})")
        else:
            super().__init__(message)


class ShaderSourceUnavailable(TranspileError):
    """Raised when shader text cannot be read; the transpile is skipped."""


class ShaderCompileError(TranspileError):
    """
    Raised when the host compiler rejects the assembled program.

    Attributes:
        diagnostics: Compiler diagnostic text
        source: Full assembled source that failed to compile
    """
    def __init__(self, message: str, diagnostics: str = '', source: str = '',
                 location: Optional[str] = None):
        super().__init__(message, location)
        self.diagnostics = diagnostics
        self.source = source


class PipelineBuildError(ShaderCompileError):
    """Raised when the compiled function cannot be turned into a pipeline."""

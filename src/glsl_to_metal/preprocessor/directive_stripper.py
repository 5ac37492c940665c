"""
Directive Stripper - removes GLSL-only compiler directives.

Metal Shading Language has a C preprocessor, so most directives are
valid as they are. This module only removes the lines Metal rejects:
1. Version directives: #version 330 core
2. Extension directives: #extension GL_OES_standard_derivatives : enable
3. Default precision statements: precision highp float;

Everything else (#define, #if, #ifdef, #else, #endif, #pragma ...) passes
through unchanged.

Design:
- String-based, line-by-line processing (directives are line oriented)
- Removed lines are dropped entirely, including their newline
- Preserves all other lines byte for byte

Usage:
    stripper = DirectiveStripper()
    stripped_source = stripper.transform(glsl_source)
"""

import re
from typing import List

from ..logging import get_logger

logger = get_logger(__name__)


class DirectiveStripper:
    """
    Removes GLSL version/extension directives and precision statements.
    """

    def __init__(self):
        """Initialize the directive stripper."""
        # Directive names whose whole line is dropped
        self.stripped_directives = {'version', 'extension'}

        # precision <qualifier> <type>;
        self.precision_pattern = re.compile(
            r'^\s*precision\s+(?:highp|mediump|lowp)\s+\w+\s*;\s*$'
        )
        self.directive_pattern = re.compile(r'^\s*#\s*(\w+)')

    def transform(self, source: str) -> str:
        """
        Strip unsupported directives from GLSL source.

        Args:
            source: GLSL source code string

        Returns:
            Source without version/extension/precision lines
        """
        kept_lines: List[str] = []
        removed = 0

        for line in source.splitlines(keepends=True):
            if self._should_strip(line):
                removed += 1
                continue
            kept_lines.append(line)

        if removed:
            logger.debug(f"Stripped {removed} directive line(s)")
        return ''.join(kept_lines)

    def _should_strip(self, line: str) -> bool:
        """
        Check whether a single line is a directive Metal does not accept.

        Args:
            line: Source line (with or without trailing newline)

        Returns:
            True if the line should be removed
        """
        match = self.directive_pattern.match(line)
        if match:
            return match.group(1) in self.stripped_directives
        return bool(self.precision_pattern.match(line))

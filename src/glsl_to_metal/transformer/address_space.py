"""
Address Space Normalizer - qualifies program-scope declarations for Metal.

Metal requires every program-scope variable to live in the constant
address space. Three top-level declaration shapes are promoted:

    (a) const float3[3] palette = ...   -> constant float3 palette[3] = ...
    (b) const float PI = 3.14159;       -> constant float PI = 3.14159;
    (c) float gain = 2.0;               -> constant float gain = 2.0;

Case (c) turns a GLSL mutable global into an immutable Metal constant.
Shadertoy-style shaders only ever read such globals, but the promotion
does change source semantics, so every occurrence is logged as a warning.

GLSL array constructor initialisers on promoted declarations are turned
into Metal brace initialisers:

    constant float3 palette[3] = float3[3](a, b, c);
    -> constant float3 palette[3] = {a, b, c};

Only lines starting at brace depth 0 are considered; declarations inside
function bodies are never touched.
"""

import re
from typing import List

from ..logging import get_logger
from .source_scanner import brace_depths, find_matching, mask_comments

logger = get_logger(__name__)

# Scalar, vector and matrix tokens in Metal spelling
VALUE_TYPE = r'(?:float|half|int|uint|bool|short|ushort)(?:[234](?:x[234])?)?'


class AddressSpaceNormalizer:
    """
    Promotes top-level declarations into the constant address space.

    Usage:
        normalizer = AddressSpaceNormalizer()
        metal_source = normalizer.transform(source)
    """

    def __init__(self):
        """Initialize declaration patterns."""
        # (a) const <type>[<size>] <name>
        self.const_array_pattern = re.compile(
            r'^(\s*)const\s+(' + VALUE_TYPE + r')\s*\[\s*(\w*)\s*\]\s+(\w+)'
        )
        # (b) const <type> ...
        self.const_pattern = re.compile(r'^(\s*)const\s+(' + VALUE_TYPE + r')\b')
        # (c) <type> <name>[<size>] = ...  (no const)
        self.global_pattern = re.compile(
            r'^(\s*)(' + VALUE_TYPE + r')\s+(\w+)(\s*(?:\[\s*\w*\s*\])?\s*=)'
        )
        self.array_constructor_pattern = re.compile(
            r'(^|\n)(\s*constant\s+' + VALUE_TYPE + r'\s+\w+\s*\[\s*\w*\s*\]\s*=\s*)'
            r'(' + VALUE_TYPE + r')\s*\[\s*\w*\s*\]\s*\('
        )

    def transform(self, source: str) -> str:
        """
        Promote top-level declarations and convert array initialisers.

        Args:
            source: Source with Metal type spellings

        Returns:
            Source with constant-qualified program-scope declarations
        """
        text = self._promote_declarations(source)
        return self._convert_array_initializers(text)

    def _promote_declarations(self, source: str) -> str:
        """Apply cases (a), (b) and (c) to lines starting at depth 0."""
        depths = brace_depths(mask_comments(source))
        lines: List[str] = []
        offset = 0

        for line in source.splitlines(keepends=True):
            start = offset
            offset += len(line)
            if depths[start] == 0:
                line = self._promote_line(line)
            lines.append(line)

        return ''.join(lines)

    def _promote_line(self, line: str) -> str:
        """
        Promote a single top-level line.

        Args:
            line: Source line starting at brace depth 0

        Returns:
            The line, constant-qualified if it matched a declaration shape
        """
        match = self.const_array_pattern.match(line)
        if match:
            indent, type_name, size, name = match.groups()
            return f'{indent}constant {type_name} {name}[{size}]' + line[match.end():]

        match = self.const_pattern.match(line)
        if match:
            indent, type_name = match.groups()
            return f'{indent}constant {type_name}' + line[match.end():]

        match = self.global_pattern.match(line)
        if match:
            indent, type_name, name, rest = match.groups()
            logger.warning(
                f"Promoting mutable global '{name}' to the constant address space"
            )
            return f'{indent}constant {type_name} {name}{rest}' + line[match.end():]

        return line

    def _convert_array_initializers(self, text: str) -> str:
        """Replace "T[N](...)" initialisers of constant arrays with "{...}"."""
        masked = mask_comments(text)
        for match in reversed(list(self.array_constructor_pattern.finditer(masked))):
            open_index = match.end() - 1
            close_index = find_matching(masked, open_index)
            if close_index is None:
                continue
            elements = text[open_index + 1:close_index]
            text = (
                text[:match.start(3)] + '{' + elements + '}' + text[close_index + 1:]
            )
        return text

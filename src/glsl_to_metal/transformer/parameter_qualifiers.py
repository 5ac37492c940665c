"""
Parameter Qualifier Rewriter - translates GLSL parameter qualifiers.

GLSL passes out/inout parameters by copy-in/copy-out; Metal expresses the
same thing with references into the thread address space:

    inout float3 col     -> thread float3 &col
    out float4 fragColor -> thread float4 &fragColor
    in float2 fragCoord  -> float2 fragCoord
    const in float k     -> const float k
    in highp float x     -> float x        (precision qualifiers dropped)
    out float a[3]       -> thread float (&a)[3]

Array parameters need the parenthesised form: "thread float &a[3]"
would declare an array of references, which Metal rejects.

Only parameter lists of function definitions and prototypes are
rewritten; call sites never carry qualifiers. Must run after type
mapping so types are already in Metal spelling.
"""

import re

from ..logging import get_logger
from .source_scanner import IDENTIFIER, find_functions

logger = get_logger(__name__)

# A parameter type token, never one of the precision words
_TYPE = r'(?!(?:highp|mediump|lowp)\b)(' + IDENTIFIER + r'(?:<\w+>)?)'


class ParameterQualifierRewriter:
    """
    Rewrites in/out/inout in function parameter lists.

    Usage:
        rewriter = ParameterQualifierRewriter()
        metal_source = rewriter.transform(source)
    """

    def __init__(self):
        """Initialize qualifier patterns."""
        self.precision_pattern = re.compile(r'\b(?:highp|mediump|lowp)\s+')
        self.reference_pattern = re.compile(
            r'(?<!\w)(?:const\s+)?(?:inout|out)\s+' + _TYPE + r'\s+(' + IDENTIFIER + r')(\s*\[[^\]]*\])?'
        )
        self.input_pattern = re.compile(r'(?<!\w)in\s+(?=' + IDENTIFIER + r')')

    def transform(self, source: str) -> str:
        """
        Rewrite qualifiers in every signature's parameter list.

        Args:
            source: Source with Metal type spellings

        Returns:
            Source with Metal parameter declarations
        """
        text = source
        signatures = find_functions(source)

        # Back to front so earlier spans stay valid
        for signature in reversed(signatures):
            open_index, close_index = signature.params_span
            params = text[open_index + 1:close_index]
            rewritten = self.rewrite_parameter_list(params)
            if rewritten != params:
                logger.debug(f"Rewrote parameter qualifiers of '{signature.name}'")
                text = text[:open_index + 1] + rewritten + text[close_index:]

        return text

    def rewrite_parameter_list(self, params: str) -> str:
        """
        Rewrite one parameter list.

        Args:
            params: Text strictly between a signature's parentheses

        Returns:
            Rewritten parameter list
        """
        params = self.precision_pattern.sub('', params)
        params = self.reference_pattern.sub(self._reference, params)
        return self.input_pattern.sub('', params)

    def _reference(self, match: re.Match) -> str:
        """Thread reference for one out/inout parameter match."""
        type_name, name, array_suffix = match.groups()
        if array_suffix:
            return f'thread {type_name} (&{name}){array_suffix.strip()}'
        return f'thread {type_name} &{name}'

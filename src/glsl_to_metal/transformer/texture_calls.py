"""
Texture Call Rewriter - converts GLSL sampling functions to Metal methods.

GLSL samples through free functions taking a combined sampler; Metal
samples through a method on the texture plus a separate sampler object.
The wrapper boilerplate declares one shared sampler named texSampler.

Rewrites:
    texture(S, C)        -> S.sample(texSampler, C)
    texture2D(S, C)      -> S.sample(texSampler, C)
    texture(S, C, B)     -> S.sample(texSampler, C, bias(B))
    textureLod(S, C, L)  -> S.sample(texSampler, C, level(L))
    texelFetch(S, P, L)  -> S.read(uint2(P), uint(L))
    textureSize(S, L)    -> int2(S.get_width(L), S.get_height(L))

Argument boundaries are found with balanced-parenthesis matching, so
coordinate expressions may nest calls freely. Calls whose parentheses do
not balance, or whose argument count is unexpected, are left untouched.
"""

import re
from typing import List, Optional

from .source_scanner import find_matching, mask_comments, split_arguments

SAMPLER_NAME = 'texSampler'


class TextureCallRewriter:
    """
    Rewrites GLSL texture sampling calls into Metal method calls.

    Usage:
        rewriter = TextureCallRewriter()
        metal_source = rewriter.transform(source)
    """

    def __init__(self, sampler_name: str = SAMPLER_NAME):
        """
        Initialize the rewriter.

        Args:
            sampler_name: Name of the sampler object declared by the wrapper
        """
        self.sampler_name = sampler_name
        self.call_pattern = re.compile(
            r'(?<![\w.])(texture2D|textureLod|texelFetch|textureSize|texture)\s*\('
        )

    def transform(self, source: str) -> str:
        """
        Rewrite every recognised sampling call.

        Calls are processed from the end of the text backwards, so inner
        calls are rewritten before the calls that contain them and earlier
        offsets stay valid.

        Args:
            source: Source with Metal type spellings

        Returns:
            Source with Metal sampling expressions
        """
        text = source
        masked = mask_comments(text)
        matches = list(self.call_pattern.finditer(masked))

        for match in reversed(matches):
            open_index = match.end() - 1
            close_index = find_matching(masked, open_index)
            if close_index is None:
                continue

            args = split_arguments(text[open_index + 1:close_index])
            replacement = self._rewrite_call(match.group(1), args)
            if replacement is None:
                continue

            text = text[:match.start()] + replacement + text[close_index + 1:]
            masked = masked[:match.start()] + mask_comments(replacement) + masked[close_index + 1:]

        return text

    def _rewrite_call(self, function: str, args: List[str]) -> Optional[str]:
        """
        Build the Metal expression for one call.

        Args:
            function: GLSL function name
            args: Call arguments

        Returns:
            Replacement text, or None to leave the call unchanged
        """
        if not args:
            return None
        texture = self._receiver(args[0])

        if function in ('texture', 'texture2D'):
            if len(args) == 2:
                return f'{texture}.sample({self.sampler_name}, {args[1]})'
            if len(args) == 3:
                return f'{texture}.sample({self.sampler_name}, {args[1]}, bias({args[2]}))'
            return None

        if function == 'textureLod' and len(args) == 3:
            return f'{texture}.sample({self.sampler_name}, {args[1]}, level({args[2]}))'

        if function == 'texelFetch' and len(args) == 3:
            return f'{texture}.read(uint2({args[1]}), uint({args[2]}))'

        if function == 'textureSize' and len(args) == 2:
            return f'int2({texture}.get_width({args[1]}), {texture}.get_height({args[1]}))'

        return None

    def _receiver(self, expression: str) -> str:
        """Parenthesise a sampler expression unless it is a plain identifier."""
        if re.fullmatch(r'[A-Za-z_]\w*', expression):
            return expression
        return f'({expression})'

"""
Builtin Function Mapper - renames GLSL builtins whose Metal spelling differs.

Most GLSL math builtins (sin, mix, clamp, smoothstep, fract ...) exist in
Metal under the same name and pass through. Renamed here:

    mod(x, y)       -> fmod(x, y)       (approximation, see below)
    dFdx(p)         -> dfdx(p)
    dFdy(p)         -> dfdy(p)
    inversesqrt(x)  -> rsqrt(x)
    atan(y, x)      -> atan2(y, x)      (two-argument form only)

mod approximation:
    GLSL defines mod(x, y) = x - y * floor(x / y), whose result takes the
    sign of the divisor. Metal's fmod truncates, so its result takes the
    sign of the dividend: mod(-1.0, 3.0) == 2.0 but fmod(-1.0, 3.0) == -1.0.
    Both agree whenever x and y are non-negative, which covers the usual
    "mod(iTime, period)" and "mod(uv * n, 1.0)" uses. With exact_mod the
    call is renamed to glsl_mod instead and the assembler emits a helper
    with the exact GLSL definition.

Renaming is whole-token and idempotent (fmod, dfdx, rsqrt and atan2 are
not themselves source names).
"""

import re
from typing import Dict

from .source_scanner import find_matching, mask_comments, split_arguments

EXACT_MOD_FUNCTION = 'glsl_mod'


class BuiltinFunctionMapper:
    """
    One-to-one builtin renames.

    Usage:
        mapper = BuiltinFunctionMapper()
        metal_source = mapper.transform(source)
    """

    def __init__(self, exact_mod: bool = False):
        """
        Initialize the rename table.

        Args:
            exact_mod: Map mod() to the exact glsl_mod helper instead of fmod()
        """
        self.exact_mod = exact_mod
        self.renames: Dict[str, str] = {
            'mod': EXACT_MOD_FUNCTION if exact_mod else 'fmod',
            'dFdx': 'dfdx',
            'dFdy': 'dfdy',
            'inversesqrt': 'rsqrt',
        }
        names = sorted(self.renames, key=len, reverse=True)
        self.rename_pattern = re.compile(
            r'(?<![\w.])(' + '|'.join(map(re.escape, names)) + r')(\s*\()'
        )
        self.atan_pattern = re.compile(r'(?<![\w.])atan\s*\(')

    def transform(self, source: str) -> str:
        """
        Rename builtin calls.

        Args:
            source: Source text

        Returns:
            Source with Metal builtin names
        """
        text = self.rename_pattern.sub(
            lambda m: self.renames[m.group(1)] + m.group(2), source
        )
        return self._rewrite_two_argument_atan(text)

    def _rewrite_two_argument_atan(self, text: str) -> str:
        """Rename atan(y, x) to atan2(y, x); one-argument atan stays."""
        masked = mask_comments(text)
        for match in reversed(list(self.atan_pattern.finditer(masked))):
            open_index = match.end() - 1
            close_index = find_matching(masked, open_index)
            if close_index is None:
                continue
            if len(split_arguments(masked[open_index + 1:close_index])) != 2:
                continue
            # Only the name changes, so offsets before this match stay valid
            text = text[:match.start()] + 'atan2' + text[match.start() + 4:]
        return text

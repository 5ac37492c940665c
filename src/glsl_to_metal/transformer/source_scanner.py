"""
Source Scanner - structural helpers shared by the transformer stages.

The transpiler is deliberately pattern based rather than grammar based.
This module provides the few structural primitives the patterns need:

1. Comment masking: comments are blanked out (same length) so regexes and
   brace counting never see braces or identifiers inside them
2. Balanced-delimiter matching for (), [] and {}
3. Top-level argument splitting for call expressions
4. Function signature discovery (definitions and prototypes)

Design:
- All offsets refer to the original text; masking preserves length
- Nothing here raises on malformed input, unbalanced constructs yield None
- Pure functions, no state across calls

Usage:
    program = SourceProgram(glsl_source)
    for signature in program.functions:
        print(signature.name, signature.body_span)
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


IDENTIFIER = r'[A-Za-z_]\w*'

# Words that can sit in front of "(" looking like a return type or a name
# but never start a function definition
KEYWORDS = {
    'if', 'else', 'for', 'while', 'do', 'switch', 'case', 'default',
    'return', 'break', 'continue', 'discard', 'struct', 'const',
    'constant', 'uniform', 'in', 'out', 'inout', 'thread', 'device',
    'layout', 'precision', 'highp', 'mediump', 'lowp', 'sizeof',
}

# Qualifier words that may precede a parameter type
PARAMETER_QUALIFIERS = {
    'const', 'in', 'out', 'inout', 'thread', 'device', 'constant',
    'highp', 'mediump', 'lowp',
}

_OPENERS = {'(': ')', '[': ']', '{': '}'}
_CLOSERS = {')', ']', '}'}

# <return type> <name> (
# Return type may be a template spelling such as texture2d<float>
_SIGNATURE_PATTERN = re.compile(
    r'(?<![\w.])(' + IDENTIFIER + r'(?:\s*<\s*\w+\s*>)?)\s+(' + IDENTIFIER + r')\s*\('
)


def mask_comments(text: str) -> str:
    """
    Replace every comment character with a space, keeping newlines.

    The result has the same length as the input so offsets found in the
    masked text are valid in the original.

    Args:
        text: Source text

    Returns:
        Text with // and /* */ comments blanked out
    """
    out = []
    i = 0
    n = len(text)
    while i < n:
        if text.startswith('//', i):
            end = text.find('\n', i)
            if end == -1:
                end = n
            out.append(' ' * (end - i))
            i = end
        elif text.startswith('/*', i):
            end = text.find('*/', i + 2)
            end = n if end == -1 else end + 2
            out.append(''.join('\n' if c == '\n' else ' ' for c in text[i:end]))
            i = end
        else:
            out.append(text[i])
            i += 1
    return ''.join(out)


def find_matching(text: str, open_index: int) -> Optional[int]:
    """
    Find the index of the delimiter closing the one at open_index.

    Counts nesting of the same delimiter kind only, so "{ ( }" is
    treated as balanced braces. Comments must already be masked.

    Args:
        text: Comment-masked source text
        open_index: Index of an opening '(', '[' or '{'

    Returns:
        Index of the matching closing delimiter, or None if it never closes
    """
    if open_index < 0 or open_index >= len(text):
        return None
    open_char = text[open_index]
    close_char = _OPENERS.get(open_char)
    if close_char is None:
        return None

    depth = 0
    for i in range(open_index, len(text)):
        c = text[i]
        if c == open_char:
            depth += 1
        elif c == close_char:
            depth -= 1
            if depth == 0:
                return i
    return None


def split_arguments(text: str) -> List[str]:
    """
    Split an argument list on top-level commas.

    Args:
        text: Text strictly between a call's parentheses

    Returns:
        Stripped argument strings; empty list for an empty argument list
    """
    if not text.strip():
        return []

    args = []
    depth = 0
    start = 0
    for i, c in enumerate(text):
        if c in _OPENERS:
            depth += 1
        elif c in _CLOSERS:
            depth -= 1
        elif c == ',' and depth == 0:
            args.append(text[start:i].strip())
            start = i + 1
    args.append(text[start:].strip())
    return args


def brace_depths(text: str) -> List[int]:
    """
    Compute the brace nesting depth in effect at every offset.

    Args:
        text: Comment-masked source text

    Returns:
        List with len(text) + 1 entries; entry i is the depth before text[i]
    """
    depths = [0] * (len(text) + 1)
    depth = 0
    for i, c in enumerate(text):
        depths[i] = depth
        if c == '{':
            depth += 1
        elif c == '}' and depth > 0:
            depth -= 1
    depths[len(text)] = depth
    return depths


def skip_whitespace(text: str, index: int) -> int:
    """Return the first non-whitespace index at or after index."""
    while index < len(text) and text[index].isspace():
        index += 1
    return index


# ============================================================================
# Signatures
# ============================================================================

@dataclass(frozen=True)
class Parameter:
    """
    One parameter of a function signature.

    Examples:
        "in vec2 fragCoord"        -> qualifiers=('in',), type_name='vec2'
        "thread float4 &fragColor" -> qualifiers=('thread',), is_reference=True
    """
    type_name: str
    name: str
    qualifiers: Tuple[str, ...] = ()
    is_reference: bool = False
    array_suffix: str = ''

    @property
    def is_output(self) -> bool:
        """True for out/inout parameters in either GLSL or MSL spelling."""
        return (
            self.is_reference
            or 'out' in self.qualifiers
            or 'inout' in self.qualifiers
        )


def parse_parameter(text: str) -> Optional[Parameter]:
    """
    Parse a single parameter declaration.

    Args:
        text: Parameter text such as "inout float3 col" or "float"

    Returns:
        Parameter, or None for "void" and unparseable text
    """
    text = text.strip()
    if not text or text == 'void':
        return None

    is_reference = '&' in text
    # "thread float (&a)[3]" declares a reference to an array
    text = re.sub(r'[&()]', ' ', text)

    array_suffix = ''
    array_match = re.search(r'(\[[^\]]*\])\s*$', text)
    if array_match:
        array_suffix = array_match.group(1)
        text = text[:array_match.start()]

    # Keep template arguments attached to their type token
    text = re.sub(r'\s*<\s*(\w+)\s*>', r'<\1>', text)
    tokens = text.split()
    if len(tokens) < 2:
        # Unnamed parameter, only legal in prototypes
        if len(tokens) == 1:
            return Parameter(type_name=tokens[0], name='', is_reference=is_reference,
                             array_suffix=array_suffix)
        return None

    qualifiers = tuple(t for t in tokens[:-2] if t in PARAMETER_QUALIFIERS)
    return Parameter(
        type_name=tokens[-2],
        name=tokens[-1],
        qualifiers=qualifiers,
        is_reference=is_reference,
        array_suffix=array_suffix,
    )


@dataclass(frozen=True)
class FunctionSignature:
    """
    A function definition or prototype found in program text.

    Attributes:
        name: Function name
        return_type: Return-type token
        parameters: Ordered parameter list
        start: Offset of the return-type token
        name_start: Offset of the function name, which may sit on a later
            line than the return type
        params_span: (open, close) offsets of the parameter parentheses
        body_span: (open, close) offsets of the body braces, None for prototypes
    """
    name: str
    return_type: str
    parameters: Tuple[Parameter, ...]
    start: int
    name_start: int
    params_span: Tuple[int, int]
    body_span: Optional[Tuple[int, int]] = None

    @property
    def is_definition(self) -> bool:
        return self.body_span is not None

    @property
    def end(self) -> int:
        """Offset just past the closing brace (or the ';' of a prototype)."""
        if self.body_span is not None:
            return self.body_span[1] + 1
        return self.params_span[1] + 1

    def body(self, text: str) -> str:
        """Body text including its braces."""
        if self.body_span is None:
            return ''
        return text[self.body_span[0]:self.body_span[1] + 1]

    def parameter_names(self) -> List[str]:
        return [p.name for p in self.parameters]


def find_functions(text: str) -> List[FunctionSignature]:
    """
    Discover top-level function definitions and prototypes.

    A candidate is "<type> <name>(" at brace depth 0 whose parameter
    parentheses balance and are followed by '{' (definition) or ';'
    (prototype). Bodies are located by brace counting from the opening
    brace, so nesting depth is unlimited.

    Args:
        text: Source text (comments allowed)

    Returns:
        Signatures in source order
    """
    masked = mask_comments(text)
    depths = brace_depths(masked)
    signatures = []

    for match in _SIGNATURE_PATTERN.finditer(masked):
        return_type, name = match.group(1), match.group(2)
        if return_type in KEYWORDS or name in KEYWORDS:
            continue
        if depths[match.start()] != 0:
            continue

        params_open = match.end() - 1
        params_close = find_matching(masked, params_open)
        if params_close is None:
            continue

        after = skip_whitespace(masked, params_close + 1)
        if after >= len(masked):
            continue

        body_span = None
        if masked[after] == '{':
            body_close = find_matching(masked, after)
            if body_close is None:
                continue
            body_span = (after, body_close)
        elif masked[after] != ';':
            continue

        raw_params = split_arguments(masked[params_open + 1:params_close])
        parameters = tuple(
            p for p in (parse_parameter(raw) for raw in raw_params) if p is not None
        )

        signatures.append(FunctionSignature(
            name=name,
            return_type=re.sub(r'\s+', '', return_type),
            parameters=parameters,
            start=match.start(),
            name_start=match.start(2),
            params_span=(params_open, params_close),
            body_span=body_span,
        ))

    return signatures


@dataclass
class SourceProgram:
    """
    Program text plus lazily discovered function signatures.

    The signature list is computed on first access and cached; a
    SourceProgram is never mutated after construction, stages create a
    new one for each new text.
    """
    text: str
    _functions: Optional[List[FunctionSignature]] = field(default=None, repr=False)

    @property
    def functions(self) -> List[FunctionSignature]:
        if self._functions is None:
            self._functions = find_functions(self.text)
        return self._functions

    @property
    def masked(self) -> str:
        return mask_comments(self.text)

    def definitions(self) -> List[FunctionSignature]:
        return [f for f in self.functions if f.is_definition]

    def signatures_named(self, name: str) -> List[FunctionSignature]:
        return [f for f in self.functions if f.name == name]

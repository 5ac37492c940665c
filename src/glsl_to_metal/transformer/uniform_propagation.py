"""
Uniform Usage Propagator - threads ambient values into helper functions.

In Shadertoy-style GLSL every function can read iResolution, iTime and
iChannel0 as globals. In the Metal wrapper those values only exist as
locals/arguments of the fragment function, so any helper that uses one
must receive it as an explicit parameter, and every call to that helper
must pass it along.

Algorithm, run once per ambient value:

Phase 1 - Discovery:
    For every function definition except the entry point, take the body
    span (balanced-brace counting from the opening brace) and check
    whether it mentions the ambient identifier as a whole token. Functions
    that already declare a parameter with that name are skipped.

Phase 2 - Rewrite:
    For each direct user, only the overloads that need the value are
    rewritten. Overloads are told apart by parameter count:
    a) every definition whose own body mentions the identifier, every
       other definition with the same parameter count, and every
       prototype with that count gain "<type> <name>"
    b) every call with that argument count gains "<name>". A call is any
       "<func>(" occurrence that is not the name of a definition or
       prototype and not a member call ("obj.func(")
    Calls with another argument count keep resolving to the untouched
    overloads. If threading makes an overload collide with an existing
    one of the same length, a warning is logged and the host compiler
    reports the ambiguity.

Afterwards each rewritten overload's parameter count matches the
argument count at each of its call sites.

Single hop vs transitive:
    Discovery only sees direct textual use. If main -> outer -> inner and
    only inner mentions iTime, one pass rewrites inner and the call inside
    outer, but outer itself never receives iTime. By default a single pass
    is made and such callers are reported as warnings. With
    transitive=True discovery and rewrite are repeated until no new
    users appear; every function is still rewritten at most once per
    ambient value.
"""

import re
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..ambient import AMBIENT_VALUES, AmbientValue
from ..logging import get_logger
from .entry_point import is_entry_signature
from .source_scanner import SourceProgram, find_matching, split_arguments

logger = get_logger(__name__)

UniformUsageSet = Dict[str, Set[str]]


class UniformUsagePropagator:
    """
    Adds ambient values as trailing parameters and call arguments.

    Usage:
        propagator = UniformUsagePropagator()
        metal_source = propagator.transform(source)

        # Multi-hop call chains
        propagator = UniformUsagePropagator(transitive=True)
    """

    def __init__(
        self,
        ambient_values: Iterable[AmbientValue] = AMBIENT_VALUES,
        transitive: bool = False,
    ):
        """
        Initialize the propagator.

        Args:
            ambient_values: Values to thread, processed in order
            transitive: Iterate to a fixed point over the call graph
        """
        self.ambient_values = tuple(ambient_values)
        self.transitive = transitive

    def transform(self, source: str) -> str:
        """
        Thread every ambient value through the helpers that use it.

        Args:
            source: Source after type, texture, builtin, address space
                and qualifier rewriting

        Returns:
            Source with explicit ambient parameters and arguments
        """
        text = source
        for value in self.ambient_values:
            text = self.propagate(text, value)
        return text

    # ========================================================================
    # Discovery
    # ========================================================================

    def discover(self, text: str, identifier: str) -> Set[str]:
        """
        Find functions whose own body directly mentions an identifier.

        Args:
            text: Program text
            identifier: Ambient identifier, e.g. 'iTime'

        Returns:
            Names of non-entry functions that use the identifier and do not
            already declare a parameter with that name
        """
        program = SourceProgram(text)
        masked = program.masked
        pattern = _identifier_pattern(identifier)

        users = set()
        for signature in program.definitions():
            if is_entry_signature(signature):
                continue
            if identifier in signature.parameter_names():
                continue
            open_index, close_index = signature.body_span
            if pattern.search(masked, open_index, close_index + 1):
                users.add(signature.name)
        return users

    def discover_usage(self, text: str) -> UniformUsageSet:
        """
        Map each function to the ambient identifiers its body mentions.

        Args:
            text: Program text

        Returns:
            Function name -> set of ambient identifiers used directly
        """
        usage: UniformUsageSet = {}
        for value in self.ambient_values:
            for name in self.discover(text, value.name):
                usage.setdefault(name, set()).add(value.name)
        return usage

    def unthreaded_callers(self, text: str, value: AmbientValue) -> Set[str]:
        """
        Functions that mention the value but were left without it.

        After a single-hop pass these are exactly the callers of rewritten
        helpers: their bodies now pass the identifier along without
        having it in scope.
        """
        return self.discover(text, value.name)

    # ========================================================================
    # Rewrite
    # ========================================================================

    def propagate(self, text: str, value: AmbientValue) -> str:
        """
        Run discovery and rewrite for one ambient value.

        Args:
            text: Program text
            value: Ambient value to thread

        Returns:
            Rewritten program text
        """
        rewritten: Set[str] = set()

        while True:
            users = self.discover(text, value.name) - rewritten
            if not users:
                break
            for name in sorted(users):
                text = self.rewrite_function(text, name, value)
                logger.debug(f"Threaded {value.name} into '{name}'")
            rewritten |= users
            if not self.transitive:
                break

        if not self.transitive:
            for name in sorted(self.unthreaded_callers(text, value)):
                logger.warning(
                    f"'{name}' calls a helper that needs {value.name} but does not "
                    f"use it directly; multi-hop chains are not threaded "
                    f"(enable transitive_uniforms)"
                )

        return text

    def rewrite_function(self, text: str, name: str, value: AmbientValue) -> str:
        """
        Append the ambient value to one function's signatures and calls.

        Args:
            text: Program text
            name: Function name
            value: Ambient value to append

        Returns:
            Rewritten program text
        """
        program = SourceProgram(text)
        masked = program.masked
        signatures = program.signatures_named(name)
        pattern = _identifier_pattern(value.name)

        arities: Set[int] = set()
        for signature in signatures:
            if not signature.is_definition or value.name in signature.parameter_names():
                continue
            open_index, close_index = signature.body_span
            if pattern.search(masked, open_index, close_index + 1):
                arities.add(len(signature.parameters))
        if not arities:
            return text

        untouched = {
            len(s.parameters) for s in signatures if len(s.parameters) not in arities
        }
        for arity in sorted(arities):
            if arity + 1 in untouched:
                logger.warning(
                    f"Threading {value.name} into '{name}' gives it {arity + 1} "
                    f"parameters, the same as another overload; calls may become "
                    f"ambiguous"
                )

        edits: List[Tuple[int, int, str]] = []
        for signature in signatures:
            if len(signature.parameters) not in arities:
                continue
            if value.name in signature.parameter_names():
                continue
            open_index, close_index = signature.params_span
            if signature.parameters:
                edits.append((close_index, close_index, f', {value.parameter}'))
            else:
                # "()" or "(void)"
                edits.append((open_index + 1, close_index, value.parameter))

        name_starts = {s.name_start for s in program.functions}
        for open_index, close_index, args in _calls(masked, name, name_starts):
            if len(args) not in arities:
                continue
            if args:
                edits.append((close_index, close_index, f', {value.name}'))
            else:
                edits.append((open_index + 1, close_index, value.name))

        for start, end, insert in sorted(edits, reverse=True):
            text = text[:start] + insert + text[end:]
        return text


def _identifier_pattern(identifier: str):
    """Whole-token pattern that ignores member accesses like s.iTime."""
    return re.compile(r'(?<![\w.])' + re.escape(identifier) + r'\b')


def _calls(masked: str, name: str, name_starts: Set[int]) -> List[Tuple[int, int, List[str]]]:
    """
    Locate every call expression invoking a function.

    Occurrences at a signature's name offset are declarations, whatever
    line their return type sits on.

    Args:
        masked: Comment-masked program text
        name: Function name
        name_starts: Name offsets of every discovered definition and prototype

    Returns:
        (open paren, close paren, arguments) per call, in source order
    """
    pattern = re.compile(r'(?<![\w.])' + re.escape(name) + r'\s*\(')
    calls = []
    for match in pattern.finditer(masked):
        if match.start() in name_starts:
            continue
        open_index = match.end() - 1
        close_index: Optional[int] = find_matching(masked, open_index)
        if close_index is None:
            continue
        calls.append((open_index, close_index, split_arguments(masked[open_index + 1:close_index])))
    return calls


def call_arities(text: str, name: str) -> List[int]:
    """
    Argument counts of every call to a function, in source order.

    Args:
        text: Program text
        name: Function name

    Returns:
        One entry per call expression invoking name
    """
    program = SourceProgram(text)
    name_starts = {s.name_start for s in program.functions}
    return [len(args) for _, _, args in _calls(program.masked, name, name_starts)]

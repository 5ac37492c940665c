"""
Entry Point Extractor - splits a shader around its mainImage function.

The entry contract is

    void <name>(out vec4 <color>, in vec2 <coord>)

matched structurally in either GLSL spelling or the already rewritten
Metal spelling (void mainImage(thread float4 &fragColor, float2 fragCoord)).
The name does not matter; when several functions match, mainImage wins.

The source is split into:
- preamble: everything before the entry function
- body: the text strictly between the entry's matching braces
- trailing: everything after the entry's closing brace

Inside the body every bare "return;" becomes "return <color>;" because the
Metal wrapper returns the colour instead of writing an out parameter.

When no entry function exists the whole source becomes the preamble and a
passthrough body samples the bound input texture at the fragment
coordinate.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from ..logging import get_logger
from .source_scanner import FunctionSignature, find_functions
from .texture_calls import SAMPLER_NAME

logger = get_logger(__name__)

ENTRY_NAME = 'mainImage'
DEFAULT_COLOR_NAME = 'fragColor'
DEFAULT_COORD_NAME = 'fragCoord'

COLOR_TYPES = {'vec4', 'float4'}
COORD_TYPES = {'vec2', 'float2'}


def is_entry_signature(signature: FunctionSignature) -> bool:
    """
    Check whether a signature matches the entry contract.

    Args:
        signature: Discovered function signature

    Returns:
        True for a void definition taking an output colour and an input
        coordinate
    """
    if not signature.is_definition or signature.return_type != 'void':
        return False
    if len(signature.parameters) != 2:
        return False
    color, coord = signature.parameters
    return (
        color.type_name in COLOR_TYPES
        and color.is_output
        and coord.type_name in COORD_TYPES
        and not coord.is_output
    )


@dataclass(frozen=True)
class EntryPoint:
    """The function matching the entry contract and its parameter names."""
    signature: FunctionSignature
    color_name: str
    coord_name: str


@dataclass(frozen=True)
class ExtractedEntry:
    """
    Source split around the entry function.

    Attributes:
        preamble: Declarations and helpers before the entry
        body: Entry body with early returns rewritten
        trailing: Text after the entry's closing brace
        color_name: Name of the output colour variable
        coord_name: Name of the input coordinate variable
        found: False when the passthrough body was substituted
    """
    preamble: str
    body: str
    trailing: str = ''
    color_name: str = DEFAULT_COLOR_NAME
    coord_name: str = DEFAULT_COORD_NAME
    found: bool = True


class EntryPointExtractor:
    """
    Locates the entry function and splits the program around it.

    Usage:
        extractor = EntryPointExtractor()
        extracted = extractor.extract(metal_source)
    """

    def __init__(self, input_texture: str = 'iChannel0', sampler_name: str = SAMPLER_NAME):
        """
        Initialize the extractor.

        Args:
            input_texture: Texture sampled by the passthrough body
            sampler_name: Sampler object declared by the wrapper
        """
        self.input_texture = input_texture
        self.sampler_name = sampler_name
        self.return_pattern = re.compile(r'\breturn\s*;')

    def find(self, source: str) -> Optional[EntryPoint]:
        """
        Find the entry function.

        Args:
            source: Program text

        Returns:
            EntryPoint, or None if no function matches the contract
        """
        candidates: List[FunctionSignature] = [
            s for s in find_functions(source) if is_entry_signature(s)
        ]
        if not candidates:
            return None

        named = [s for s in candidates if s.name == ENTRY_NAME]
        signature = named[0] if named else candidates[0]
        color, coord = signature.parameters
        return EntryPoint(signature=signature, color_name=color.name, coord_name=coord.name)

    def extract(self, source: str) -> ExtractedEntry:
        """
        Split the program into preamble, entry body and trailing text.

        Args:
            source: Program text after all rewriting stages

        Returns:
            ExtractedEntry; found is False when the fallback body is used
        """
        entry = self.find(source)
        if entry is None:
            logger.warning(
                f"No {ENTRY_NAME}(out vec4, in vec2) entry point found, "
                f"using passthrough body"
            )
            return ExtractedEntry(
                preamble=source,
                body=self.passthrough_body(DEFAULT_COLOR_NAME, DEFAULT_COORD_NAME),
                found=False,
            )

        signature = entry.signature
        open_index, close_index = signature.body_span
        body = self.rewrite_early_returns(source[open_index + 1:close_index], entry.color_name)

        logger.debug(f"Extracted entry point '{signature.name}'")
        return ExtractedEntry(
            preamble=source[:signature.start],
            body=body,
            trailing=source[close_index + 1:],
            color_name=entry.color_name,
            coord_name=entry.coord_name,
        )

    def rewrite_early_returns(self, body: str, color_name: str) -> str:
        """
        Make every bare return yield the output colour.

        Args:
            body: Entry body text
            color_name: Output colour parameter name

        Returns:
            Body with "return;" replaced by "return <color_name>;"
        """
        return self.return_pattern.sub(f'return {color_name};', body)

    def passthrough_body(self, color_name: str, coord_name: str) -> str:
        """Body that copies the input texture straight through."""
        return (
            f'{color_name} = {self.input_texture}.sample('
            f'{self.sampler_name}, {coord_name} / iResolution);'
        )

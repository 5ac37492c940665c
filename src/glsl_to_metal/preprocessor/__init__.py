"""Directive handling ahead of the text transformation stages."""

from .directive_stripper import DirectiveStripper

__all__ = ['DirectiveStripper']

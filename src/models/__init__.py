"""
Models package for htmlprocessor

Contains data structures and type definitions for the processing pipeline.
"""

from .state import ProgramState, pipeline
from .directives import DirectiveSpec, ATTRIBUTE_BLOCK, BUILTIN_BLOCK_TYPES
from .scanner import Directive, TextSpan, DirectiveSpan, Span
from .context import ProcessorOptions, TemplateSettings, ProcessingContext, options_coerce

__all__ = [
    "ProgramState",
    "pipeline",
    "DirectiveSpec",
    "ATTRIBUTE_BLOCK",
    "BUILTIN_BLOCK_TYPES",
    "Directive",
    "TextSpan",
    "DirectiveSpan",
    "Span",
    "ProcessorOptions",
    "TemplateSettings",
    "ProcessingContext",
    "options_coerce",
]

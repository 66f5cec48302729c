"""
htmlprocessor - Build-time HTML preprocessor

Rewrites HTML according to build comment blocks for a requested environment.
"""

__version__ = "1.0.0"
__author__ = "Rudolph Pienaar"
__email__ = "rudolph.pienaar@gmail.com"

from .scanner import Scanner
from .processor import HtmlProcessor, html_process, text_process
from .directives import BlockRegistry
from .interpolate import Interpolator
from .log import LOG, state_connectToLogger
from .errors import (
    ProcessingError,
    UnterminatedBlockError,
    UnknownBlockTypeError,
    IncludeNotFoundError,
    CircularIncludeError,
    IncludeDepthError,
    CustomHandlerLoadError,
    InterpolationError,
)

__all__ = [
    "Scanner",
    "HtmlProcessor",
    "html_process",
    "text_process",
    "BlockRegistry",
    "Interpolator",
    "LOG",
    "state_connectToLogger",
    "ProcessingError",
    "UnterminatedBlockError",
    "UnknownBlockTypeError",
    "IncludeNotFoundError",
    "CircularIncludeError",
    "IncludeDepthError",
    "CustomHandlerLoadError",
    "InterpolationError",
    "__version__",
]

"""
htmlprocessor - Build-time HTML preprocessor

Scans HTML for build comment blocks and rewrites each file for a requested
environment: conditional sections, includes, asset references, and a final
template interpolation pass.
"""

__version__ = "1.0.0"
__author__ = "Rudolph Pienaar"
__email__ = "rudolph.pienaar@gmail.com"

from .lib import (
    Scanner,
    HtmlProcessor,
    html_process,
    BlockRegistry,
    LOG,
    state_connectToLogger,
    ProcessingError,
)

__all__ = [
    "Scanner",
    "HtmlProcessor",
    "html_process",
    "BlockRegistry",
    "LOG",
    "state_connectToLogger",
    "ProcessingError",
    "__version__",
]

"""
Error taxonomy for htmlprocessor

Every failure while processing one file is a ProcessingError subclass. All of
them are fatal to that file: the caller receives either the complete
transformed document or one of these exceptions, never partial output.
"""

from pathlib import Path
from typing import Optional, Sequence, Union


class ProcessingError(Exception):
    """
    Base class for errors raised while processing a single file

    Attributes:
        message: Human-readable error description
        filepath: File being processed when the error occurred (None for strings)
        line: 1-based source line of the offending directive, if known
        directive_text: Verbatim opening marker of the offending directive

    Example output:
        UnterminatedBlockError: Block 'remove' is never closed
          File: src/index.html, line 3
          Directive: <!-- build:remove(dev) -->
    """

    def __init__(
        self,
        message: str,
        filepath: Optional[Union[str, Path]] = None,
        line: Optional[int] = None,
        directive_text: Optional[str] = None,
    ) -> None:
        self.message = message
        self.filepath = str(filepath) if filepath is not None else None
        self.line = line
        self.directive_text = directive_text
        super().__init__(self.report_format())

    def report_format(self) -> str:
        """Render message with file, line and directive context"""
        parts = [self.message]

        location = []
        if self.filepath:
            location.append(f"File: {self.filepath}")
        if self.line is not None:
            location.append(f"line {self.line}")
        if location:
            parts.append("  " + ", ".join(location))

        if self.directive_text:
            parts.append(f"  Directive: {self.directive_text.strip()}")

        return "\n".join(parts)


class UnterminatedBlockError(ProcessingError):
    """Opening build marker without a matching end marker"""


class UnknownBlockTypeError(ProcessingError):
    """Directive names a block type that is not registered"""


class IncludeNotFoundError(ProcessingError):
    """Referenced include file does not exist"""

    def __init__(self, requested: str, **kwargs) -> None:
        self.requested = requested
        including = kwargs.get("filepath") or "<string>"
        super().__init__(
            f"Include file '{requested}' not found (included from {including})",
            **kwargs,
        )


class CircularIncludeError(ProcessingError):
    """File includes itself through a chain of recursive includes"""

    def __init__(self, chain: Sequence[str], **kwargs) -> None:
        self.chain = list(chain)
        super().__init__(f"Circular include detected: {' -> '.join(self.chain)}", **kwargs)


class IncludeDepthError(ProcessingError):
    """Recursive includes nested deeper than the configured limit"""


class CustomHandlerLoadError(ProcessingError):
    """Custom block type source could not be loaded or has the wrong shape"""

    def __init__(self, message: str, source: Union[str, Path], **kwargs) -> None:
        self.source = str(source)
        super().__init__(f"{message}: {self.source}", **kwargs)


class InterpolationError(ProcessingError):
    """
    Template expression could not be resolved (strict mode only)

    Interpolation runs over the assembled document, after blocks are removed
    and includes expanded, so the location is a line of that output, not of
    the source file.

    Attributes:
        output_line: 1-based line of the placeholder in the assembled output
    """

    def __init__(self, message: str, output_line: Optional[int] = None, **kwargs) -> None:
        self.output_line = output_line
        super().__init__(message, **kwargs)

    def report_format(self) -> str:
        """Render message with the output line instead of a source line"""
        report = super().report_format()
        if self.output_line is not None:
            report += f"\n  Output line: {self.output_line} (after build blocks are resolved)"
        return report

"""
Scanner-specific data models

Type-safe structures produced by the directive scanner.
"""

from dataclasses import dataclass, field
from typing import List, Union


@dataclass
class Directive:
    """
    One matched build block: opening marker, verbatim body, closing marker

    Attributes:
        block_type: Block type name (e.g., "remove", "include", "[href]")
        targets: Environment names the block is gated on (may be empty)
        params: Parameter string (parenthesised text, or trailing value)
        body_lines: Body text split into lines, line endings kept
        start_line: 1-based line of the opening marker
        end_line: 1-based line of the closing marker
        open_marker: Opening marker text exactly as written in the source
        close_marker: Closing marker text exactly as written in the source

    Example:
        For source "<!-- build:remove(dev) -->\\nDEV\\n<!-- /build -->":
        Directive(
            block_type="remove",
            targets=["dev"],
            params="dev",
            body_lines=["\\n", "DEV\\n"],
            start_line=1,
            end_line=3,
            ...
        )
    """
    block_type: str
    targets: List[str]
    params: str
    body_lines: List[str]
    start_line: int
    end_line: int
    open_marker: str = ""
    close_marker: str = ""

    @property
    def body(self) -> str:
        """Body text with original line endings"""
        return "".join(self.body_lines)

    @property
    def body_line_offset(self) -> int:
        """Number of file lines before the first body line"""
        return self.start_line - 1 + self.open_marker.count("\n")

    @property
    def text(self) -> str:
        """Complete block as it appears in the source"""
        return f"{self.open_marker}{self.body}{self.close_marker}"


@dataclass
class TextSpan:
    """Literal source text between directives"""
    text: str


@dataclass
class DirectiveSpan:
    """
    Position of a directive within the scanned source

    Attributes:
        directive: The matched block
        start: Character offset of the opening marker
        end: Character offset just past the closing marker
    """
    directive: Directive
    start: int = field(default=0)
    end: int = field(default=0)


Span = Union[TextSpan, DirectiveSpan]

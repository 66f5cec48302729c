"""
Scanner for build comment directives

Splits HTML source into literal text spans and directive blocks.

A directive opens with a comment naming the marker token and a block type,
and closes with an end marker:

    <!-- build:remove(dev) -->
    <script src="debug.js"></script>
    <!-- /build -->

Key features:
- Marker anchoring: only comments starting with "<marker>:" open a block, so
  conditional IE comments and ordinary comments pass through as text
- Depth tracking: nested blocks pair with their own end markers and stay in
  the outer block's verbatim body
- Line number tracking for error reporting

Example:
    >>> scanner = Scanner("<p>a</p><!-- build:remove(dev) -->b<!-- /build -->")
    >>> spans = scanner.scan()
    >>> spans[1].directive.block_type
    'remove'
    >>> spans[1].directive.targets
    ['dev']
"""

import re
from pathlib import Path
from typing import List, Optional, Pattern, Union

from ..models.scanner import Directive, DirectiveSpan, Span, TextSpan
from .environment import targets_parse
from .errors import UnterminatedBlockError
from .log import LOG


def markers_compile(comment_marker: str) -> Pattern[str]:
    """
    Build the token pattern matching opening and closing markers

    Opening:  <!-- marker:type[:targets][(params)] [value] -->
    Closing:  <!-- /marker -->  or  <!-- endmarker -->

    Args:
        comment_marker: Marker token (e.g., "build", "process")

    Returns:
        Compiled pattern with an "open" or "close" group per match
    """
    marker = re.escape(comment_marker)
    open_marker = (
        r'(?P<open><!--\s*' + marker + r':'
        r'(?P<type>\[[\w-]+\]|[\w-]+)'
        r'(?::(?P<targets>[\w|,-]+))?'
        r'(?:[ \t]*\((?P<params>[^)\n]*)\))?'
        r'(?:[ \t]+(?P<value>(?:(?!-->)\S)+))?'
        r'\s*-->)'
    )
    close_marker = r'(?P<close><!--\s*(?:/|end)' + marker + r'\s*-->)'
    return re.compile(open_marker + '|' + close_marker)


class Scanner:
    """
    Scanner for build comment directives

    Handles:
    - Custom marker tokens (commentMarker option)
    - Nested directives (captured verbatim in the enclosing body)
    - Stray end markers (kept as literal text)
    - Error reporting with line numbers
    """

    def __init__(
        self,
        source: str,
        comment_marker: str = "build",
        registry=None,
        filepath: Optional[Union[str, Path]] = None,
        line_offset: int = 0,
    ) -> None:
        """
        Initialize scanner with source text

        Args:
            source: Raw HTML source
            comment_marker: Marker token that opens directives
            registry: Optional BlockRegistry, consulted to find target-gated
                      types whose params double as their target list
            filepath: Source file path, for error reporting only
            line_offset: Lines preceding source in its file (nonzero when
                         scanning a block body), added to reported lines
        """
        self.source = source
        self.comment_marker = comment_marker
        self.filepath = filepath
        self.line_offset = line_offset
        self.token_rx = markers_compile(comment_marker)

        if registry is None:
            from .directives import BlockRegistry
            registry = BlockRegistry()
        self.registry = registry

    def scan(self) -> List[Span]:
        """
        Split source into text and directive spans

        Returns:
            Ordered spans; concatenating TextSpan.text and the source text of
            each DirectiveSpan reproduces the input exactly

        Raises:
            UnterminatedBlockError: If an opening marker has no end marker
        """
        spans: List[Span] = []
        open_stack: List[re.Match] = []
        position = 0

        for token in self.token_rx.finditer(self.source):
            if token.group('open'):
                open_stack.append(token)
                continue

            if not open_stack:
                LOG(f"Stray end marker at line {self.lineNumber_get(token.start())}", level=3)
                continue

            opening = open_stack.pop()
            if open_stack:
                # Inner block; stays in the outer body
                continue

            if opening.start() > position:
                spans.append(TextSpan(self.source[position:opening.start()]))

            directive = self.directive_build(opening, token)
            spans.append(DirectiveSpan(directive, opening.start(), token.end()))
            LOG(
                f"Directive '{directive.block_type}' lines {directive.start_line}-{directive.end_line}",
                level=3,
            )
            position = token.end()

        if open_stack:
            opening = open_stack[0]
            raise UnterminatedBlockError(
                f"Block '{opening.group('type')}' is never closed",
                filepath=self.filepath,
                line=self.lineNumber_get(opening.start()),
                directive_text=opening.group(0),
            )

        if position < len(self.source):
            spans.append(TextSpan(self.source[position:]))

        return spans

    def directive_build(self, opening: re.Match, closing: re.Match) -> Directive:
        """
        Create a Directive from its opening and closing marker matches

        Params come from the parenthesised group, falling back to the bare
        trailing value. Targets come from the ":targets" segment; for
        target-gated types without one, params are the target list.
        """
        block_type = opening.group('type')
        params = opening.group('params')
        if params is None:
            params = opening.group('value') or ''
        params = params.strip()

        targets = targets_parse(opening.group('targets'))
        if opening.group('targets') is None:
            spec = self.registry.spec_get(block_type)
            if spec is not None and spec.target_gated:
                targets = targets_parse(params)

        body = self.source[opening.end():closing.start()]

        return Directive(
            block_type=block_type,
            targets=targets,
            params=params,
            body_lines=body.splitlines(keepends=True),
            start_line=self.lineNumber_get(opening.start()),
            end_line=self.lineNumber_get(closing.start()),
            open_marker=opening.group(0),
            close_marker=closing.group(0),
        )

    def lineNumber_get(self, position: int) -> int:
        """1-based line number of a character offset, within the file"""
        return self.line_offset + self.source.count('\n', 0, position) + 1

"""
Template interpolation pass

Substitutes ${expr} placeholders (or custom-delimited ones) with values looked
up in the data mapping. Runs once over the fully assembled document.

Expressions are path lookups:

    ${message}            data["message"]
    ${page.title}         data["page"]["title"] (or attribute access)
    ${items[0]}           data["items"][0]
    ${labels['en-GB']}    data["labels"]["en-GB"]

An expression that cannot be resolved is left in place verbatim, so literal
${...} in inline scripts survives. Strict mode raises instead.
"""

import html
import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, List, Optional, Pattern, Tuple, Union

from ..models.context import TemplateSettings
from .errors import InterpolationError
from .log import LOG


_MISSING = object()

_IDENTIFIER_RX = re.compile(r'[A-Za-z_$][\w$]*')
_SEGMENT_RX = re.compile(
    r'''\s*(?:\.\s*(?P<attr>[A-Za-z_$][\w$]*)'''
    r'''|\[\s*(?:(?P<index>-?\d+)|(?P<quote>['"])(?P<key>.*?)(?P=quote))\s*\])'''
)


def expression_parse(expression: str) -> Optional[List[Union[str, int]]]:
    """
    Split a path expression into lookup keys

    Returns:
        Keys in lookup order, or None if the expression is not a plain path

    Example:
        >>> expression_parse(" user.roles[0] ")
        ['user', 'roles', 0]
        >>> expression_parse("a + b") is None
        True
    """
    expression = expression.strip()
    match = _IDENTIFIER_RX.match(expression)
    if not match:
        return None

    keys: List[Union[str, int]] = [match.group(0)]
    position = match.end()

    while position < len(expression):
        segment = _SEGMENT_RX.match(expression, position)
        if not segment:
            return None
        if segment.group('attr') is not None:
            keys.append(segment.group('attr'))
        elif segment.group('index') is not None:
            keys.append(int(segment.group('index')))
        else:
            keys.append(segment.group('key'))
        position = segment.end()

    return keys


def value_lookup(data: Any, keys: List[Union[str, int]]) -> Any:
    """Follow keys through mappings, sequences and attributes; _MISSING if absent"""
    current = data
    for key in keys:
        if isinstance(current, Mapping):
            if key not in current:
                return _MISSING
            current = current[key]
        elif isinstance(key, int) and isinstance(current, Sequence) and not isinstance(current, str):
            try:
                current = current[key]
            except IndexError:
                return _MISSING
        elif isinstance(key, str) and hasattr(current, key):
            current = getattr(current, key)
        else:
            return _MISSING
    return current


def value_render(value: Any) -> str:
    """Render a looked-up value; None renders empty"""
    if value is None:
        return ''
    return str(value)


class Interpolator:
    """
    Renders placeholders against a data mapping

    Args:
        settings: Delimiter patterns (group 1 of each captures the expression)
        strict: Raise InterpolationError for unresolved expressions
        filepath: Source file, for error reporting only
    """

    def __init__(
        self,
        settings: Optional[TemplateSettings] = None,
        strict: bool = False,
        filepath: Optional[Union[str, Path]] = None,
    ) -> None:
        self.settings = settings or TemplateSettings()
        self.strict = strict
        self.filepath = filepath

    def patterns_get(self) -> List[Tuple[Pattern[str], bool]]:
        """Active (pattern, html_escape) pairs; escape wins ties"""
        patterns = [(self.settings.interpolate, False)]
        if self.settings.escape is not None:
            patterns.insert(0, (self.settings.escape, True))
        return patterns

    def interpolate(self, text: str, data: Mapping) -> str:
        """
        Substitute every placeholder in a single left-to-right pass

        Substituted values are never rescanned, so a value that itself looks
        like a placeholder is emitted literally.

        Raises:
            InterpolationError: In strict mode, for the first unresolved
                                expression
        """
        patterns = self.patterns_get()
        parts: List[str] = []
        position = 0

        while position <= len(text):
            found = None
            for pattern, escape in patterns:
                match = pattern.search(text, position)
                if match and (found is None or match.start() < found[0].start()):
                    found = (match, escape)

            if found is None:
                break

            match, escape = found
            parts.append(text[position:match.start()])
            parts.append(self.match_render(match, text, data, escape))

            if match.end() == match.start():
                # Empty match; step over one character to make progress
                parts.append(text[match.end():match.end() + 1])
                position = match.end() + 1
            else:
                position = match.end()

        parts.append(text[position:])
        return ''.join(parts)

    def match_render(self, match: re.Match, text: str, data: Mapping, escape: bool) -> str:
        """Render one placeholder match, or return it verbatim if unresolved"""
        expression = match.group(1) if match.re.groups else None
        if expression is None:
            expression = match.group(0)
        keys = expression_parse(expression)
        value = value_lookup(data, keys) if keys is not None else _MISSING

        if value is _MISSING:
            line = text.count('\n', 0, match.start()) + 1
            if self.strict:
                raise InterpolationError(
                    f"Unresolved template expression '{expression.strip()}'",
                    output_line=line,
                    filepath=self.filepath,
                    directive_text=match.group(0),
                )
            LOG(f"Unresolved expression '{expression.strip()}' at output line {line} left as-is", level=3)
            return match.group(0)

        rendered = value_render(value)
        return html.escape(rendered) if escape else rendered

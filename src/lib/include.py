"""
Include resolution for build blocks

Resolves the file named by an include directive and produces its
replacement text:

- HTML (.html/.htm): run through the directive pass when recursive is on,
  inserted literally otherwise
- .js / .css: wrapped in <script> / <style> tags
- anything else: inserted verbatim

Recursive expansion is guarded by the include stack carried in the
ProcessingContext (cycles) and by max_include_depth (runaway nesting).
"""

from pathlib import Path
from typing import Dict

from ..config import appsettings
from ..models.scanner import Directive
from .errors import CircularIncludeError, IncludeDepthError, IncludeNotFoundError
from .log import LOG


# Wrappers for non-HTML includes, keyed by lowercase suffix
INCLUDE_WRAPPERS: Dict[str, str] = {
    '.js': '<script>{content}</script>',
    '.css': '<style>{content}</style>',
}


def includePath_resolve(requested: str, context) -> Path:
    """
    Resolve an include path to an absolute path

    Relative paths resolve against includeBase when configured, otherwise
    against the directory of the including file.
    """
    base = context.include_base if context.include_base is not None else context.base_path
    path = Path(requested)
    if not path.is_absolute():
        path = Path(base) / path
    return path.resolve()


def include_resolve(directive: Directive, context) -> str:
    """
    Produce the replacement text for an include directive

    Args:
        directive: Include directive; params hold the requested path
        context: ProcessingContext of the including file

    Returns:
        Included content, expanded or wrapped per its extension

    Raises:
        IncludeNotFoundError: If the file does not exist
        CircularIncludeError: If recursive expansion revisits an ancestor
        IncludeDepthError: If recursive expansion exceeds max_include_depth
    """
    requested = directive.params
    path = includePath_resolve(requested, context) if requested else None

    if path is None or not path.is_file():
        raise IncludeNotFoundError(
            requested,
            filepath=context.filepath,
            line=directive.start_line,
            directive_text=directive.open_marker,
        )

    content = path.read_text(encoding=appsettings.file_encoding)
    LOG(f"Included {path} ({len(content)} characters)", level=2)

    suffix = path.suffix.lower()
    if appsettings.extension_isHTML(suffix):
        if not context.recursive:
            return content
        return includeHTML_expand(path, content, directive, context)

    wrapper = INCLUDE_WRAPPERS.get(suffix)
    if wrapper:
        return wrapper.format(content=content)
    return content


def includeHTML_expand(path: Path, content: str, directive: Directive, context) -> str:
    """
    Run included HTML through the directive pass in a derived context

    The cycle check happens before recursing: the included path must not
    already be on the include stack of this branch.
    """
    key = str(path)
    if key in context.include_stack:
        chain = list(context.include_stack[context.include_stack.index(key):]) + [key]
        raise CircularIncludeError(
            chain,
            filepath=context.filepath,
            line=directive.start_line,
            directive_text=directive.open_marker,
        )

    if context.include_depth >= appsettings.max_include_depth:
        raise IncludeDepthError(
            f"Include depth limit ({appsettings.max_include_depth}) exceeded at {path}",
            filepath=context.filepath,
            line=directive.start_line,
            directive_text=directive.open_marker,
        )

    from .processor import text_process
    return text_process(content, context.include_enter(path))

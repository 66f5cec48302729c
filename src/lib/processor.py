"""
Processor for htmlprocessor build directives

Drives one file through the pipeline:

    Scanning -> Resolving (per directive, in order) -> Assembling
             -> Interpolating -> Done

Any error aborts the file; callers get the complete document or an exception.
"""

import contextvars
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from ..config import appsettings
from ..models.context import OptionsLike, ProcessingContext, options_coerce
from ..models.directives import DirectiveSpec
from ..models.scanner import Directive, DirectiveSpan, Span, TextSpan
from .directives import BlockRegistry, body_expand
from .environment import EnvironmentResolver
from .errors import UnknownBlockTypeError
from .interpolate import Interpolator
from .log import LOG
from .scanner import Scanner


def text_process(source: str, context: ProcessingContext, line_offset: int = 0) -> str:
    """
    Directive pass over one source text (no interpolation)

    Used for top-level sources, for the bodies that handlers emit, and for
    recursively included HTML.

    Args:
        source: HTML text to process
        context: Context of the file this text belongs to
        line_offset: Lines preceding source in that file, so nested bodies
                     report file line numbers

    Returns:
        Text with every directive resolved
    """
    scanner = Scanner(
        source,
        comment_marker=context.comment_marker,
        registry=context.registry,
        filepath=context.filepath,
        line_offset=line_offset,
    )
    spans = scanner.scan()
    directives_validate(spans, context)

    resolver = EnvironmentResolver(context.environment, context.registry)
    activation = resolver.spans_resolve(spans)

    parts: List[str] = []
    for index, span in enumerate(spans):
        if isinstance(span, TextSpan):
            parts.append(span.text)
        else:
            parts.append(directive_resolve(span.directive, activation[index], context))

    return ''.join(parts)


def directives_validate(spans: List[Span], context: ProcessingContext) -> None:
    """
    Check every directive names a registered block type before resolving any

    Raises:
        UnknownBlockTypeError: For the first unregistered block type
    """
    for span in spans:
        if not isinstance(span, DirectiveSpan):
            continue
        directive = span.directive
        if context.registry.spec_get(directive.block_type) is None:
            raise UnknownBlockTypeError(
                f"Unknown block type '{directive.block_type}'",
                filepath=context.filepath,
                line=directive.start_line,
                directive_text=directive.open_marker,
            )


def directive_resolve(directive: Directive, active: bool, context: ProcessingContext) -> str:
    """
    Produce the replacement text for one directive

    Active directives go to their handler. Inactive ones keep their markers
    unless strip is set; target-gated types lose their body, other types pass
    it through.
    """
    spec = context.registry.resolve(directive.block_type)

    if active:
        LOG(f"Resolving '{directive.block_type}' at line {directive.start_line}", level=3)
        return spec.handler(directive, context)

    return inactive_render(directive, spec, context)


def inactive_render(directive: Directive, spec: DirectiveSpec, context: ProcessingContext) -> str:
    """Render a directive that does not apply to the current environment"""
    body = '' if spec.target_gated else body_expand(directive, context)

    if context.strip:
        return body

    return f"{directive.open_marker}{body}{directive.close_marker}"


class HtmlProcessor:
    """
    Processes HTML sources according to their build directives

    Responsibilities:
    - Validate options
    - Build the per-call block registry (built-ins + custom block types)
    - Run the directive pass
    - Run the interpolation pass once over the assembled document

    Example:
        >>> processor = HtmlProcessor({'environment': 'dev'})
        >>> processor.process('<!--build:remove(dev)-->DEV<!--/build-->')
        'DEV'
    """

    def __init__(self, options: OptionsLike = None) -> None:
        """
        Initialize processor

        Args:
            options: ProcessorOptions, a plugin-style option mapping
                     (camelCase keys accepted), or None/"" for defaults

        Raises:
            pydantic.ValidationError: If options hold invalid values
        """
        self.options = options_coerce(options)

    def registry_build(self) -> BlockRegistry:
        """
        Create a fresh registry with custom block types loaded

        Raises:
            CustomHandlerLoadError: If a custom block type source fails to load
        """
        registry = BlockRegistry()
        registry.customBlockTypes_load(self.options.custom_block_types)
        return registry

    def process(self, source: str, filepath: Optional[Union[str, Path]] = None) -> str:
        """
        Process one HTML source

        Args:
            source: HTML text
            filepath: Path the source was read from; relative includes
                      resolve against its directory (cwd when None)

        Returns:
            Transformed document

        Raises:
            ProcessingError: Any subclass; no partial output is returned
        """
        path = Path(filepath) if filepath is not None else None
        registry = self.registry_build()
        context = ProcessingContext.context_createFromOptions(self.options, registry, path)

        LOG(f"Processing {path or '<string>'} for environment {context.environment!r}", level=2)
        assembled = text_process(source, context)

        interpolator = Interpolator(context.template_settings, strict=context.strict, filepath=path)
        return interpolator.interpolate(assembled, context.data)

    def process_file(self, filepath: Union[str, Path]) -> str:
        """Read a file and process it"""
        path = Path(filepath)
        source = path.read_text(encoding=appsettings.file_encoding)
        LOG(f"Read {len(source)} characters from {path.name}", level=3)
        return self.process(source, filepath=path)


def html_process(
    source: str,
    options: OptionsLike = None,
    filepath: Optional[Union[str, Path]] = None,
) -> str:
    """Process one HTML source with the given options"""
    return HtmlProcessor(options).process(source, filepath=filepath)


def file_processToOutput(processor: HtmlProcessor, input_file: Path, output_file: Path) -> Path:
    """Process input_file and write the result; nothing is written on error"""
    result = processor.process_file(input_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(result, encoding=appsettings.file_encoding)
    LOG(f"Wrote {output_file}", level=2)
    return output_file


def batch_process(
    jobs: Iterable[Tuple[Path, Path]],
    options: OptionsLike = None,
    max_workers: Optional[int] = None,
) -> List[Path]:
    """
    Process independent (input, output) file pairs concurrently

    Every job runs in its own thread with a copy of the caller's context
    (so LOG verbosity carries over). All jobs are joined; the first failure,
    in job order, is re-raised after outstanding jobs are cancelled.

    Args:
        jobs: (input_file, output_file) pairs
        options: Options shared by every job
        max_workers: Thread count (settings.max_workers / CPU count if None)

    Returns:
        Written output paths, in job order

    Raises:
        ProcessingError: The first failing job's error
    """
    processor = HtmlProcessor(options)
    workers = max_workers or appsettings.max_workers

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(contextvars.copy_context().run, file_processToOutput, processor, src, dst)
            for src, dst in jobs
        ]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in pending:
            future.cancel()

    for future in futures:
        if not future.cancelled() and future.exception() is not None:
            raise future.exception()

    return [future.result() for future in futures]

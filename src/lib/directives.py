"""
Block type implementations for htmlprocessor

Each handler turns an active directive into replacement text. Handlers share
one contract, (directive, context) -> str, whether built in or loaded from a
user file via customBlockTypes.
"""

import importlib.util
import re
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from ..models.directives import DirectiveSpec, ATTRIBUTE_BLOCK, builtin_is
from ..models.scanner import Directive
from .errors import CustomHandlerLoadError, UnknownBlockTypeError
from .log import LOG


BlockHandler = Callable[[Directive, object], str]


def body_expand(directive: Directive, context) -> str:
    """Run the directive pass over a block body (nested directives)"""
    from .processor import text_process
    return text_process(directive.body, context, line_offset=directive.body_line_offset)


class BlockRegistry:
    """
    Registry of block type specifications and handlers

    Maps block type names to DirectiveSpec objects. One registry is built per
    top-level processing call, so custom types never leak between calls.
    """

    def __init__(self) -> None:
        """Initialize the registry and register all built-in block types"""
        self.specs: Dict[str, DirectiveSpec] = {}
        self.environmentBlocks_register()
        self.includeBlocks_register()
        self.referenceBlocks_register()

    def register(self, spec: DirectiveSpec) -> None:
        """
        Register a block type specification

        Raises:
            TypeError: If spec.handler is not callable
        """
        if not callable(spec.handler):
            raise TypeError(f"Handler for block type '{spec.name}' is not callable")
        if spec.name in self.specs and builtin_is(spec.name):
            LOG(f"Block type '{spec.name}' overrides the built-in handler", level=2)
        self.specs[spec.name] = spec

    def blockType_register(
        self,
        name: str,
        handler: BlockHandler,
        description: str = "",
        target_gated: bool = False,
        examples: Optional[List[str]] = None,
    ) -> None:
        """
        Register a handler function under a block type name

        Convenience entry point for custom block type modules:

            def register(registry):
                registry.blockType_register('upper', lambda d, ctx: d.body.upper())
        """
        self.register(DirectiveSpec(
            name=name,
            description=description or f"Custom block type '{name}'",
            handler=handler,
            target_gated=target_gated,
            examples=examples or [],
        ))

    def get(self, name: str) -> Optional[BlockHandler]:
        """
        Get block handler by name

        Args:
            name: Block type to look up

        Returns:
            Handler function or None if not found
        """
        spec = self.spec_get(name)
        return spec.handler if spec is not None else None

    def spec_get(self, name: str) -> Optional[DirectiveSpec]:
        """Get full block type specification by name"""
        if name in self.specs:
            return self.specs[name]

        for spec in self.specs.values():
            if spec.matches(name):
                return spec

        return None

    def resolve(self, name: str) -> DirectiveSpec:
        """
        Get block type specification, failing for unknown names

        Raises:
            UnknownBlockTypeError: If no spec handles the name
        """
        spec = self.spec_get(name)
        if spec is None:
            raise UnknownBlockTypeError(f"Unknown block type '{name}'")
        return spec

    def customBlockTypes_load(self, sources: Iterable[Union[str, Path]]) -> None:
        """
        Load user block types from Python files, in order

        Each file must define register(registry), which registers its block
        types on the registry it receives.

        Raises:
            CustomHandlerLoadError: On the first source that cannot be loaded
        """
        for source in sources:
            self.blockTypes_loadFromFile(source)

    def blockTypes_loadFromFile(self, source: Union[str, Path]) -> None:
        """
        Import one custom block type module and call its register()

        Args:
            source: Path to a Python file

        Raises:
            CustomHandlerLoadError: Missing file, import failure, missing or
                                    non-callable register, or failing register
        """
        path = Path(source)
        if not path.is_file():
            raise CustomHandlerLoadError("Custom block type source not found", source)

        module_name = "htmlprocessor_blocktype_" + re.sub(r'\W', '_', path.stem)
        module_spec = importlib.util.spec_from_file_location(module_name, path)
        if module_spec is None or module_spec.loader is None:
            raise CustomHandlerLoadError("Custom block type source is not a Python module", source)

        module = importlib.util.module_from_spec(module_spec)
        try:
            module_spec.loader.exec_module(module)
        except Exception as e:
            raise CustomHandlerLoadError(f"Failed to import custom block type ({e})", source) from e

        register = getattr(module, 'register', None)
        if not callable(register):
            raise CustomHandlerLoadError(
                "Custom block type source defines no callable register(registry)", source
            )

        before = set(self.specs)
        try:
            register(self)
        except Exception as e:
            raise CustomHandlerLoadError(f"register() failed ({e})", source) from e

        added = sorted(set(self.specs) - before)
        LOG(f"Loaded custom block types {added} from {path}", level=2)

    def environmentBlocks_register(self) -> None:
        """Register environment-conditional block types"""

        def remove_handler(directive: Directive, context) -> str:
            """Handle remove - emit the body of the matching target"""
            return body_expand(directive, context)

        def ie_handler(directive: Directive, context) -> str:
            """Handle ie - rewrap the verbatim body in a conditional IE comment"""
            condition = directive.params or 'IE'
            return f'<!--[if {condition}]>{directive.body}<![endif]-->'

        self.register(DirectiveSpec(
            name='remove',
            description='Section kept only for the listed environments',
            handler=remove_handler,
            target_gated=True,
            examples=[
                '<!-- build:remove(dev) --><script src="debug.js"></script><!-- /build -->',
                '<!-- build:remove(dev|test) -->...<!-- /build -->',
            ]
        ))

        self.register(DirectiveSpec(
            name='ie',
            description='Conditional IE comment wrapper',
            handler=ie_handler,
            examples=['<!-- build:ie(lt IE 9) --><script src="html5shiv.js"></script><!-- /build -->']
        ))

    def includeBlocks_register(self) -> None:
        """Register file inclusion block types"""

        def include_handler(directive: Directive, context) -> str:
            """Handle include - substitute the referenced file"""
            from .include import include_resolve
            return include_resolve(directive, context)

        self.register(DirectiveSpec(
            name='include',
            description='Inline a partial, script or stylesheet file',
            handler=include_handler,
            examples=[
                '<!-- build:include(partials/header.html) --><!-- /build -->',
                '<!-- build:include scripts/analytics.js --><!-- /build -->',
            ]
        ))

    def referenceBlocks_register(self) -> None:
        """Register block types that rewrite asset references"""

        def js_handler(directive: Directive, context) -> str:
            """Handle js - replace script tags with one reference"""
            if not directive.params:
                LOG(f"js block at line {directive.start_line} has no target file", level=1)
                return body_expand(directive, context)
            return f'<script src="{directive.params}"></script>'

        def css_handler(directive: Directive, context) -> str:
            """Handle css - replace stylesheet links with one reference"""
            if not directive.params:
                LOG(f"css block at line {directive.start_line} has no target file", level=1)
                return body_expand(directive, context)
            return f'<link rel="stylesheet" href="{directive.params}">'

        def attr_handler(directive: Directive, context) -> str:
            """Handle [attr] - rewrite an attribute on every tag in the body"""
            attribute = directive.block_type[1:-1]
            value = directive.params
            pattern = re.compile(r'(\b' + re.escape(attribute) + r'\s*=\s*)(["\'])(.*?)\2')

            def value_replace(match: re.Match[str]) -> str:
                """Swap in the new value, or the new directory if it ends in /"""
                old = match.group(3)
                if value.endswith('/'):
                    new = value + old.rsplit('/', 1)[-1]
                else:
                    new = value
                return f'{match.group(1)}{match.group(2)}{new}{match.group(2)}'

            return pattern.sub(value_replace, body_expand(directive, context))

        self.register(DirectiveSpec(
            name='js',
            description='Replace a group of scripts with one script reference',
            handler=js_handler,
            examples=['<!-- build:js app.min.js --><script src="a.js"></script><!-- /build -->']
        ))

        self.register(DirectiveSpec(
            name='css',
            description='Replace a group of stylesheets with one stylesheet reference',
            handler=css_handler,
            examples=['<!-- build:css style.min.css --><link rel="stylesheet" href="a.css"><!-- /build -->']
        ))

        self.register(DirectiveSpec(
            name=ATTRIBUTE_BLOCK,
            description='Rewrite an attribute value (value ending in / replaces the directory)',
            handler=attr_handler,
            examples=[
                '<!-- build:[src] img/ --><img src="assets/logo.png"><!-- /build -->',
                '<!-- build:[href]:dist /home --><a href="#">Home</a><!-- /build -->',
            ]
        ))

"""
Environment resolution for build blocks

Decides which directives are active for the requested environment.

Target-gated block types (built-in "remove") list their targets in params:

    <!-- build:remove(dev,test) --> ... <!-- /build -->

and are active iff the environment is one of the targets, or the block names
no targets and no environment was requested. Other block types opt in to
gating with a ":targets" segment (<!-- build:js:dist app.js -->) and are
active everywhere when they name none.

Consecutive target-gated blocks with different target lists, separated only
by whitespace, form an implicit switch: the first active one wins, the rest
are inactive. A block repeating the target list of a block already in the
switch starts a new one, so one-block-per-line layouts stay independent.
"""

import re
from typing import Dict, FrozenSet, List, Optional, Set

from ..models.scanner import Directive, Span, TextSpan
from .log import LOG


def targets_parse(text: Optional[str]) -> List[str]:
    """
    Split a target list on commas and pipes

    Example:
        >>> targets_parse("dev, prod|test")
        ['dev', 'prod', 'test']
        >>> targets_parse("")
        []
    """
    if not text:
        return []
    return [target.strip() for target in re.split(r'[,|]', text) if target.strip()]


class EnvironmentResolver:
    """
    Activation decisions for the directives of one scanned source

    Args:
        environment: Requested environment name (None = unset)
        registry: BlockRegistry used to look up whether a type is target-gated
    """

    def __init__(self, environment: Optional[str], registry) -> None:
        self.environment = environment
        self.registry = registry

    def block_isActive(self, directive: Directive) -> bool:
        """
        Decide activation of a single directive, ignoring switch groups

        Raises:
            UnknownBlockTypeError: If the block type is not registered
        """
        spec = self.registry.resolve(directive.block_type)

        if not directive.targets:
            if spec.target_gated:
                return self.environment is None
            return True

        return self.environment in directive.targets

    def spans_resolve(self, spans: List[Span]) -> Dict[int, bool]:
        """
        Decide activation of every directive span, in source order

        Args:
            spans: Scanner output

        Returns:
            Dict mapping span index to activation, for DirectiveSpan entries

        Example:
            For "<!--build:remove(dev)-->A<!--/build-->
                 <!--build:remove(dev,prod)-->B<!--/build-->" with
            environment "dev": {0: True, 2: False} (B loses the switch)
        """
        activation: Dict[int, bool] = {}
        switch_targets: Set[FrozenSet[str]] = set()
        switch_matched = False

        for index, span in enumerate(spans):
            if isinstance(span, TextSpan):
                if span.text.strip():
                    switch_targets = set()
                continue

            directive = span.directive
            spec = self.registry.resolve(directive.block_type)
            active = self.block_isActive(directive)

            if not spec.target_gated:
                switch_targets = set()
                activation[index] = active
                continue

            targets = frozenset(directive.targets)
            if not switch_targets or targets in switch_targets:
                # Same target list again means a new switch, not a competitor
                switch_targets = set()
                switch_matched = False
            switch_targets.add(targets)

            if active and switch_matched:
                LOG(
                    f"Block '{directive.block_type}' at line {directive.start_line} "
                    f"loses switch to an earlier match",
                    level=3,
                )
                active = False

            switch_matched = switch_matched or active
            activation[index] = active

        return activation

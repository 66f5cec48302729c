"""
Block type specification models

Defines the structure of block-type registry entries and the names of
built-in block types.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Set


@dataclass
class DirectiveSpec:
    """
    Specification for a build block type

    Defines metadata and handler for a block type. Used by BlockRegistry to
    manage available block types.

    Attributes:
        name: Block type name as written after the marker (e.g., "remove")
        description: Human-readable description
        handler: Replacement function (directive, context) -> str
        target_gated: Params name the targets and an inactive block loses its
            body (True for "remove"). Other types pass their body through
            when gated off for the current environment
        examples: Example usage strings
    """
    name: str
    description: str
    handler: Callable
    target_gated: bool = False
    examples: List[str] = field(default_factory=list)

    def matches(self, block_type: str) -> bool:
        """
        Check if this spec handles a block type name

        Attribute blocks ("[href]", "[src]") are all served by the "[attr]"
        spec unless a more specific one is registered.

        Args:
            block_type: Name to check

        Returns:
            True if this spec handles the block type
        """
        if self.name == block_type:
            return True

        if self.name == ATTRIBUTE_BLOCK and block_type.startswith('[') and block_type.endswith(']'):
            return True

        return False


ATTRIBUTE_BLOCK = '[attr]'

# Built-in block types registered by every BlockRegistry
BUILTIN_BLOCK_TYPES: Set[str] = {
    'remove',   # environment-gated section
    'include',  # inline another file
    'ie',       # conditional IE comment wrapper
    'js',       # collapse scripts into one <script src>
    'css',      # collapse stylesheets into one <link>
    ATTRIBUTE_BLOCK,  # rewrite an attribute value
}


def builtin_is(block_type: str) -> bool:
    """Check if a block type name is built in"""
    return block_type in BUILTIN_BLOCK_TYPES

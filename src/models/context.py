"""
Processing options and per-call context

ProcessorOptions validates what a caller hands in (the original plugin's
camelCase option names are accepted as aliases). ProcessingContext is the
immutable bundle threaded through one top-level call and its recursive
include expansions.
"""

import dataclasses
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Pattern, Tuple, TYPE_CHECKING, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import appsettings

if TYPE_CHECKING:
    from ..lib.directives import BlockRegistry


class TemplateSettings(BaseModel):
    """
    Delimiter configuration for the interpolation pass

    Attributes:
        interpolate: Pattern whose group 1 captures the expression
                     (default ${expr})
        escape: Optional pattern rendered with HTML escaping

    Example:
        TemplateSettings(interpolate=r"{{([\\s\\S]+?)}}")
    """

    interpolate: Pattern[str] = Field(
        default_factory=lambda: re.compile(appsettings.default_interpolate)
    )
    escape: Optional[Pattern[str]] = None


class ProcessorOptions(BaseModel):
    """
    Validated options for one processing call

    Field names are snake_case; the plugin-style camelCase keys
    (commentMarker, templateSettings, customBlockTypes, includeBase) are
    accepted as aliases so option dicts written for the original build
    plugin work unchanged.
    """

    model_config = ConfigDict(populate_by_name=True)

    data: Dict[str, Any] = Field(default_factory=dict)
    environment: Optional[str] = None
    comment_marker: str = Field(
        default_factory=lambda: appsettings.comment_marker, alias="commentMarker"
    )
    strip: bool = False
    recursive: bool = False
    template_settings: TemplateSettings = Field(
        default_factory=TemplateSettings, alias="templateSettings"
    )
    custom_block_types: List[str] = Field(default_factory=list, alias="customBlockTypes")
    include_base: Optional[Path] = Field(default=None, alias="includeBase")
    strict: bool = Field(default_factory=lambda: appsettings.strict_mode)

    @field_validator("environment", mode="before")
    @classmethod
    def environment_normalize(cls, value: Any) -> Optional[str]:
        """Empty environment means unset"""
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("data", mode="before")
    @classmethod
    def data_normalize(cls, value: Any) -> Any:
        if value is None:
            return {}
        return value

    @field_validator("comment_marker")
    @classmethod
    def marker_validate(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("commentMarker must be a non-empty token")
        return value.strip()


OptionsLike = Union[ProcessorOptions, Mapping[str, Any], str, None]


def options_coerce(options: OptionsLike) -> ProcessorOptions:
    """
    Build ProcessorOptions from whatever a caller passed

    None and "" mean all defaults (the original plugin is commonly invoked
    as htmlprocessor('')).

    Raises:
        pydantic.ValidationError: If a mapping holds invalid values
        TypeError: For any other non-mapping value
    """
    if isinstance(options, ProcessorOptions):
        return options
    if options is None or options == "":
        return ProcessorOptions()
    if isinstance(options, Mapping):
        return ProcessorOptions.model_validate(dict(options))
    raise TypeError(f"Unsupported options type: {type(options).__name__}")


@dataclass(frozen=True)
class ProcessingContext:
    """
    Immutable per-call processing context

    Created once per top-level call. Recursive include expansion gets its own
    copy via include_enter(), so sibling includes never see each other's
    include_stack entries while ancestor cycles are still detected.

    Attributes:
        environment: Requested environment (None = unset)
        data: Mapping used by the interpolation pass
        template_settings: Interpolation delimiters
        comment_marker: Marker token ("build" by default)
        strip: Remove non-matching blocks entirely (markers included)
        recursive: Run included HTML through the directive pass
        custom_block_types: Sources of user-registered block types
        include_stack: Resolved paths of files currently being expanded
        base_path: Directory relative include paths resolve against
        filepath: File being processed (None for in-memory sources)
        include_base: Fixed directory for include paths, overrides base_path
        include_depth: Number of include levels above this context
        strict: Raise on unresolved interpolation expressions
        registry: Block registry for this call
    """
    environment: Optional[str] = None
    data: Mapping[str, Any] = field(default_factory=dict)
    template_settings: TemplateSettings = field(default_factory=TemplateSettings)
    comment_marker: str = "build"
    strip: bool = False
    recursive: bool = False
    custom_block_types: Tuple[str, ...] = ()
    include_stack: Tuple[str, ...] = ()
    base_path: Path = field(default_factory=Path.cwd)
    filepath: Optional[Path] = None
    include_base: Optional[Path] = None
    include_depth: int = 0
    strict: bool = False
    registry: Optional["BlockRegistry"] = field(default=None, compare=False, repr=False)

    @classmethod
    def context_createFromOptions(
        cls,
        options: ProcessorOptions,
        registry: "BlockRegistry",
        filepath: Optional[Path] = None,
    ) -> "ProcessingContext":
        """
        Create the top-level context for one processing call

        Args:
            options: Validated caller options
            registry: Block registry populated for this call
            filepath: Source file path, if processing a file

        Returns:
            ProcessingContext whose include_stack holds the source file itself
        """
        stack: Tuple[str, ...] = ()
        base_path = Path.cwd()
        if filepath is not None:
            filepath = Path(filepath)
            stack = (str(filepath.resolve()),)
            base_path = filepath.resolve().parent

        return cls(
            environment=options.environment,
            data=dict(options.data),
            template_settings=options.template_settings,
            comment_marker=options.comment_marker,
            strip=options.strip,
            recursive=options.recursive,
            custom_block_types=tuple(options.custom_block_types),
            include_stack=stack,
            base_path=base_path,
            filepath=filepath,
            include_base=options.include_base,
            strict=options.strict,
            registry=registry,
        )

    def include_enter(self, path: Path) -> "ProcessingContext":
        """
        Derive the context for expanding an included file

        Args:
            path: Resolved absolute path of the included file

        Returns:
            New context with path pushed onto include_stack and base_path
            moved to the included file's directory
        """
        return dataclasses.replace(
            self,
            include_stack=self.include_stack + (str(path),),
            base_path=path.parent,
            filepath=path,
            include_depth=self.include_depth + 1,
        )

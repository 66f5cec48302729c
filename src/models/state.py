"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

import dataclasses
from pathlib import Path
from argparse import Namespace
from functools import reduce
from typing import Any, Optional, Type, TypeVar, List, Dict, Callable
from dataclasses import dataclass, field


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the processing pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as processing progresses.

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity and the CLI options
        - env_check: dataFile, includeBasedir, envOK
        - options_load: processorOptions
        - files_process: processResult
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Directory containing source HTML files
        outputdir: Directory receiving processed files
        verbosity: Logging verbosity level (1-3)
        pattern: Glob selecting input files, relative to inputdir
        environment: Requested build environment
        data: Optional YAML/JSON data file (relative to inputdir)
        commentMarker: Directive marker token
        strip: Remove non-matching blocks entirely
        recursive: Process directives inside included HTML
        interpolate: Optional interpolation regex
        customBlockTypes: Python files registering extra block types
        includeBase: Optional fixed directory for include paths
        strict: Fail on unresolved interpolation expressions
        envOK: Environment validation passed
        dataFile: Resolved path to data file (None when not given)
        includeBasedir: Resolved include base directory
        processorOptions: Options handed to every HtmlProcessor call
        processResult: Processing results (files, status)
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    pattern: str = field(default="**/*.html")
    environment: Optional[str] = field(default=None)
    data: Optional[str] = field(default=None)
    commentMarker: str = field(default="build")
    strip: bool = field(default=False)
    recursive: bool = field(default=False)
    interpolate: Optional[str] = field(default=None)
    customBlockTypes: List[str] = field(default_factory=list)
    includeBase: Optional[str] = field(default=None)
    strict: bool = field(default=False)

    # Pipeline state
    envOK: bool = field(default=False)
    dataFile: Optional[Path] = field(default=None)
    includeBasedir: Optional[Path] = field(default=None)
    processorOptions: Optional[Any] = field(default=None)  # ProcessorOptions at runtime
    processResult: Optional[Dict] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Args:
            options: Parsed CLI arguments (pattern, environment, etc.)
            inputdir: Directory containing source files
            outputdir: Directory for processed output

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        options_dict = vars(options)

        # Only keep options that are ProgramState fields
        valid_fields = {f.name for f in dataclasses.fields(cls)}
        filtered_options = {
            k: v for k, v in options_dict.items() if k in valid_fields and v is not None
        }

        merged_args = {**filtered_options, "inputdir": inputdir, "outputdir": outputdir}
        return cls(**merged_args)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            options_load,
            files_process,
            results_report
        )

    This is equivalent to:
        results_report(files_process(options_load(env_check(initial_state))))
    """
    return reduce(lambda state, stage: stage(state), stages, initial_state)

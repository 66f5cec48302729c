#!/usr/bin/env python3
"""
htmlprocessor - Build-time HTML preprocessor

Rewrites HTML files according to build comment blocks for a requested
environment, writing one processed file per input file.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Philosophy:
    - Comments, not templates: sources stay valid HTML before processing
    - One environment per run: dev, dist, test... select what survives
    - Deterministic: same sources and options, same output

Key Features:
    - Environment-gated sections: <!-- build:remove(dev) -->
    - Includes with optional recursive processing: <!-- build:include(nav.html) -->
    - Asset reference rewriting: <!-- build:js app.min.js -->, <!-- build:[src] cdn/ -->
    - ${expr} interpolation from a YAML/JSON data file
    - Custom block types from Python files

Usage:
    htmlprocessor inputdir/ outputdir/ --environment dist

Examples:
    # Process every HTML file for the dist environment
    htmlprocessor src/ build/ --environment dist --strip

    # Data file, recursive includes and a custom marker
    htmlprocessor src/ build/ --data site.yaml --recursive --commentMarker process

    # Verbose output
    htmlprocessor src/ build/ -vv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

import yaml
from chris_plugin import chris_plugin
from pydantic import ValidationError

from .config import appsettings
from .lib import __version__, LOG, state_connectToLogger, ProcessingError
from .lib.processor import batch_process
from .models import ProgramState, ProcessorOptions, pipeline


DISPLAY_TITLE = r"""
  _     _             _
 | |__ | |_ _ __ ___ | |_ __  _ __ ___   ___ ___  ___ ___  ___  _ __
 | '_ \| __| '_ ` _ \| | '_ \| '__/ _ \ / __/ _ \/ __/ __|/ _ \| '__|
 | | | | |_| | | | | | | |_) | | | (_) | (_|  __/\__ \__ \ (_) | |
 |_| |_|\__|_| |_| |_|_| .__/|_|  \___/ \___\___||___/___/\___/|_|
                       |_|
  Build-time HTML preprocessor
"""

# Define CLI arguments
parser = ArgumentParser(
    description="htmlprocessor - Build-time HTML preprocessor driven by build comments",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--pattern", default="**/*.html", type=str, help="Glob selecting input files (relative to inputdir)"
)

parser.add_argument(
    "--environment", default=None, type=str, help="Environment selecting which build blocks are active"
)

parser.add_argument(
    "--data",
    default=None,
    type=str,
    help="YAML or JSON file with interpolation data (relative to inputdir or absolute)",
)

parser.add_argument(
    "--commentMarker", default="build", type=str, help="Marker token of build comments"
)

parser.add_argument(
    "--strip", action="store_true", help="Remove non-matching build blocks entirely, markers included"
)

parser.add_argument(
    "--recursive", action="store_true", help="Process build comments inside included HTML files"
)

parser.add_argument(
    "--interpolate",
    default=None,
    type=str,
    help="Regex replacing the ${...} interpolation delimiters (group 1 = expression)",
)

parser.add_argument(
    "--customBlockTypes",
    action="append",
    default=None,
    type=str,
    help="Python file registering custom block types (repeatable)",
)

parser.add_argument(
    "--includeBase", default=None, type=str, help="Directory include paths resolve against"
)

parser.add_argument(
    "--strict", action="store_true", help="Fail on unresolved interpolation expressions"
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve auxiliary file paths.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - dataFile: Resolved data file path (None if not given)
            - includeBasedir: Resolved include base (None if not given)
            - envOK: True if environment is valid

    Exits:
        1 if the input directory, data file or include base is missing
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    if not state.inputdir or not state.inputdir.is_dir():
        print(f"Error: Input directory not found: {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    if state.data:
        data_file = Path(state.data)
        if not data_file.is_absolute():
            data_file = state.inputdir / data_file
        if not data_file.is_file():
            print(f"Error: Data file not found: {data_file}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        state.dataFile = data_file
        LOG(f"Data file: {data_file}", level=2)

    if state.includeBase:
        include_base = Path(state.includeBase)
        if not include_base.is_absolute():
            include_base = state.inputdir / include_base
        if not include_base.is_dir():
            print(f"Error: Include base directory not found: {include_base}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        state.includeBasedir = include_base
        LOG(f"Include base: {include_base}", level=2)

    state.outputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.outputdir}", level=2)

    state.envOK = True
    return state


def options_load(inputstate: ProgramState) -> ProgramState:
    """
    Build the ProcessorOptions shared by every file.

    Args:
        inputstate: Program state with dataFile resolved

    Returns:
        ProgramState with added field:
            - processorOptions: validated ProcessorOptions

    Exits:
        1 if the data file is unreadable or options are invalid
    """

    state = inputstate.copy()

    data = {}
    if state.dataFile:
        try:
            data = yaml.safe_load(state.dataFile.read_text(encoding=appsettings.file_encoding)) or {}
        except (OSError, yaml.YAMLError) as e:
            print(f"Error reading data file: {e}", file=sys.stderr)
            sys.exit(1)
        if not isinstance(data, dict):
            print(f"Error: Data file must hold a mapping: {state.dataFile}", file=sys.stderr)
            sys.exit(1)
        LOG(f"Loaded {len(data)} data keys", level=2)

    options = {
        "data": data,
        "environment": state.environment,
        "commentMarker": state.commentMarker,
        "strip": state.strip,
        "recursive": state.recursive,
        "customBlockTypes": state.customBlockTypes,
        "includeBase": state.includeBasedir,
        "strict": state.strict,
    }
    if state.interpolate:
        options["templateSettings"] = {"interpolate": state.interpolate}

    try:
        state.processorOptions = ProcessorOptions.model_validate(options)
    except ValidationError as e:
        print(f"Error: Invalid options: {e}", file=sys.stderr)
        sys.exit(1)

    return state


def files_process(inputstate: ProgramState) -> ProgramState:
    """
    Process every matching input file into outputdir.

    Files are processed concurrently; each output keeps its path relative
    to inputdir. A failing file aborts the run without writing its output.

    Args:
        inputstate: Program state with processorOptions set

    Returns:
        ProgramState with added field:
            - processResult: Dict containing:
                - status: bool
                - files: List[str] of written outputs

    Exits:
        1 on the first processing error
    """

    state = inputstate.copy()

    input_files = sorted(path for path in state.inputdir.glob(state.pattern) if path.is_file())
    LOG(f"Processing {len(input_files)} files matching {state.pattern}...", level=1)

    jobs = [
        (input_file, state.outputdir / input_file.relative_to(state.inputdir))
        for input_file in input_files
    ]

    try:
        written = batch_process(jobs, state.processorOptions)
    except ProcessingError as e:
        print(f"Processing error: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    state.processResult = {
        "status": True,
        "files": [str(path) for path in written],
    }
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display processing results to user.

    Args:
        inputstate: Program state with processResult populated

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if processResult is None
    """
    state: ProgramState = inputstate.copy()
    if not state.processResult:
        print("Error: Processing failed", file=sys.stderr)
        sys.exit(1)

    LOG("\n✓ Processing successful!", level=1)
    LOG(f"  Files: {len(state.processResult['files'])}", level=1)
    LOG(f"  Output: {state.outputdir}", level=1)
    for output_file in state.processResult["files"]:
        LOG(f"    {output_file}", level=2)
    return state


@chris_plugin(
    parser=parser,
    title="htmlprocessor - Build-time HTML preprocessor",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - process HTML files from inputdir into outputdir.

    Orchestrates the pipeline:
        1. env_check: Validate paths
        2. options_load: Load data file and validate options
        3. files_process: Process matching files concurrently
        4. results_report: Display results to user

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, options_load, files_process, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature

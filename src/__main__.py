#!/usr/bin/env python3
"""
unrender - Bidirectional template extraction

Reads an MDX-style template and a document rendered from it, and writes
back the structured data that produced the document. Given the original
record as well, it also reports what was edited and writes the record with
the edits applied.

As with the rest of this family of tools, the ChRIS "plugin" pattern is used
as a general purpose python app framework.

Usage:
    unrender inputdir/ outputdir/ --template post.mdx --rendered post.md

Examples:
    # Extract data from a rendered document
    unrender . out/ --template post.mdx --rendered post.md

    # Sync edits back into the original record, appending to arrays
    unrender . out/ --template post.mdx --rendered post.md --original post.yaml --arrayMerge append

    # Fail if anything could not be extracted, YAML report
    unrender . out/ --template post.mdx --rendered post.md --strict --outputFormat yaml -vv
"""

import sys
import json
from pathlib import Path
from dataclasses import asdict
from typing import Any, Dict
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

import yaml
from chris_plugin import chris_plugin

from . import __version__
from .lib import extract, diff, apply_extract, ExtractError, LOG, state_connectToLogger
from .models import ProgramState, pipeline, ApplyOptions, ArrayMerge, ComponentPlacement


DISPLAY_TITLE = r"""
                                _
  _   _ _ __  _ __ ___ _ __   __| | ___ _ __
 | | | | '_ \| '__/ _ \ '_ \ / _` |/ _ \ '__|
 | |_| | | | | | |  __/ | | | (_| |  __/ |
  \__,_|_| |_|_|  \___|_| |_|\__,_|\___|_|

  Rendered text back to data
"""

OUTPUT_FORMATS = ("json", "yaml")

parser = ArgumentParser(
    description="unrender - extract structured data from rendered templates",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--template", required=True, type=str, help="Template file (relative to inputdir)"
)

parser.add_argument(
    "--rendered", required=True, type=str, help="Rendered document (relative to inputdir)"
)

parser.add_argument(
    "--original",
    default=None,
    type=str,
    help="Original record, YAML or JSON (relative to inputdir); enables diff and merge",
)

parser.add_argument(
    "--strict",
    action="store_true",
    default=None,
    help="Fail if any slot is unmatched (default from settings)",
)

parser.add_argument(
    "--arrayMerge",
    default=None,
    choices=[m.value for m in ArrayMerge],
    help="How arrays are combined when applying to the original (default from settings)",
)

parser.add_argument(
    "--placement",
    default=None,
    choices=[p.value for p in ComponentPlacement],
    help="Where component extractor props land (default from settings)",
)

parser.add_argument(
    "--outputFile", default="extract.json", type=str, help="Report filename within outputdir"
)

parser.add_argument(
    "--outputFormat", default="json", choices=OUTPUT_FORMATS, help="Report format"
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
    Validate environment and resolve all file paths.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - templateSourceFile, renderedSourceFile: Resolved input paths
            - originalSourceFile: Resolved original record path, or None
            - envOK: True if environment is valid

    Exits:
        1 if any input file is missing
    """
    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    state.templateSourceFile = state.inputdir / state.template
    state.renderedSourceFile = state.inputdir / state.rendered
    state.originalSourceFile = state.inputdir / state.original if state.original else None

    for label, path in (
        ("Template", state.templateSourceFile),
        ("Rendered", state.renderedSourceFile),
        ("Original", state.originalSourceFile),
    ):
        if path is None:
            continue
        if not path.exists():
            print(f"Error: {label} file not found: {path}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        LOG(f"{label} file: {path}", level=2)

    state.outputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.outputdir}", level=2)

    state.envOK = True
    return state


def sources_read(inputstate: ProgramState) -> ProgramState:
    """
    Read the template, the rendered document and the optional original.

    Returns:
        ProgramState with added fields:
            - templateSource, renderedSource: File contents
            - originalData: Parsed original record, or None

    Exits:
        1 if a file cannot be read or the original is not a mapping
    """
    state = inputstate.copy()

    LOG("Reading sources...", level=1)

    try:
        state.templateSource = state.templateSourceFile.read_text(encoding="utf-8")
        state.renderedSource = state.renderedSourceFile.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error reading input file: {e}", file=sys.stderr)
        sys.exit(1)

    LOG(f"Read {len(state.templateSource)} template characters", level=2)
    LOG(f"Read {len(state.renderedSource)} rendered characters", level=2)

    if state.originalSourceFile:
        try:
            with open(state.originalSourceFile, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            print(f"Error reading original record: {e}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            print(f"Error: Original record must be a mapping: {state.originalSourceFile}", file=sys.stderr)
            sys.exit(1)
        state.originalData = data
        LOG(f"Original record has {len(data)} top-level keys", level=2)

    return state


def data_extract(inputstate: ProgramState) -> ProgramState:
    """
    Extract structured data from the rendered document.

    Returns:
        ProgramState with added field:
            - extractResult: ExtractResult

    Exits:
        1 in strict mode when slots are unmatched
    """
    state = inputstate.copy()

    LOG("Extracting data...", level=1)

    try:
        state.extractResult = extract(
            state.templateSource,
            state.renderedSource,
            strict=state.strict,
            placement=state.placement,
        )
    except ExtractError as e:
        print(f"Extraction error: {e}", file=sys.stderr)
        if state.verbosity >= 3:
            print(f"Pattern: {e.details.debug.pattern}", file=sys.stderr)
        sys.exit(1)

    result = state.extractResult
    LOG(f"Confidence: {result.confidence:.2f}", level=2)
    for label in result.unmatched:
        LOG(f"Unmatched: {label}", level=2)
    return state


def changes_apply(inputstate: ProgramState) -> ProgramState:
    """
    Diff the extracted data against the original and apply it.

    Skipped when no original record was given.

    Returns:
        ProgramState with added fields:
            - changes: DiffResult
            - mergedData: Original with the extracted data applied
    """
    state = inputstate.copy()

    if state.originalData is None:
        LOG("No original record; skipping diff", level=2)
        return state

    LOG("Comparing with original record...", level=1)
    extracted = state.extractResult.data
    state.changes = diff(state.originalData, extracted)
    state.mergedData = apply_extract(
        state.originalData, extracted, ApplyOptions(array_merge=state.arrayMerge)
    )
    LOG(f"Changes detected: {state.changes.has_changes}", level=2)
    return state


def report_build(state: ProgramState) -> Dict[str, Any]:
    """Plain-dict report of the pipeline results"""
    result = state.extractResult
    report: Dict[str, Any] = {
        "data": result.data,
        "confidence": result.confidence,
        "unmatched": result.unmatched,
    }
    if state.changes is not None:
        changes = asdict(state.changes)
        changes["modified"] = {
            path: {"from": change.from_, "to": change.to}
            for path, change in state.changes.modified.items()
        }
        report["changes"] = changes
        report["merged"] = state.mergedData
    return report


def results_write(inputstate: ProgramState) -> ProgramState:
    """
    Write the report to outputdir.

    Returns:
        ProgramState with added field:
            - outputPath: Path of the written report

    Exits:
        1 if the extraction stage produced nothing or the write fails
    """
    state = inputstate.copy()

    if not state.extractResult:
        print("Error: No extraction result available", file=sys.stderr)
        sys.exit(1)

    report = report_build(state)
    state.outputPath = state.outputdir / state.outputFile

    try:
        with open(state.outputPath, "w", encoding="utf-8") as f:
            if state.outputFormat == "yaml":
                yaml.safe_dump(report, f, sort_keys=False, allow_unicode=True)
            else:
                json.dump(report, f, indent=2, ensure_ascii=False)
    except OSError as e:
        print(f"Error writing report: {e}", file=sys.stderr)
        sys.exit(1)

    LOG(f"Report written to {state.outputPath}", level=2)
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display extraction results to the user.

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if extractResult is None
    """
    state: ProgramState = inputstate.copy()
    if not state.extractResult:
        print("Error: Extraction failed", file=sys.stderr)
        sys.exit(1)

    result = state.extractResult
    LOG("\n✓ Extraction complete!", level=1)
    LOG(f"  Output: {state.outputPath}", level=1)
    LOG(f"  Confidence: {result.confidence:.2f}", level=1)
    if result.unmatched:
        LOG(f"  Unmatched: {', '.join(result.unmatched)}", level=1)
    if state.changes is not None:
        LOG(
            f"  Changes: {len(state.changes.modified)} modified, "
            f"{len(state.changes.removed)} removed",
            level=1,
        )
    return state


@chris_plugin(
    parser=parser,
    title="unrender - Bidirectional template extraction",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - extract data from a rendered template.

    Orchestrates the pipeline:
        1. env_check: Validate paths and environment
        2. sources_read: Read template, rendered document and original
        3. data_extract: Extract structured data
        4. changes_apply: Diff and merge with the original (if given)
        5. results_write: Write the report
        6. results_report: Display results to user

    Args:
        options: CLI arguments from argparse
        inputdir: Directory containing the input files
        outputdir: Directory where the report is written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """
    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    state_connectToLogger(state)

    pipeline(
        state,
        env_check,
        sources_read,
        data_extract,
        changes_apply,
        results_write,
        results_report,
    )


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature

"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing transformation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, Dict, Callable, TYPE_CHECKING
from dataclasses import dataclass, field

# Forward reference for type hint - avoid circular import
if TYPE_CHECKING:
    from .results import ExtractResult, DiffResult


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the extraction pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as extraction progresses.

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, template, rendered, original,
                   strict, arrayMerge, placement, outputFile, outputFormat
        - env_check: templateSourceFile, renderedSourceFile, originalSourceFile,
                     envOK
        - sources_read: templateSource, renderedSource, originalData
        - data_extract: extractResult
        - changes_apply: changes, mergedData
        - results_write: outputPath
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Directory containing the template and rendered files
        outputdir: Base output directory for the extraction report
        verbosity: Logging verbosity level (1-3)
        template: Template filename (relative to inputdir)
        rendered: Rendered document filename (relative to inputdir)
        original: Optional original record (YAML or JSON) to diff and merge
        strict: Fail when any slot stays unmatched (None defers to settings)
        arrayMerge: Array merge policy used when applying to the original
        placement: Component extractor placement mode
        outputFile: Report filename written to outputdir
        outputFormat: Report format, "json" or "yaml"
        extractResult: ExtractResult from the extraction stage
        changes: DiffResult between original and extracted data
        mergedData: Original record with extracted data applied
        outputPath: Path of the written report
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    template: str = field(default="")
    rendered: str = field(default="")
    original: Optional[str] = field(default=None)
    strict: Optional[bool] = field(default=None)
    arrayMerge: Optional[str] = field(default=None)
    placement: Optional[str] = field(default=None)
    outputFile: str = field(default="extract.json")
    outputFormat: str = field(default="json")

    # Pipeline state
    envOK: bool = field(default=False)
    templateSourceFile: Path = field(default=Path("/"))
    renderedSourceFile: Path = field(default=Path("/"))
    originalSourceFile: Optional[Path] = field(default=None)
    templateSource: str = field(default="")
    renderedSource: str = field(default="")
    originalData: Optional[Dict[str, Any]] = field(default=None)
    extractResult: Optional["ExtractResult"] = field(default=None)
    changes: Optional["DiffResult"] = field(default=None)
    mergedData: Optional[Dict[str, Any]] = field(default=None)
    outputPath: Optional[Path] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Merges CLI options with explicitly provided directories to create
        the initial program state for the extraction pipeline.

        Args:
            options: Parsed CLI arguments (template, rendered, etc.)
            inputdir: Directory containing source files
            outputdir: Directory for the extraction report

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        options_dict = vars(options)

        # Only keep options that are ProgramState fields
        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}
        filtered_options = {k: v for k, v in options_dict.items() if k in valid_fields}

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

    Args:
        initial_state: Starting ProgramState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final ProgramState after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            sources_read,
            data_extract,
            results_report
        )

    This is equivalent to:
        results_report(data_extract(sources_read(env_check(initial_state))))
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)

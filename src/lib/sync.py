"""
Round-trip editing helper

A document is rendered from (template, original); someone edits the
rendered text; sync_edits() pulls the edits back into the record.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..models.results import ApplyOptions, DiffResult, ExtractResult
from .components import ComponentExtractor
from .extractor import extract
from .differ import diff
from .merger import apply_extract


@dataclass
class SyncResult:
    """
    Attributes:
        updated: original with the extracted edits applied
        changes: diff(original, extracted data)
        result: The underlying ExtractResult
    """
    updated: Dict[str, Any]
    changes: DiffResult
    result: ExtractResult


def sync_edits(
    template: str,
    original: Dict[str, Any],
    edited: str,
    extractors: Optional[Mapping[str, ComponentExtractor]] = None,
    options: Optional[ApplyOptions] = None,
) -> SyncResult:
    """
    Extract, diff and apply in one call

    Args:
        template: Template the document was rendered from
        original: Record the document was rendered from
        edited: Edited rendered text
        extractors: Component extractors, passed to extract()
        options: ApplyOptions; its paths also restrict the diff

    Returns:
        SyncResult

    Raises:
        ExtractError: When strict mode is enabled in settings and slots
                      are unmatched
    """
    result = extract(template, edited, extractors=extractors)
    paths = options.paths if options else None
    return SyncResult(
        updated=apply_extract(original, result.data, options),
        changes=diff(original, result.data, paths),
        result=result,
    )

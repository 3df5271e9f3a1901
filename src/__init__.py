"""
unrender - Bidirectional template extraction

Given an MDX-style template and a rendered instance of it, rebuild the
structured data that produced the rendering.
"""

__version__ = "1.0.0"

from .lib import (
    parse_template_slots,
    extract,
    extract_with_ai,
    round_trip_component,
    diff,
    apply_extract,
    validate_template,
    sync_edits,
    ExtractError,
    LOG,
    state_connectToLogger,
)
from .models import (
    SlotType,
    Slot,
    ArrayMerge,
    ComponentPlacement,
    ExtractResult,
    AIExtractResult,
    DiffResult,
    FieldChange,
    ApplyOptions,
    TemplateValidation,
)

__all__ = [
    "parse_template_slots",
    "extract",
    "extract_with_ai",
    "round_trip_component",
    "diff",
    "apply_extract",
    "validate_template",
    "sync_edits",
    "ExtractError",
    "SlotType",
    "Slot",
    "ArrayMerge",
    "ComponentPlacement",
    "ExtractResult",
    "AIExtractResult",
    "DiffResult",
    "FieldChange",
    "ApplyOptions",
    "TemplateValidation",
    "LOG",
    "state_connectToLogger",
    "__version__",
]

"""
Models package for unrender

Contains data structures and type definitions for the extraction pipeline.
"""

from .state import ProgramState, pipeline
from .slots import SlotType, Slot, ParsedTemplate
from .results import (
    ArrayMerge,
    ComponentPlacement,
    ExtractDebugInfo,
    ExtractResult,
    AIExtractResult,
    FieldChange,
    DiffResult,
    ApplyOptions,
    TemplateValidation,
)

__all__ = [
    "ProgramState",
    "pipeline",
    "SlotType",
    "Slot",
    "ParsedTemplate",
    "ArrayMerge",
    "ComponentPlacement",
    "ExtractDebugInfo",
    "ExtractResult",
    "AIExtractResult",
    "FieldChange",
    "DiffResult",
    "ApplyOptions",
    "TemplateValidation",
]

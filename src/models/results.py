"""
Result and option models

Value objects returned by extraction, diffing, merging and validation,
plus the enums that configure them.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .slots import Slot


class ArrayMerge(str, Enum):
    """How apply_extract() combines two arrays found at the same path"""
    REPLACE = "replace"   # extracted array wins
    APPEND = "append"     # original + extracted
    PREPEND = "prepend"   # extracted + original


class ComponentPlacement(str, Enum):
    """
    Where the props returned by a component extractor land in the data tree

    BINDINGS: each returned prop is written at the path it is bound to in the
              template (<Table rows={data.rows} /> puts "rows" at data.rows)
    ROOT: the returned dict is deep-merged into the top level of the data
    COMPONENT: the returned dict is stored under the component's name
    """
    BINDINGS = "bindings"
    ROOT = "root"
    COMPONENT = "component"


@dataclass
class ExtractDebugInfo:
    """
    Diagnostics captured during every extraction

    Attributes:
        slots: Slots found in the template
        pattern: Readable rendering of the anchor sequence with named
                 group placeholders (e.g., "\\#(?!\\S)(?P<slot_data_title_0>.*?)")
        matched: True iff no slot was left unmatched
        groups: Group name -> raw captured text (None when not located)
    """
    slots: List[Slot]
    pattern: str
    matched: bool
    groups: Dict[str, Optional[str]] = field(default_factory=dict)


@dataclass
class ExtractResult:
    """
    Outcome of extract()

    Attributes:
        data: Nested dict rebuilt from slot paths
        confidence: Fraction of slots matched, in [0, 1]
        unmatched: Labels of slots that could not be resolved
        debug: Always-populated diagnostics
    """
    data: Dict[str, Any]
    confidence: float
    unmatched: List[str]
    debug: Optional[ExtractDebugInfo] = None


@dataclass
class AIExtractResult(ExtractResult):
    """ExtractResult flagged with whether the AI fallback was engaged"""
    ai_assisted: bool = False


@dataclass
class FieldChange:
    """A single modified value; ``from_`` avoids the Python keyword"""
    from_: Any
    to: Any


@dataclass
class DiffResult:
    """
    Structural difference between an original and an extracted value

    Attributes:
        added: Keys only in the extracted value, nested like the inputs
        modified: Dotted path -> FieldChange for values present in both
        removed: Dotted paths only in the original value
        has_changes: True if any category is non-empty
    """
    added: Dict[str, Any] = field(default_factory=dict)
    modified: Dict[str, FieldChange] = field(default_factory=dict)
    removed: List[str] = field(default_factory=list)
    has_changes: bool = False


@dataclass
class ApplyOptions:
    """
    Options for apply_extract()

    Attributes:
        paths: Only apply these dotted paths (and their descendants)
        array_merge: Array combination policy; plain strings are accepted
    """
    paths: Optional[List[str]] = None
    array_merge: Optional[ArrayMerge] = None

    def __post_init__(self) -> None:
        if self.array_merge is not None and not isinstance(self.array_merge, ArrayMerge):
            self.array_merge = ArrayMerge(self.array_merge)


@dataclass
class TemplateValidation:
    """
    Static classification of a template's slots

    Attributes:
        valid: True when every slot is extractable without assistance
        extractable: Paths of expression slots
        needs_ai: Labels of component/conditional/loop slots
        warnings: One message per non-extractable slot
        slots: All slots in template order
    """
    valid: bool
    extractable: List[str]
    needs_ai: List[str]
    warnings: List[str]
    slots: List[Slot]

"""
Slot data models

Typed structures produced by the slot parser: the individual slots found in
a template and the literal text that separates them.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional


class SlotType(str, Enum):
    """
    Kinds of template slots

    Only EXPRESSION slots can be inverted by literal anchor matching. The
    other kinds are located but need a component extractor or AI assistance.
    """
    EXPRESSION = "expression"     # {data.title}
    CONDITIONAL = "conditional"   # {data.show ? "Yes" : "No"}, {formatDate(x)}
    LOOP = "loop"                 # {items.map(i => i.name)}
    COMPONENT = "component"       # <Table rows={data.rows} />


@dataclass
class Slot:
    """
    A placeholder found in a template

    Attributes:
        path: Trimmed brace content for expression/conditional/loop slots
              (e.g., "data.title"); None for components
        type: Slot kind
        raw: Original matched template text (e.g., "{data.title}")
        start: Offset of the slot in the template
        end: Offset just past the slot in the template
        component_name: Tag name for component slots (e.g., "PropertyTable")
        component_props: Prop name -> bound expression for brace-valued props
                         (e.g., {"properties": "data.properties"})
        children: Inner template text of a block component

    Example:
        For template "# {data.title}":
        Slot(path="data.title", type=SlotType.EXPRESSION,
             raw="{data.title}", start=2, end=14)
    """
    path: Optional[str]
    type: SlotType
    raw: str
    start: int = 0
    end: int = 0
    component_name: Optional[str] = None
    component_props: Dict[str, str] = field(default_factory=dict)
    children: Optional[str] = None

    @property
    def label(self) -> str:
        """Name used when reporting this slot (``<Name />`` or the path)"""
        if self.type == SlotType.COMPONENT:
            return f"<{self.component_name} />"
        return self.path or ""

    @property
    def is_extractable(self) -> bool:
        return self.type == SlotType.EXPRESSION


@dataclass
class ParsedTemplate:
    """
    A template split into alternating literal text and slots

    ``literals[i]`` is the text immediately before ``slots[i]`` and
    ``literals[-1]`` is the text after the last slot, so there is always
    exactly one more literal than there are slots.

    Example:
        "# {data.title}\\n\\n{data.body}" splits into
            literals = ["# ", "\\n\\n", ""]
            slots    = [Slot(path="data.title"), Slot(path="data.body")]
    """
    slots: List[Slot]
    literals: List[str]

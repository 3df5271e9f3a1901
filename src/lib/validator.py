"""
Template validation

Classifies a template's slots without rendering anything: which ones plain
pattern matching can recover and which need a component extractor or AI.
"""

from ..models.slots import SlotType
from ..models.results import TemplateValidation
from .slots import parse_template_slots
from .log import LOG


def validate_template(template: str) -> TemplateValidation:
    """
    Validate that a template is suitable for extraction

    Args:
        template: Template source

    Returns:
        TemplateValidation; valid is True only when every slot is a plain
        expression

    Example:
        >>> validate_template("<Table rows={data.rows} />").warnings
        ['Component <Table /> requires a custom extractor']
    """
    slots = parse_template_slots(template)
    extractable = []
    needs_ai = []
    warnings = []

    for slot in slots:
        if slot.type == SlotType.EXPRESSION:
            extractable.append(slot.path)
            continue

        needs_ai.append(slot.label)
        if slot.type == SlotType.COMPONENT:
            warnings.append(f"Component {slot.label} requires a custom extractor")
        elif slot.type == SlotType.CONDITIONAL:
            warnings.append(f'Conditional expression "{slot.path}" requires AI extraction')
        else:
            warnings.append(f'Loop expression "{slot.path}" requires AI extraction')

    LOG(f"Template has {len(extractable)} extractable and {len(needs_ai)} assisted slots", level=2)

    return TemplateValidation(
        valid=not needs_ai,
        extractable=extractable,
        needs_ai=needs_ai,
        warnings=warnings,
        slots=slots,
    )

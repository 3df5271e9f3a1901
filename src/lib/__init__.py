"""
unrender - Bidirectional template extraction

Recover the structured data behind a rendered MDX-style template.
"""

__version__ = "1.0.0"

from .slots import SlotParser, parse_template_slots
from .matcher import PatternMatcher
from .extractor import extract, ExtractError, ExtractErrorDetails
from .confidence import ConfidenceScorer, SlotRatioScorer, WeightedScorer
from .components import Component, ComponentExtractor, FunctionExtractor, round_trip_component
from .differ import diff
from .merger import apply_extract
from .validator import validate_template
from .ai import AIExtractionRequest, AIExtractionResponse, AIProvider, extract_with_ai
from .entity import (
    EntityComponent,
    EntityRenderOptions,
    RelationshipChange,
    create_entity_component,
    create_entity_extractors,
    diff_entities,
    entity_component_get,
    parse_markdown_table,
    render_markdown_list,
    render_markdown_table,
)
from .sync import SyncResult, sync_edits
from .log import LOG, state_connectToLogger

__all__ = [
    "SlotParser",
    "parse_template_slots",
    "PatternMatcher",
    "extract",
    "ExtractError",
    "ExtractErrorDetails",
    "ConfidenceScorer",
    "SlotRatioScorer",
    "WeightedScorer",
    "Component",
    "ComponentExtractor",
    "FunctionExtractor",
    "round_trip_component",
    "diff",
    "apply_extract",
    "validate_template",
    "AIExtractionRequest",
    "AIExtractionResponse",
    "AIProvider",
    "extract_with_ai",
    "EntityComponent",
    "EntityRenderOptions",
    "RelationshipChange",
    "create_entity_component",
    "create_entity_extractors",
    "diff_entities",
    "entity_component_get",
    "parse_markdown_table",
    "render_markdown_list",
    "render_markdown_table",
    "SyncResult",
    "sync_edits",
    "LOG",
    "state_connectToLogger",
    "__version__",
]

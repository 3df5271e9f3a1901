"""
Entity components

Round-trip components for lists of related entities (tags, authors,
related posts). The component name doubles as the entity type, so a
template can simply say <Tags items={post.tags} /> and get a markdown table
on render and a list of items back on extract.
"""

import json
import re
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..models.slots import SlotType
from .components import Component, ComponentExtractor, round_trip_component
from .slots import parse_template_slots
from .values import values_equal
from .log import LOG


NO_ITEMS = "_No items_"
NO_COLUMNS = "_No columns_"
MAX_AUTO_COLUMNS = 5

_META_FIELDS = {"$id", "$type", "$context", "createdAt", "updatedAt", "_content"}
_DISPLAY_FIELDS = ("name", "title", "label", "displayName", "slug", "$id")
_LIST_LINK = re.compile(r'^-\s*\[([^\]]+)\]\(([^)]+)\)')
_LIST_TEXT = re.compile(r'^-\s*(.+)$')


class EntityFormat(str, Enum):
    TABLE = "table"
    LIST = "list"


@dataclass
class EntityRenderOptions:
    """
    Rendering options for entity components

    Attributes:
        format: Render as a markdown table (default) or list
        link_pattern: List link template, "{$id}" is substituted
        limit: Maximum number of items rendered
    """
    format: EntityFormat = EntityFormat.TABLE
    link_pattern: Optional[str] = None
    limit: Optional[int] = None


@dataclass
class MarkdownTable:
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class EntityComponent(Component):
    """Component whose props are {"items": [...], "columns": [...], **filters}"""
    type: str = ""


class ChangeType(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    UPDATE = "update"


@dataclass
class RelationshipChange:
    """
    One change between two entity lists

    Attributes:
        type: add, remove or update
        entity_id: The entity's $id
        entity_type: The entity's $type ("" when unknown)
        data: Entity after the change (add, update)
        previous_data: Entity before the change (remove, update)
    """
    type: ChangeType
    entity_id: str
    entity_type: str
    data: Optional[Dict[str, Any]] = None
    previous_data: Optional[Dict[str, Any]] = None


def _cells_split(line: str) -> List[str]:
    return [cell.strip() for cell in line.split("|") if cell]


def parse_markdown_table(content: str) -> MarkdownTable:
    """
    Parse a markdown table into headers and rows of strings

    The second line is taken to be the |---| separator and skipped. Rows
    with fewer cells than headers are padded with "".
    """
    lines = [line for line in content.strip().split("\n") if line.strip()]
    if len(lines) < 2:
        return MarkdownTable()

    headers = _cells_split(lines[0])
    rows = []
    for line in lines[2:]:
        cells = _cells_split(line)
        rows.append({
            header: cells[i] if i < len(cells) else ""
            for i, header in enumerate(headers)
        })
    return MarkdownTable(headers=headers, rows=rows)


def _cell_format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list, tuple, bool)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def columns_detect(item: Mapping[str, Any]) -> List[str]:
    columns = [key for key in item if key not in _META_FIELDS and not key.startswith("$")]
    return columns[:MAX_AUTO_COLUMNS]


def displayField_detect(item: Mapping[str, Any]) -> str:
    for name in _DISPLAY_FIELDS:
        if item.get(name):
            return name
    return next((key for key in item if not key.startswith("$")), "$id")


def render_markdown_table(
    items: List[Dict[str, Any]],
    columns: Optional[List[str]] = None,
    options: Optional[EntityRenderOptions] = None,
) -> str:
    """
    Render entities as a markdown table

    Args:
        items: Entity dicts
        columns: Columns to show; detected from the first item when omitted
        options: Render options (only ``limit`` applies)

    Returns:
        The table, or "_No items_" / "_No columns_" placeholders
    """
    options = options or EntityRenderOptions()
    if not items:
        return NO_ITEMS

    columns = columns if columns is not None else columns_detect(items[0])
    if not columns:
        return NO_COLUMNS

    lines = [
        f"| {' | '.join(columns)} |",
        f"|{'|'.join('---' for _ in columns)}|",
    ]
    for item in items[:options.limit]:
        cells = [_cell_format(item.get(column)) for column in columns]
        lines.append(f"| {' | '.join(cells)} |")
    return "\n".join(lines)


def render_markdown_list(
    items: List[Dict[str, Any]],
    options: Optional[EntityRenderOptions] = None,
) -> str:
    """Render entities as "- name" or "- [name](link)" lines"""
    options = options or EntityRenderOptions()
    if not items:
        return NO_ITEMS

    display_field = displayField_detect(items[0])
    lines = []
    for item in items[:options.limit]:
        display = item.get(display_field) or item.get("$id")
        if options.link_pattern:
            link = options.link_pattern.replace("{$id}", str(item.get("$id", "")))
            lines.append(f"- [{display}]({link})")
        else:
            lines.append(f"- {display}")
    return "\n".join(lines)


def list_parse(content: str, entity_type: str) -> List[Dict[str, Any]]:
    items = []
    for line in content.split("\n"):
        line = line.strip()
        link_match = _LIST_LINK.match(line)
        if link_match:
            name, link = link_match.groups()
            entity_id = link.rstrip().split("/")[-1] or link
            items.append({"$id": entity_id, "name": name, "$type": entity_type})
            continue
        text_match = _LIST_TEXT.match(line)
        if text_match:
            text = text_match.group(1).strip()
            items.append({"$id": text, "name": text, "$type": entity_type})
    return [item for item in items if item["$id"]]


def create_entity_component(
    entity_type: str,
    options: Optional[EntityRenderOptions] = None,
) -> EntityComponent:
    """
    Create a round-trip component for an entity type

    Render takes {"items": [...], "columns": [...]} plus optional filter
    props (items whose fields equal every filter value are kept). Extract
    recognizes the empty placeholders, markdown lists and markdown tables.

    Example:
        >>> Tags = create_entity_component("Tag")
        >>> Tags.render({"items": [{"$id": "1", "name": "JavaScript"}]})
        '| name |\\n|---|\\n| JavaScript |'
        >>> Tags.extract("- JavaScript")["items"]
        [{'$id': 'JavaScript', 'name': 'JavaScript', '$type': 'Tag'}]
    """
    options = options or EntityRenderOptions()

    def render(props: Dict[str, Any]) -> str:
        filters = {k: v for k, v in props.items() if k not in ("items", "columns")}
        items = list(props.get("items") or [])
        if filters:
            items = [
                item for item in items
                if all(key in item and values_equal(item[key], value) for key, value in filters.items())
            ]
        if EntityFormat(options.format) == EntityFormat.LIST:
            return render_markdown_list(items, options)
        return render_markdown_table(items, props.get("columns"), options)

    def extract(content: str) -> Dict[str, Any]:
        trimmed = content.strip()
        if trimmed in (NO_ITEMS, NO_COLUMNS):
            return {"items": [], "columns": []}

        if trimmed.startswith("-"):
            return {"items": list_parse(trimmed, entity_type), "columns": ["name"]}

        table = parse_markdown_table(trimmed)
        items = []
        for index, row in enumerate(table.rows):
            item: Dict[str, Any] = {
                "$id": row.get("id") or row.get("$id") or row.get("slug") or str(index),
                "$type": entity_type,
            }
            item.update({k: v for k, v in row.items() if k not in ("id", "$id")})
            items.append(item)
        return {"items": items, "columns": table.headers}

    component = round_trip_component(render=render, extract=extract)
    return EntityComponent(
        render=component.render,
        extract=component.extract,
        extractor=component.extractor,
        type=entity_type,
    )


def type_singularize(name: str) -> str:
    """
    Naive singular form of a type name

    Categories -> Category, Boxes -> Box, Tags -> Tag; names ending in
    "ss" or "ses" are left alone.
    """
    if name.endswith("ies"):
        return name[:-3] + "y"
    if name.endswith("es") and not name.endswith("ses"):
        return name[:-2]
    if name.endswith("s") and not name.endswith("ss"):
        return name[:-1]
    return name


def entity_component_get(
    type_name: str,
    options: Optional[EntityRenderOptions] = None,
) -> EntityComponent:
    """Create the entity component for a (possibly plural) type name"""
    return create_entity_component(type_singularize(type_name), options)


def create_entity_extractors(
    template: str,
    options: Optional[EntityRenderOptions] = None,
) -> Dict[str, ComponentExtractor]:
    """
    Build an entity extractor for every component used in a template

    Example:
        >>> sorted(create_entity_extractors("<Tags items={post.tags} />\\n<Posts />"))
        ['Posts', 'Tags']
    """
    extractors: Dict[str, ComponentExtractor] = {}
    for slot in parse_template_slots(template):
        if slot.type != SlotType.COMPONENT or slot.component_name in extractors:
            continue
        extractors[slot.component_name] = entity_component_get(slot.component_name, options).extractor
    LOG(f"Entity extractors for {sorted(extractors)}", level=3)
    return extractors


def _payload(entity: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in entity.items() if k not in ("$id", "$type")}


def diff_entities(
    before: List[Dict[str, Any]],
    after: List[Dict[str, Any]],
) -> List[RelationshipChange]:
    """
    Diff two entity lists by $id

    Returns:
        Additions, then removals, then updates (entities whose fields other
        than $id and $type differ)
    """
    before_map = {entity["$id"]: entity for entity in before}
    after_map = {entity["$id"]: entity for entity in after}
    changes = []

    for entity_id, entity in after_map.items():
        if entity_id not in before_map:
            changes.append(RelationshipChange(
                type=ChangeType.ADD,
                entity_id=entity_id,
                entity_type=entity.get("$type", ""),
                data=entity,
            ))

    for entity_id, entity in before_map.items():
        if entity_id not in after_map:
            changes.append(RelationshipChange(
                type=ChangeType.REMOVE,
                entity_id=entity_id,
                entity_type=entity.get("$type", ""),
                previous_data=entity,
            ))

    for entity_id, after_entity in after_map.items():
        before_entity = before_map.get(entity_id)
        if before_entity is None:
            continue
        if not values_equal(_payload(before_entity), _payload(after_entity)):
            changes.append(RelationshipChange(
                type=ChangeType.UPDATE,
                entity_id=entity_id,
                entity_type=after_entity.get("$type", ""),
                data=after_entity,
                previous_data=before_entity,
            ))

    return changes

"""
Slot parser for MDX-style templates

Tokenizes a template into an ordered list of typed slots and the literal
text between them.

The parser operates in two phases:
1. Protection: Locate fenced code blocks and inline code spans, whose
   braces and tags are literal text
2. Scanning: Walk the template left to right, turning {expressions} and
   <Components> into Slot objects and collecting everything else as literals

Key features:
- Brace depth tracking for nested braces in expressions and props
- Component tags with brace-valued props, self-closing or block form
- Balanced same-name nesting for block components
- MDX comments ({/* ... */}) are dropped
- Malformed input degrades to literal text, parsing never raises

Example:
    >>> slots = parse_template_slots("# {data.title}\\n\\n<Table rows={data.rows} />")
    >>> [slot.label for slot in slots]
    ['data.title', '<Table />']
"""

import re
from bisect import bisect_right
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..models.slots import Slot, SlotType, ParsedTemplate
from .log import LOG


_SPECIAL = re.compile(r'[{<]')
_TAG_OPEN = re.compile(r'<([A-Z]\w*)')
_ATTR_NAME = re.compile(r'[A-Za-z_][\w:-]*')
_DOT_PATH = re.compile(r'^[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*$')
_COMMENT = re.compile(r'^/\*.*\*/$', re.DOTALL)
_FENCE_OPEN = re.compile(r'^[ \t]{0,3}(`{3,}|~{3,})', re.MULTILINE)
_CODE_SPAN = re.compile(r'(`+)(?!`)(.*?[^`])\1(?!`)', re.DOTALL)

LOOP_MARKERS: Tuple[str, ...] = ('.map(', '.filter(', '.forEach(')


def codefences_find(text: str) -> List[Tuple[int, int]]:
    """
    Find fenced code blocks in markdown text

    A fence opens with a line starting with ``` or ~~~ (up to three spaces
    of indent) and closes at the next line starting with at least as many
    of the same character. An unclosed fence runs to the end of the text.

    Args:
        text: Markdown text to scan

    Returns:
        Sorted list of (start, end) offsets, end exclusive, covering the
        fence lines themselves

    Example:
        For "a\\n```\\n{x}\\n```\\nb" returns [(2, 13)]
    """
    ranges: List[Tuple[int, int]] = []
    pos = 0

    while pos < len(text):
        opener = _FENCE_OPEN.search(text, pos)
        if not opener:
            break

        marker = opener.group(1)
        closer = re.compile(
            r'^[ \t]{0,3}' + re.escape(marker[0]) + '{' + str(len(marker)) + r',}[ \t]*$',
            re.MULTILINE,
        )
        body_start = text.find('\n', opener.end())
        if body_start == -1:
            ranges.append((opener.start(), len(text)))
            break

        close = closer.search(text, body_start + 1)
        end = close.end() if close else len(text)
        ranges.append((opener.start(), end))
        pos = end

    return ranges


def path_is(expression: str) -> bool:
    """Check if brace content is a plain dot path (e.g., "data.title")"""
    return _DOT_PATH.match(expression) is not None


def expression_classify(expression: str) -> SlotType:
    """
    Classify trimmed brace content

    Ternaries are checked first, then loop calls; a plain dot path is an
    expression and anything else (calls, operators) needs resolution.

    Example:
        >>> expression_classify('data.show ? "Yes" : "No"')
        <SlotType.CONDITIONAL: 'conditional'>
        >>> expression_classify('items.map(i => i.name)')
        <SlotType.LOOP: 'loop'>
    """
    if '?' in expression and ':' in expression:
        return SlotType.CONDITIONAL
    if any(marker in expression for marker in LOOP_MARKERS):
        return SlotType.LOOP
    if path_is(expression):
        return SlotType.EXPRESSION
    return SlotType.CONDITIONAL


def range_containing(ranges: List[Tuple[int, int]], offset: int) -> Optional[Tuple[int, int]]:
    """Return the (start, end) range containing offset, if any (ranges sorted)"""
    index = bisect_right(ranges, (offset, float('inf'))) - 1
    if index >= 0:
        start, end = ranges[index]
        if start <= offset < end:
            return ranges[index]
    return None


@dataclass
class TagMatch:
    """
    Result of scanning a component opening tag

    Attributes:
        name: Component name (e.g., "PropertyTable")
        props: Brace-valued props mapped to their trimmed expressions
        end: Offset just past the opening tag's closing '>' or '/>'
        self_closing: True for <Name ... />
    """
    name: str
    props: Dict[str, str]
    end: int
    self_closing: bool


class SlotParser:
    """
    Parser for MDX-style template slots

    Handles:
    - Expression slots: {data.title}
    - Conditional slots: {a ? b : c} and other unresolvable expressions
    - Loop slots: {items.map(...)}
    - Component slots: <Name prop={path} /> and <Name ...>...</Name>
    - Literal code fences and inline code spans
    """

    def __init__(self, template: str):
        """
        Initialize parser with template text

        Args:
            template: Raw template text

        Attributes:
            template: Template text being parsed
            protected: Sorted (start, end) ranges of code fences and code
                       spans whose content is literal
        """
        self.template = template
        self.protected: List[Tuple[int, int]] = []

    def codeRegions_protect(self) -> List[Tuple[int, int]]:
        """
        Locate template regions where braces and tags are literal

        Fenced code blocks are found first; inline code spans are then
        collected only outside those fences.

        Returns:
            Sorted list of protected (start, end) ranges
        """
        fences = codefences_find(self.template)
        spans: List[Tuple[int, int]] = []

        for match in _CODE_SPAN.finditer(self.template):
            if range_containing(fences, match.start()) is None:
                spans.append((match.start(), match.end()))

        self.protected = sorted(fences + spans)
        return self.protected

    def brace_findMatching(self, start_pos: int) -> Optional[int]:
        """
        Find matching closing brace using depth tracking

        Args:
            start_pos: Character position of opening '{' in template

        Returns:
            Position of the matching '}', or None when the template ends first

        Example:
            For "{fn({a: 1})}" at position 0 returns 11
        """
        depth = 1
        pos = start_pos + 1

        while pos < len(self.template) and depth > 0:
            if self.template[pos] == '{':
                depth += 1
            elif self.template[pos] == '}':
                depth -= 1
            pos += 1

        if depth != 0:
            return None

        return pos - 1

    def tag_scanWithStop(self, pos: int) -> Tuple[Optional[TagMatch], int]:
        """
        Scan a component opening tag starting at '<'

        Attributes may be brace-valued (bound), quoted strings (static) or
        bare booleans. A '>' inside prop braces does not end the tag.

        Args:
            pos: Position of '<' in template

        Returns:
            (TagMatch or None, stop) where stop is the offset the scan reached.
            An unterminated brace or quote runs to the end of the template.
        """
        match = _TAG_OPEN.match(self.template, pos)
        if not match:
            return None, pos + 1

        name = match.group(1)
        props: Dict[str, str] = {}
        i = match.end()
        n = len(self.template)

        while i < n:
            while i < n and self.template[i].isspace():
                i += 1
            if i >= n:
                return None, n

            if self.template.startswith('/>', i):
                return TagMatch(name=name, props=props, end=i + 2, self_closing=True), i + 2
            if self.template[i] == '>':
                return TagMatch(name=name, props=props, end=i + 1, self_closing=False), i + 1

            attr = _ATTR_NAME.match(self.template, i)
            if not attr:
                return None, i
            i = attr.end()

            while i < n and self.template[i].isspace():
                i += 1
            if i >= n or self.template[i] != '=':
                # Boolean attribute, e.g. <Tags published />
                continue

            i += 1
            while i < n and self.template[i].isspace():
                i += 1
            if i >= n:
                return None, n

            if self.template[i] == '{':
                close = self.brace_findMatching(i)
                if close is None:
                    return None, n
                expression = self.template[i + 1:close].strip()
                if expression:
                    props[attr.group(0)] = expression
                i = close + 1
            elif self.template[i] in '"\'':
                close = self.template.find(self.template[i], i + 1)
                if close == -1:
                    return None, n
                i = close + 1
            else:
                return None, i

        return None, n

    def tag_scan(self, pos: int) -> Optional[TagMatch]:
        """Scan a component opening tag; None if malformed or unterminated"""
        tag, _ = self.tag_scanWithStop(pos)
        return tag

    def malformedTag_end(self, pos: int) -> int:
        """
        End offset of the literal text for a tag at pos that did not parse

        An unclosed block tag covers its opening tag only. A broken opening
        tag covers everything the scan consumed, props included.
        """
        tag, stop = self.tag_scanWithStop(pos)
        if tag is not None:
            return tag.end
        return max(stop, pos + 1)

    def blockEnd_find(self, name: str, start: int) -> Optional[Tuple[int, int]]:
        """
        Find the closing </Name> of a block component

        Tracks nested same-name tags so that <Card><Card /></Card> and
        <Card><Card>..</Card></Card> close at the right place.

        Args:
            name: Component name
            start: Position just past the opening tag

        Returns:
            (close_start, close_end) offsets of the closing tag, or None
        """
        pattern = re.compile(r'<(/?)' + re.escape(name) + r'(?=[\s/>])')
        depth = 1
        pos = start

        while True:
            match = pattern.search(self.template, pos)
            if not match:
                return None

            if match.group(1):
                close_end = self.template.find('>', match.end())
                if close_end == -1:
                    return None
                depth -= 1
                if depth == 0:
                    return match.start(), close_end + 1
                pos = close_end + 1
            else:
                nested = self.tag_scan(match.start())
                if nested is None:
                    pos = match.end()
                    continue
                if not nested.self_closing:
                    depth += 1
                pos = nested.end

    def component_parse(self, pos: int) -> Optional[Slot]:
        """
        Parse a component slot starting at '<'

        Args:
            pos: Position of '<' in template

        Returns:
            Component Slot, or None if the tag is malformed (the caller then
            keeps the tag text as literal, see malformedTag_end)

        Example:
            For '<Card title={data.title}>Body</Card>':
            Slot(type=COMPONENT, component_name="Card",
                 component_props={"title": "data.title"}, children="Body")
        """
        tag = self.tag_scan(pos)
        if tag is None:
            return None

        if tag.self_closing:
            return Slot(
                path=None,
                type=SlotType.COMPONENT,
                raw=self.template[pos:tag.end],
                start=pos,
                end=tag.end,
                component_name=tag.name,
                component_props=tag.props,
            )

        closing = self.blockEnd_find(tag.name, tag.end)
        if closing is None:
            return None

        close_start, close_end = closing
        return Slot(
            path=None,
            type=SlotType.COMPONENT,
            raw=self.template[pos:close_end],
            start=pos,
            end=close_end,
            component_name=tag.name,
            component_props=tag.props,
            children=self.template[tag.end:close_start],
        )

    def template_split(self) -> ParsedTemplate:
        """
        Split the template into literals and slots

        Main entry point for parsing. Scans for '{' and '<Uppercase', skipping
        protected code regions, and records the literal text between slots.

        Returns:
            ParsedTemplate with len(literals) == len(slots) + 1

        Example:
            >>> SlotParser("# {data.title}!").template_split().literals
            ['# ', '!']
        """
        self.codeRegions_protect()

        slots: List[Slot] = []
        literals: List[str] = []
        pending: List[str] = []
        pos = 0
        n = len(self.template)

        while pos < n:
            special = _SPECIAL.search(self.template, pos)
            if not special:
                pending.append(self.template[pos:])
                break

            index = special.start()
            region = range_containing(self.protected, index)
            if region is not None:
                pending.append(self.template[pos:region[1]])
                pos = region[1]
                continue

            pending.append(self.template[pos:index])
            pos = index

            slot: Optional[Slot] = None
            if self.template[pos] == '{':
                close = self.brace_findMatching(pos)
                if close is not None:
                    expression = self.template[pos + 1:close].strip()
                    if _COMMENT.match(expression):
                        pos = close + 1
                        continue
                    if expression:
                        slot = Slot(
                            path=expression,
                            type=expression_classify(expression),
                            raw=self.template[pos:close + 1],
                            start=pos,
                            end=close + 1,
                        )
            else:
                slot = self.component_parse(pos)

            if slot is None:
                # Malformed or empty: keep it as literal text
                if self.template[pos] == '<':
                    stop = self.malformedTag_end(pos)
                else:
                    stop = pos + 1
                pending.append(self.template[pos:stop])
                pos = stop
                continue

            literals.append(''.join(pending))
            pending = []
            slots.append(slot)
            pos = slot.end

        literals.append(''.join(pending))

        LOG(f"Parsed {len(slots)} template slots", level=3)
        return ParsedTemplate(slots=slots, literals=literals)

    def parse(self) -> List[Slot]:
        """
        Parse the template into slots only

        Returns:
            Slots in left-to-right template order
        """
        return self.template_split().slots


def parse_template_slots(template: str) -> List[Slot]:
    """
    Tokenize a template into typed slots

    Args:
        template: Template text

    Returns:
        Slots in template order. Never raises; malformed syntax is literal.

    Example:
        >>> parse_template_slots("{user.profile.settings.theme}")[0].path
        'user.profile.settings.theme'
    """
    return SlotParser(template).parse()

"""
Anchor-based pattern matcher

Locates each slot's value inside rendered text using the literal template
text around it as anchors.

The matcher operates in two phases:
1. Anchor building: every literal between slots becomes an Anchor, a small
   escaped regex for its trimmed text plus line/word boundary guards taken
   from the whitespace that surrounded it in the template
2. Scanning: anchors are searched left to right from a cursor, one forward
   search per slot, and the text between consecutive anchors is the slot's
   captured value

There is never a composite pattern spanning several slots, so a failed slot
costs one scan of the remaining text and cannot backtrack into its
neighbours. Anchor hits that fall inside fenced code blocks of the rendered
text are skipped, which lets markdown headers delimit whole sections
including blank lines and code.

Example:
    >>> parsed = SlotParser("# {data.title}").template_split()
    >>> [c.value for c in PatternMatcher(parsed, "# Hello").captures_find()]
    ['Hello']
"""

import re
from enum import Enum
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

from ..models.slots import Slot, ParsedTemplate
from .slots import codefences_find
from .log import LOG


_WS_SPLIT = re.compile(r'(\s+)')
_NEWLINE_RUN = r'[ \t]*(?:\r?\n[ \t]*)+'
_SPACE_RUN = r'[ \t]+'
_PARAGRAPH_BREAK = r'[ \t]*\r?\n(?:[ \t]*\r?\n)+'
_LINE_BREAK = r'[ \t]*\r?\n'


class AnchorKind(Enum):
    """
    Kinds of literal anchors

    EMPTY: no literal at all (adjacent slots, template start/end)
    BREAK: whitespace only (paragraph break, line break or spaces)
    TEXT: literal text to match
    """
    EMPTY = "empty"
    BREAK = "break"
    TEXT = "text"


@dataclass
class Anchor:
    """
    A compiled literal anchor

    Attributes:
        literal: Untrimmed template literal
        kind: Anchor kind
        text: Trimmed literal text ("" for EMPTY/BREAK)
        pattern: Compiled regex (None for EMPTY)
    """
    literal: str
    kind: AnchorKind
    text: str
    pattern: Optional[Pattern[str]]

    @property
    def source(self) -> str:
        return self.pattern.pattern if self.pattern is not None else ''


@dataclass
class SlotCapture:
    """
    Where a slot's value was found in the rendered text

    Attributes:
        slot: The template slot
        index: Position of the slot in the template
        group: Debug group name (e.g., "slot_data_title_0")
        raw: Unstripped captured text, None when the anchors were not located
        start: Offset of the capture in rendered text (-1 if not located)
        end: Offset just past the capture (-1 if not located)
    """
    slot: Slot
    index: int
    group: str
    raw: Optional[str]
    start: int = -1
    end: int = -1

    @property
    def value(self) -> Optional[str]:
        """Stripped capture; None when not located or empty"""
        if self.raw is None:
            return None
        stripped = self.raw.strip()
        return stripped or None


def whitespace_pattern(run: str) -> str:
    """Regex for a whitespace run inside anchor text"""
    if '\n' in run:
        return _NEWLINE_RUN
    return _SPACE_RUN


def anchor_build(literal: str) -> Anchor:
    """
    Compile a template literal into an Anchor

    Text is escaped and matched literally. Whitespace inside the text
    matches any run of the same shape (spaces vs. line breaks). A newline
    before the text requires it to start a line; a newline after requires it
    to end one; plain spaces on either side require a whitespace boundary.

    Args:
        literal: Literal template text between two slots

    Returns:
        Anchor ready for searching

    Example:
        >>> anchor_build(" on ").pattern.pattern
        '(?<!\\\\S)on(?!\\\\S)'
    """
    if literal == '':
        return Anchor(literal=literal, kind=AnchorKind.EMPTY, text='', pattern=None)

    text = literal.strip()
    if not text:
        newlines = literal.count('\n')
        if newlines >= 2:
            source = _PARAGRAPH_BREAK
        elif newlines == 1:
            source = _LINE_BREAK
        else:
            source = _SPACE_RUN
        return Anchor(literal=literal, kind=AnchorKind.BREAK, text='', pattern=re.compile(source))

    leading = literal[:len(literal) - len(literal.lstrip())]
    trailing = literal[len(literal.rstrip()):]

    body = []
    for part in _WS_SPLIT.split(text):
        if not part:
            continue
        if part.isspace():
            body.append(whitespace_pattern(part))
        else:
            body.append(re.escape(part))

    if '\n' in leading:
        prefix = r'^[ \t]*'
    elif leading:
        prefix = r'(?<!\S)'
    else:
        prefix = ''

    if '\n' in trailing:
        suffix = r'[ \t\r]*$'
    elif trailing:
        suffix = r'(?!\S)'
    else:
        suffix = ''

    source = prefix + ''.join(body) + suffix
    return Anchor(literal=literal, kind=AnchorKind.TEXT, text=text, pattern=re.compile(source, re.MULTILINE))


class PatternMatcher:
    """
    Linear-scan matcher for one template against one rendered string

    Handles:
    - Text anchors with line and word boundaries
    - Whitespace-only break anchors between slots
    - Capture to end of string for a trailing slot
    - Capture to end of section when a break anchor is missing
    - Fenced code blocks in rendered text (anchors inside are skipped)
    - Resynchronization after an anchor that could not be located
    """

    def __init__(self, parsed: ParsedTemplate, rendered: str):
        """
        Initialize matcher

        Args:
            parsed: Template split into literals and slots
            rendered: Rendered text to extract from

        Attributes:
            anchors: One Anchor per template literal
            fences: Sorted fenced code block ranges in rendered text
            section_break: Compiled regex for section-ending lines
        """
        from ..config import appsettings

        self.parsed = parsed
        self.rendered = rendered
        self.anchors: List[Anchor] = [anchor_build(literal) for literal in parsed.literals]
        self.fences: List[Tuple[int, int]] = codefences_find(rendered)
        self.section_break: Pattern[str] = re.compile(appsettings.section_break_pattern, re.MULTILINE)
        self.group_names: List[str] = [
            appsettings.groupName_make(slot, index) for index, slot in enumerate(parsed.slots)
        ]

    def fence_skipTarget(self, offset: int, origin: int) -> Optional[int]:
        """
        Decide whether an anchor hit must be skipped

        A hit is skipped when it lies strictly inside a fence that opened at
        or after the search origin; fences that were already open at the
        origin belong to the anchors themselves.

        Args:
            offset: Start of the anchor hit
            origin: Where the current search started

        Returns:
            Offset to resume searching from, or None to accept the hit
        """
        for start, end in self.fences:
            if start > offset:
                break
            if start >= origin and start < offset < end:
                return end
        return None

    def pattern_search(self, pattern: Pattern[str], origin: int) -> Optional[re.Match]:
        """
        Search forward for a pattern, skipping hits inside code fences

        Args:
            pattern: Anchor or section-break regex
            origin: Rendered offset to start from

        Returns:
            First acceptable match, or None
        """
        pos = origin
        while pos <= len(self.rendered):
            match = pattern.search(self.rendered, pos)
            if not match:
                return None
            resume = self.fence_skipTarget(match.start(), origin)
            if resume is None:
                return match
            LOG(f"Skipping anchor hit inside code fence at {match.start()}", level=3)
            pos = resume
        return None

    def content_start(self, pos: int) -> int:
        """First non-whitespace offset at or after pos"""
        while pos < len(self.rendered) and self.rendered[pos].isspace():
            pos += 1
        return pos

    def section_end(self, pos: int) -> int:
        """Offset of the next section-break line after pos, or end of text"""
        match = self.pattern_search(self.section_break, pos)
        return match.start() if match else len(self.rendered)

    def captures_find(self) -> List[SlotCapture]:
        """
        Locate every slot's value in the rendered text

        Walks slots left to right. Each slot is bounded by the anchor before
        it (already consumed) and the anchor after it. When an anchor cannot
        be located the slots that depend on it are reported with raw=None and
        the scan resumes at the next text anchor that can be found.

        Returns:
            One SlotCapture per slot, in template order
        """
        captures: List[SlotCapture] = []
        cursor = 0
        synced = True

        lead = self.anchors[0]
        if lead.kind == AnchorKind.TEXT:
            match = self.pattern_search(lead.pattern, cursor)
            if match:
                cursor = match.end()
                LOG(f"Leading anchor {lead.text!r} found at {match.start()}", level=3)
            else:
                synced = False
                LOG(f"Leading anchor {lead.text!r} not found", level=3)

        slots = self.parsed.slots
        for index, slot in enumerate(slots):
            after = self.anchors[index + 1]
            is_last = index == len(slots) - 1
            group = self.group_names[index]

            if not synced:
                captures.append(SlotCapture(slot=slot, index=index, group=group, raw=None))
                if after.kind == AnchorKind.TEXT:
                    match = self.pattern_search(after.pattern, cursor)
                    if match:
                        cursor = match.end()
                        synced = True
                        LOG(f"Resynchronized on {after.text!r} at {match.start()}", level=3)
                continue

            start = cursor
            if after.kind == AnchorKind.EMPTY or (after.kind == AnchorKind.BREAK and is_last):
                if is_last:
                    end = len(self.rendered)
                else:
                    # Adjacent slots: nothing separates them, the first gets nothing
                    end = start
                cursor = end
            elif after.kind == AnchorKind.BREAK:
                origin = self.content_start(start)
                match = self.pattern_search(after.pattern, origin)
                if match:
                    end = match.start()
                    cursor = match.end()
                else:
                    end = self.section_end(origin)
                    cursor = end
                    LOG(f"No break after {slot.label!r}, captured to section end {end}", level=3)
            else:
                match = self.pattern_search(after.pattern, start)
                if not match:
                    captures.append(SlotCapture(slot=slot, index=index, group=group, raw=None))
                    synced = False
                    LOG(f"Anchor {after.text!r} after {slot.label!r} not found", level=3)
                    continue
                end = match.start()
                cursor = match.end()

            captures.append(SlotCapture(
                slot=slot,
                index=index,
                group=group,
                raw=self.rendered[start:end],
                start=start,
                end=end,
            ))
            LOG(f"Captured {slot.label!r} at [{start}:{end}]", level=3)

        return captures

    def pattern_describe(self) -> str:
        """
        Render the anchor sequence as a readable pattern

        Used for debug output only; it is never compiled as a whole.

        Example:
            For "# {data.title}" returns "\\#(?!\\S)(?P<slot_data_title_0>.*)"
        """
        parts = [self.anchors[0].source]
        slots = self.parsed.slots
        for index, _slot in enumerate(slots):
            after = self.anchors[index + 1]
            greedy = index == len(slots) - 1 and after.kind != AnchorKind.TEXT
            parts.append(f"(?P<{self.group_names[index]}>{'.*' if greedy else '.*?'})")
            parts.append(after.source)
        return ''.join(parts)

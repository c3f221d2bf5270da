"""
Parsing of annotated essay text into display segments.

The grading model marks every correction inline as::

    {{{original|||correction|||reason}}}

An empty reason means the correction has no explanation. There are no escape
sequences: the first ``}}}`` closes a marker and backslashes are plain text.
The interior splits on its first two ``|||``, so a reason may contain ``|||``
but the original and correction cannot. Older results use
``<del>original</del><ins>correction</ins>`` tags instead.
"""

import re
from dataclasses import dataclass
from typing import ClassVar, Iterator, List, Optional, Union

MARKER_PREFIX = "{{{"
SEPARATOR = "|||"

# Non-greedy, spans newlines
_MARKER_RE = re.compile(r"\{\{\{(.*?)\}\}\}", re.DOTALL)
_LEGACY_TAG_RE = re.compile(r"(</?(?:del|ins)>)")


@dataclass(frozen=True)
class TextSegment:
    """Plain text shown as-is."""

    kind: ClassVar[str] = "text"
    text: str


@dataclass(frozen=True)
class Correction:
    """One annotated error: what the student wrote, the fix, and why."""

    kind: ClassVar[str] = "correction"
    original: str
    correction: str
    reason: str = ""

    @property
    def has_reason(self) -> bool:
        return bool(self.reason.strip())


@dataclass(frozen=True)
class MarkedSegment:
    """Legacy-format text styled as an error (``<del>``) or a correction (``<ins>``)."""

    kind: ClassVar[str] = "marked"
    text: str
    style: str  # "error" or "correction"


Segment = Union[TextSegment, Correction, MarkedSegment]


def split_marker_fields(body: str) -> List[str]:
    """
    Split a marker interior into exactly three fields.

    Separators beyond the second stay part of the reason; missing fields
    are empty.
    """
    fields = body.split(SEPARATOR, 2)
    return fields + [""] * (3 - len(fields))


def _iter_marker_segments(text: str) -> Iterator[Segment]:
    position = 0
    for match in _MARKER_RE.finditer(text):
        if match.start() > position:
            yield TextSegment(text[position:match.start()])
        original, correction, reason = split_marker_fields(match.group(1))
        yield Correction(original, correction, reason)
        position = match.end()
    if position < len(text):
        yield TextSegment(text[position:])


def _iter_legacy_segments(text: str) -> Iterator[Segment]:
    parts = _LEGACY_TAG_RE.split(text)
    styled = "<del>" in text and "<ins>" in text
    for index, part in enumerate(parts):
        if not part or _LEGACY_TAG_RE.fullmatch(part):
            continue
        previous = parts[index - 1] if index > 0 else None
        if styled and previous == "<del>":
            yield MarkedSegment(part, "error")
        elif styled and previous == "<ins>":
            yield MarkedSegment(part, "correction")
        else:
            yield TextSegment(part)


class AnnotatedText:
    """
    Lazy view of an annotated text as display segments.

    Iterating parses the text from the start each time, so the sequence can
    be consumed any number of times and always yields the same segments.
    """

    def __init__(self, text: Optional[str]):
        self.text = text or ""

    @property
    def uses_markers(self) -> bool:
        return MARKER_PREFIX in self.text

    def __iter__(self) -> Iterator[Segment]:
        if not self.text:
            return iter(())
        if self.uses_markers:
            return _iter_marker_segments(self.text)
        return _iter_legacy_segments(self.text)

    def corrections(self) -> List[Correction]:
        return [segment for segment in self if isinstance(segment, Correction)]

    def __repr__(self) -> str:
        return f"AnnotatedText({self.text[:40]!r})"


def parse_segments(text: Optional[str]) -> List[Segment]:
    """Parse an annotated text into a list of segments."""
    return list(AnnotatedText(text))

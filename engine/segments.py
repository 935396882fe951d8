"""Split editor text into prose and delimiter-wrapped instruction runs.

    "*squareroot(2x)* captures how steep the curve is"
        -> Instruction('squareroot(2x)'), Text('captures how steep the curve is')

Only complete delimiter pairs count; a dangling delimiter stays literal text.
"""
import re
from dataclasses import dataclass

DEFAULT_DELIMITER = '*'


@dataclass(frozen=True)
class Text:
    content: str
    raw: str = ''
    start: int = 0
    end: int = 0


@dataclass(frozen=True)
class Instruction:
    content: str
    raw: str = ''
    start: int = 0
    end: int = 0


@dataclass(frozen=True)
class Latex:
    content: str


@dataclass(frozen=True)
class Placeholder:
    content: str


def _pair_pattern(delimiter):
    d = re.escape(delimiter)
    return re.compile(f'{d}(.*?){d}', re.DOTALL)


def iter_segments(document, delimiter=DEFAULT_DELIMITER):
    """Yield Text/Instruction segments in document order."""
    if not document:
        return
    last = 0
    found = False
    for match in _pair_pattern(delimiter).finditer(document):
        outside = document[last:match.start()]
        if outside.strip():
            found = True
            yield Text(outside.strip(), outside, last, match.start())
        inside = match.group(1)
        if inside.strip():
            found = True
            yield Instruction(inside.strip(), inside, match.start(), match.end())
        last = match.end()

    tail = document[last:]
    if tail.strip():
        found = True
        yield Text(tail.strip(), tail, last, len(document))

    if not found and document.strip():
        # Only blank pairs: the document still has visible content
        yield Text(document.strip(), document, 0, len(document))


class SegmentSequence:
    """Restartable view over a document's segments; each pass rescans."""

    def __init__(self, document, delimiter=DEFAULT_DELIMITER):
        self.document = document
        self.delimiter = delimiter

    def __iter__(self):
        return iter_segments(self.document, self.delimiter)

    def __repr__(self):
        return f'SegmentSequence({self.document[:40]!r})'


def extract_segments(document, delimiter=DEFAULT_DELIMITER):
    return list(iter_segments(document, delimiter))


def instructions(segments):
    """The Instruction subsequence, in order."""
    return [s for s in segments if isinstance(s, Instruction)]

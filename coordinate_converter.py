"""
Coordinate Converter - Rewrite bare coordinates inside target selectors into selector arguments

    @e[111 200 333 100 222 300]  ->  @e[x=100,y=200,z=300,dx=11,dy=22,dz=33]
    @a[/tp 333 555 2]            ->  @a[x=333,y=555,z=2]
"""

import re
from typing import Iterable, List, NamedTuple

# @c is not a vanilla selector, it is kept for test worlds
SELECTOR_TAGS = ['@e', '@a', '@p', '@r', '@s', '@c']
COMMAND_PREFIXES = ['fill', 'setblock', 'tp', 'teleport', 'summon', 'execute', 'clone']

_NUMBER = r'(-?[0-9]+(?:\.[0-9]+)?)'
_SELECTOR_HEAD = r'({tags})\[(?:/(?:{prefixes})\s+)?'.format(
    tags='|'.join(re.escape(tag) for tag in SELECTOR_TAGS),
    prefixes='|'.join(COMMAND_PREFIXES),
)

SELECTOR6_PATTERN = re.compile(_SELECTOR_HEAD + r'\s+'.join([_NUMBER] * 6) + r'\]')
SELECTOR3_PATTERN = re.compile(_SELECTOR_HEAD + r'\s+'.join([_NUMBER] * 3) + r'\]')

_LEADING_INT = re.compile(r'\s*([+-]?[0-9]+)')


class Candidate(NamedTuple):
    """A suggested rewrite, nothing is modified"""
    original: str
    converted: str
    position: int
    kind: str  # 'range' or 'point'


class Edit(NamedTuple):
    """One replacement inside a document.

    start/end already include ``shift``, the summed length change of the
    earlier edits of the same pass, so a pass can be replayed in order on a
    buffer that grows or shrinks as it goes. ``start - shift`` is the offset
    in the untouched document.
    """
    start: int
    end: int
    text: str
    original: str
    shift: int

    @property
    def original_start(self) -> int:
        return self.start - self.shift

    @property
    def original_end(self) -> int:
        return self.end - self.shift


class EditConflictError(ValueError):
    """Raised when a set of edits cannot be applied to a text"""


def truncate_coordinate(value: str) -> int:
    """Integer part of a coordinate literal, '12.9' -> 12, '-0.5' -> 0.

    Text without a leading integer counts as 0.
    """
    match = _LEADING_INT.match(value)
    if not match:
        return 0
    return int(match.group(1))


def is_range_match(text: str) -> bool:
    """True if the text also satisfies the 6-number selector grammar"""
    return SELECTOR6_PATTERN.search(text) is not None


class SelectorArgumentConverter:
    """Builds the key=value selector argument text"""

    def convert_point(self, selector: str, x: str, y: str, z: str) -> str:
        """@e + 1 2 3 -> @e[x=1,y=2,z=3], literals are copied as written"""
        return f"{selector}[x={x},y={y},z={z}]"

    def convert_range(self, selector: str, x1: str, y1: str, z1: str,
                      x2: str, y2: str, z2: str) -> str:
        """Convert two corners to the smallest corner plus dx/dy/dz.

        Each axis is ordered on its own. Comparison and deltas use the
        truncated integer value, so fractional parts never reach dx/dy/dz.
        """
        axes = []
        for start, end in ((x1, x2), (y1, y2), (z1, z2)):
            start_num = truncate_coordinate(start)
            end_num = truncate_coordinate(end)
            if start_num > end_num:
                start, end = end, start
                start_num, end_num = end_num, start_num
            axes.append((start, end_num - start_num))

        (x, dx), (y, dy), (z, dz) = axes
        return f"{selector}[x={x},y={y},z={z},dx={dx},dy={dy},dz={dz}]"


class CoordinateScanner:
    """Finds coordinate selectors in text and turns them into candidates or edits"""

    def __init__(self, converter: SelectorArgumentConverter = None, silent: bool = True):
        self.converter = converter or SelectorArgumentConverter()
        self.silent = silent

    def find_candidates(self, text: str) -> List[Candidate]:
        """All conversions available in the text, 6-number matches first"""
        candidates = []

        for match in SELECTOR6_PATTERN.finditer(text):
            converted = self.converter.convert_range(*match.groups())
            candidates.append(Candidate(match.group(0), converted, match.start(), 'range'))

        for match in SELECTOR3_PATTERN.finditer(text):
            if is_range_match(match.group(0)):
                continue
            converted = self.converter.convert_point(*match.groups())
            candidates.append(Candidate(match.group(0), converted, match.start(), 'point'))

        if not self.silent:
            print(f"Found {len(candidates)} coordinate candidates")
        return candidates

    def rewrite_selection(self, text: str, base_offset: int = 0) -> List[Edit]:
        """Edits for a selection whose text starts at base_offset in the document.

        Match offsets always come from the original selection text. The range
        pass and the point pass each keep their own running shift; their spans
        never overlap, so neither needs to know about the other.
        """
        edits = self._rewrite_pass(SELECTOR6_PATTERN, self._convert_range_match,
                                   text, base_offset)
        edits += self._rewrite_pass(SELECTOR3_PATTERN, self._convert_point_match,
                                    text, base_offset, skip_range_matches=True)

        if not self.silent:
            print(f"  {len(edits)} edits at offset {base_offset}")
        return edits

    def _rewrite_pass(self, pattern, convert, text: str, base_offset: int,
                      skip_range_matches: bool = False) -> List[Edit]:
        edits = []
        offset = 0
        for match in pattern.finditer(text):
            full_match = match.group(0)
            if skip_range_matches and is_range_match(full_match):
                continue

            converted = convert(match)
            start = base_offset + match.start() + offset
            edits.append(Edit(start, start + len(full_match), converted, full_match, offset))

            offset += len(converted) - len(full_match)
        return edits

    def _convert_range_match(self, match) -> str:
        return self.converter.convert_range(*match.groups())

    def _convert_point_match(self, match) -> str:
        return self.converter.convert_point(*match.groups())


def apply_edits(text: str, edits: Iterable[Edit]) -> str:
    """Apply edits from any number of passes and selections to the text they were built from"""
    spans = sorted(edits, key=lambda edit: edit.original_start)

    pieces = []
    position = 0
    for edit in spans:
        start, end = edit.original_start, edit.original_end
        if start < position or end > len(text):
            raise EditConflictError(f"Edit {start}-{end} overlaps another edit or leaves the text")
        if text[start:end] != edit.original:
            raise EditConflictError(f"Text at {start}-{end} no longer reads {edit.original!r}")
        pieces.append(text[position:start])
        pieces.append(edit.text)
        position = end
    pieces.append(text[position:])

    return ''.join(pieces)


def convert_text(text: str, scanner: CoordinateScanner = None) -> str:
    """Rewrite every coordinate selector in the text"""
    scanner = scanner or CoordinateScanner()
    edits = scanner.rewrite_selection(text)
    if not edits:
        return text
    return apply_edits(text, edits)

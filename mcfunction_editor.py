"""
mcfunction Editor - Coordinate conversion command and completion provider for .mcfunction files
"""

from typing import Callable, List, NamedTuple

from coordinate_converter import CoordinateScanner, Edit, EditConflictError, apply_edits

MCFUNCTION_SUFFIX = '.mcfunction'

UNSUPPORTED_FILE_MESSAGE = f"Coordinate conversion is only available in {MCFUNCTION_SUFFIX} files"
NOTHING_TO_CONVERT_MESSAGE = "No convertible coordinate patterns were found"
CONVERSION_FAILED_MESSAGE = "Failed to convert coordinates."

RANGE_DETAIL = "Convert to target selector arguments (6 numbers)"
POINT_DETAIL = "Convert to target selector arguments (3 numbers)"


def print_notification(level: str, message: str):
    print(f"[{level.upper()}] {message}")


class Selection(NamedTuple):
    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


class CompletionItem(NamedTuple):
    label: str
    insert_text: str
    detail: str
    documentation: str


class TextDocument:
    """In-memory document, edits are committed all at once or not at all"""

    def __init__(self, file_name: str, text: str = ''):
        self.file_name = file_name
        self.text = text
        self.version = 1

    def is_mcfunction(self) -> bool:
        return self.file_name.endswith(MCFUNCTION_SUFFIX)

    def get_text(self, selection: Selection) -> str:
        return self.text[selection.start:selection.end]

    def apply_edits(self, edits: List[Edit]) -> bool:
        try:
            new_text = apply_edits(self.text, edits)
        except EditConflictError:
            return False
        if edits:
            self.text = new_text
            self.version += 1
        return True


class CoordinateCompletionProvider:
    """Offers a conversion for every coordinate selector in the selected text"""

    def __init__(self, scanner: CoordinateScanner = None):
        self.scanner = scanner or CoordinateScanner()

    def provide_completion_items(self, document: TextDocument, selection: Selection,
                                 cancelled: bool = False) -> List[CompletionItem]:
        if cancelled or not document.is_mcfunction():
            return []
        if selection is None or selection.is_empty:
            return []

        items = []
        for candidate in self.scanner.find_candidates(document.get_text(selection)):
            detail = RANGE_DETAIL if candidate.kind == 'range' else POINT_DETAIL
            items.append(CompletionItem(
                label=f"{candidate.original} → {candidate.converted}",
                insert_text=candidate.converted,
                detail=detail,
                documentation=f"Converts `{candidate.original}` to `{candidate.converted}`.",
            ))
        return items


def convert_coordinates_command(document: TextDocument, selections: List[Selection],
                                notify: Callable[[str, str], None] = print_notification,
                                scanner: CoordinateScanner = None) -> int:
    """Rewrite the coordinate selectors in every selection, returns the number of edits applied"""
    if not document.is_mcfunction():
        notify('info', UNSUPPORTED_FILE_MESSAGE)
        return 0

    scanner = scanner or CoordinateScanner()
    edits = []
    for selection in selections:
        if selection.is_empty:
            continue
        edits += scanner.rewrite_selection(document.get_text(selection), selection.start)

    if not document.apply_edits(edits):
        notify('error', CONVERSION_FAILED_MESSAGE)
        return 0
    if not edits:
        notify('info', NOTHING_TO_CONVERT_MESSAGE)
    return len(edits)

"""
Selection validation: decide whether a sort targets the whole class or a subset.
"""

from dataclasses import dataclass, field
from enum import Enum

from element_sorter.core.source_model import ClassBody, SourceNode

NO_ELEMENTS_IN_SELECTION = "No sortable elements in selection"


class SelectionMode(Enum):
    WHOLE_CLASS = "whole_class"
    SELECTED_SUBSET = "selected_subset"
    INVALID = "invalid"


@dataclass(frozen=True)
class SelectionRange:
    """Half-open ``[start, end)`` character offsets into the document"""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid selection range: {self.start}:{self.end}")

    @property
    def is_collapsed(self) -> bool:
        return self.start == self.end

    def contains(self, node: SourceNode) -> bool:
        """True when the node's whole span lies inside the range"""
        return self.start <= node.start and node.end <= self.end

    @classmethod
    def parse(cls, value: str) -> "SelectionRange":
        """Parse ``START:END`` into a range"""
        start, separator, end = value.partition(":")
        if not separator:
            raise ValueError(f"Expected START:END, got {value!r}")
        return cls(int(start), int(end))

    @classmethod
    def from_lines(cls, text: str, first_line: int, last_line: int) -> "SelectionRange":
        """Range covering 1-based inclusive lines ``first_line``..``last_line``.

        Lines past the end of the text are clamped to the end.
        """
        if first_line < 1 or last_line < first_line:
            raise ValueError(f"Invalid line range: {first_line}:{last_line}")

        lines = text.splitlines(keepends=True)
        start = sum(len(line) for line in lines[: first_line - 1])
        end = sum(len(line) for line in lines[:last_line])
        return cls(min(start, len(text)), min(end, len(text)))


@dataclass
class SelectionResult:
    mode: SelectionMode
    members: list[SourceNode] = field(default_factory=list)
    message: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.mode != SelectionMode.INVALID


def validate_selection(
    selection: SelectionRange | None, body: ClassBody
) -> SelectionResult:
    """Check a selection against the direct members of a class body.

    Members that only partially overlap the range are left out of the subset.

    Args:
        selection: Selected range, None when nothing is selected
        body: Body of the class being sorted

    Returns:
        SelectionResult with the mode and, for a subset, the members in
        document order
    """
    if selection is None or selection.is_collapsed:
        return SelectionResult(mode=SelectionMode.WHOLE_CLASS)

    subset = [member for member in body.members() if selection.contains(member)]
    if not subset:
        return SelectionResult(
            mode=SelectionMode.INVALID, message=NO_ELEMENTS_IN_SELECTION
        )

    return SelectionResult(mode=SelectionMode.SELECTED_SUBSET, members=subset)

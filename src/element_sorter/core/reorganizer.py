"""
Member reorganization for the first class of a source document.

Whole-class mode partitions the members into ordering groups, sorts each
group and re-emits them at the end of the class body with canonical blank
lines between groups. Selected-subset mode only sorts the selected members
between themselves and puts them back into the slots they came from.

All copies are captured before the first deletion; originals are deleted
together with their leading comments in descending offset order.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from element_sorter.core.attachments import resolve_attachments
from element_sorter.core.classification_rule_member import (
    GROUP_ORDER,
    Group,
    MemberClassifier,
)
from element_sorter.core.config import SortingConfig
from element_sorter.core.exceptions import StructuralEditError
from element_sorter.core.member_ranker import MemberRanker
from element_sorter.core.reporting import CollectingReporter, Reporter
from element_sorter.core.selection import (
    SelectionMode,
    SelectionRange,
    validate_selection,
)
from element_sorter.core.source_model import (
    ClassBody,
    SourceDocument,
    SourceNode,
    whitespace_node,
)
from element_sorter.core.transaction import EditTransaction

logger = logging.getLogger(__name__)

NO_CLASS_FOUND = "No classes found in file"
NO_ELEMENTS_FOUND = "No sortable elements found"
SORTING_FAILED = "Sorting failed"

FIELD_GROUPS = (
    Group.STATIC_FIELDS,
    Group.PLAIN_INSTANCE_FIELDS,
    Group.ANNOTATED_INSTANCE_FIELDS,
)


class SortStatus(Enum):
    SORTED = "sorted"
    NO_CLASS = "no_class"
    NO_ELEMENTS = "no_elements"
    INVALID_SELECTION = "invalid_selection"
    FAILED = "failed"


@dataclass
class SortOutcome:
    """Result of one reorganize call"""

    status: SortStatus
    message: str
    text: str
    fields: int = 0
    methods: int = 0
    nested_types: int = 0
    selected: bool = False

    @property
    def total(self) -> int:
        return self.fields + self.methods + self.nested_types

    @property
    def is_sorted(self) -> bool:
        return self.status == SortStatus.SORTED


@dataclass
class RelocatableMember:
    """Detached copy of a member and its leading comments, ready to insert.

    ``originals`` are the resident nodes (attachment run plus member) that
    are deleted once every copy has been captured.
    """

    member: SourceNode
    attachments: list[SourceNode] = field(default_factory=list)
    indent: str = ""
    leading_whitespace: str | None = None
    originals: list[SourceNode] = field(default_factory=list)

    @property
    def start(self) -> int:
        return self.originals[0].start

    def nodes(self) -> list[SourceNode]:
        return self.attachments + [self.member]


def normalize_whitespace(text: str, newline: str = "\n") -> str:
    """Keep at most one blank line and drop spaces before line breaks.

    Every line break is rewritten as ``newline``.
    """
    if "\n" not in text:
        return text
    newlines = min(text.count("\n"), 2)
    return newline * newlines + text.rsplit("\n", 1)[1]


class Reorganizer:
    """Sort the members of the first class in a document."""

    def __init__(
        self,
        policy: SortingConfig | None = None,
        reporter: Reporter | None = None,
    ):
        self.policy = policy or SortingConfig()
        self.reporter = reporter or CollectingReporter()
        self.ranker = MemberRanker(self.policy)
        self.classifier = MemberClassifier(self.policy)

    def reorganize(
        self,
        document: SourceDocument,
        selection: SelectionRange | None = None,
    ) -> SortOutcome:
        """Sort the first class of ``document`` in place.

        Args:
            document: Parsed source document
            selection: Optional selected range; None sorts the whole class

        Returns:
            SortOutcome whose ``text`` is the rendered document. The text is
            the unchanged original whenever nothing was sorted.
        """
        target = document.first_class()
        if target is None:
            return self._report_info(SortStatus.NO_CLASS, NO_CLASS_FOUND, document)

        body = target.body
        checked = validate_selection(selection, body)
        if checked.mode == SelectionMode.INVALID:
            return self._report_info(
                SortStatus.INVALID_SELECTION, checked.message, document
            )

        if checked.mode == SelectionMode.WHOLE_CLASS and not body.sortable_elements():
            return self._report_info(SortStatus.NO_ELEMENTS, NO_ELEMENTS_FOUND, document)

        try:
            with EditTransaction(document):
                if checked.mode == SelectionMode.SELECTED_SUBSET:
                    outcome = self._reorganize_subset(body, checked.members)
                else:
                    outcome = self._reorganize_whole(body, depth=0)
        except StructuralEditError as e:
            logger.error(f"Sorting {target.name} failed: {e}")
            self.reporter.error(SORTING_FAILED)
            return SortOutcome(
                status=SortStatus.FAILED, message=SORTING_FAILED, text=document.text
            )

        outcome.text = document.render()
        self.reporter.info(outcome.message)
        return outcome

    def _report_info(
        self, status: SortStatus, message: str, document: SourceDocument
    ) -> SortOutcome:
        logger.debug(f"Nothing to sort in {document.path or 'source'}: {message}")
        self.reporter.info(message)
        return SortOutcome(status=status, message=message, text=document.text)

    # ============================================================
    # WHOLE CLASS
    # ============================================================

    def _reorganize_whole(self, body: ClassBody, depth: int) -> SortOutcome:
        operands = body.sortable_elements()
        groups = self.classifier.group(operands)
        for group, members in groups.items():
            # Nested types keep their source order
            if group != Group.NESTED_CLASSES:
                groups[group] = self.ranker.sort(members)

        if depth < self.policy.max_nesting_depth:
            for nested in groups[Group.NESTED_CLASSES]:
                if nested.body is not None and nested.body.sortable_elements():
                    logger.debug(f"Sorting nested type {nested.name} at depth {depth + 1}")
                    self._reorganize_whole(nested.body, depth + 1)

        captured = {
            group: [self._capture(body, member) for member in members]
            for group, members in groups.items()
        }

        self._delete_originals(
            body, [item for items in captured.values() for item in items]
        )
        self._trim_body_end(body)

        inserted = self._insert_groups(body, captured)
        self._normalize_body_start(body, inserted)
        body.commit()
        self._cleanup(body, inserted)

        fields = sum(len(groups[group]) for group in FIELD_GROUPS)
        methods = len(groups[Group.METHODS])
        nested_types = len(groups[Group.NESTED_CLASSES])
        total = fields + methods + nested_types

        message = f"Sorted {total} elements: {fields} fields, {methods} methods"
        if nested_types:
            message += f", {nested_types} nested types"
        logger.debug(f"{body.name}: {message}")

        return SortOutcome(
            status=SortStatus.SORTED,
            message=message,
            text="",
            fields=fields,
            methods=methods,
            nested_types=nested_types,
        )

    def _insert_groups(
        self, body: ClassBody, captured: dict[Group, list[RelocatableMember]]
    ) -> set[int]:
        """Append every group at the end of the body, return inserted whitespace ids"""
        inserted: set[int] = set()
        has_content = any(not node.is_whitespace for node in body.resident())
        newline = body.newline

        previous = None
        previous_group = None
        for group in GROUP_ORDER:
            for item in captured[group]:
                if previous is None:
                    separator = newline * 2 if has_content else newline
                elif group != previous_group:
                    separator = newline * 2
                else:
                    separator = self._separator_within(group, previous, newline)

                self._insert_separator(body, None, separator + item.indent, inserted)
                self._insert_member(body, None, item, inserted)
                previous, previous_group = item, group

        self._insert_separator(body, None, newline + body.closing_indent, inserted)
        return inserted

    def _separator_within(
        self, group: Group, previous: RelocatableMember, newline: str
    ) -> str:
        blank = self.policy.blank_line_after_doc_or_annotation and (
            previous.member.has_doc
            or (previous.member.is_field and previous.member.has_annotation)
        )
        if group in (Group.METHODS, Group.NESTED_CLASSES):
            blank = blank or self.policy.blank_line_between_methods
        return newline * 2 if blank else newline

    def _trim_body_end(self, body: ClassBody) -> None:
        """Delete whitespace left between the last resident node and the brace"""
        for node in reversed(body.resident()):
            if not node.is_whitespace:
                break
            body.delete(node)

    def _normalize_body_start(self, body: ClassBody, inserted: set[int]) -> None:
        """Start the body on a fresh line once the members in front are gone.

        A first child that was not deleted keeps its original layout. Otherwise
        the node now following the brace gets its own line, without a blank
        line above it.
        """
        resident = body.resident()
        if not resident or resident[0] is body.children[0]:
            return

        first = resident[0]
        if not first.is_whitespace:
            self._insert_separator(
                body, first, body.newline + body.member_indent, inserted
            )
            return

        if "\n" not in first.text:
            text = body.newline + body.member_indent
        elif first.text.count("\n") > 1:
            text = body.newline + first.text.rsplit("\n", 1)[1]
        else:
            return
        self._insert_separator(body, first, text, inserted)
        body.delete(first)

    # ============================================================
    # SELECTED SUBSET
    # ============================================================

    def _reorganize_subset(
        self, body: ClassBody, members: list[SourceNode]
    ) -> SortOutcome:
        """Sort the selected members between themselves.

        The sorted copies go where the first selected member started, and
        reuse the original leading whitespace of each position in turn.
        """
        captured = {member.node_id: self._capture(body, member) for member in members}
        slots = [captured[member.node_id].leading_whitespace for member in members]
        ordered = [captured[member.node_id] for member in self.ranker.sort(members)]
        anchor = captured[members[0].node_id].originals[0]

        self._delete_originals(body, list(captured.values()))

        inserted: set[int] = set()
        for slot, item in zip(slots, ordered):
            if slot is not None:
                self._insert_separator(body, anchor, slot, inserted)
            self._insert_member(body, anchor, item, inserted)

        body.commit()
        self._cleanup(body, inserted)

        fields = sum(1 for member in members if member.is_field)
        methods = len(members) - fields
        message = f"Sorted {len(members)} selected elements"
        logger.debug(f"{body.name}: {message}")

        return SortOutcome(
            status=SortStatus.SORTED,
            message=message,
            text="",
            fields=fields,
            methods=methods,
            selected=True,
        )

    # ============================================================
    # EDIT STEPS
    # ============================================================

    def _capture(self, body: ClassBody, member: SourceNode) -> RelocatableMember:
        """Copy a member together with its attachment run"""
        run = resolve_attachments(body, member)
        leading = run.leading_whitespace

        indent = body.member_indent
        if leading is not None and "\n" in leading.text:
            indent = leading.text.rsplit("\n", 1)[1]

        return RelocatableMember(
            member=member.copy(),
            attachments=[node.copy() for node in run if node is not leading],
            indent=indent,
            leading_whitespace=leading.text if leading is not None else None,
            originals=run.nodes + [member],
        )

    @staticmethod
    def _delete_originals(body: ClassBody, items: list[RelocatableMember]) -> None:
        for item in sorted(items, key=lambda item: item.start, reverse=True):
            for node in reversed(item.originals):
                body.delete(node)

    @staticmethod
    def _insert_member(
        body: ClassBody,
        anchor: SourceNode | None,
        item: RelocatableMember,
        inserted: set[int],
    ) -> None:
        body.insert_before(anchor, item.nodes())
        inserted.update(node.node_id for node in item.attachments if node.is_whitespace)

    @staticmethod
    def _insert_separator(
        body: ClassBody,
        anchor: SourceNode | None,
        text: str,
        inserted: set[int],
    ) -> None:
        """Insert whitespace; a failure here only costs a line break"""
        node = whitespace_node(text)
        try:
            body.insert_before(anchor, [node])
        except StructuralEditError as e:
            logger.debug(f"Skipped separator in {body.name}: {e}")
            return
        inserted.add(node.node_id)

    @staticmethod
    def _cleanup(body: ClassBody, inserted: set[int]) -> None:
        """Collapse blank lines in whitespace this edit inserted"""
        for node in body.children:
            if node.node_id in inserted and node.is_whitespace:
                node.text = normalize_whitespace(node.text, body.newline)

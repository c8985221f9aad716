"""
In-memory source model for class declarations.

A class body is an arena of nodes indexed by stable ids. Nodes are never
removed from the arena while an edit is in progress: deleting a node marks it
as a tombstone and inserting nodes records them in an insertion list keyed by
an anchor node. ``ClassBody.commit`` compacts the arena into the new child
sequence. All reads happen before any mutation, so offsets and identities of
the originals stay valid for the whole edit.
"""

import copy
import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from element_sorter.core.exceptions import StructuralEditError

logger = logging.getLogger(__name__)

_node_ids = itertools.count(1)


def next_node_id() -> int:
    """Allocate a new arena id"""
    return next(_node_ids)


class NodeKind(Enum):
    """Kind of a child node inside a class body"""

    FIELD = "field"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    TYPE = "type"
    COMMENT = "comment"
    WHITESPACE = "whitespace"
    OTHER = "other"


class Visibility(Enum):
    """Declared visibility of a member"""

    PUBLIC = "public"
    PROTECTED = "protected"
    PACKAGE_PRIVATE = "package-private"
    PRIVATE = "private"


@dataclass
class SourceNode:
    """A single child of a class body.

    Members (fields and methods) carry their descriptor attributes; nested
    type declarations carry their own ``ClassBody`` when it can be sorted.
    ``visibility`` is None when the declaration has no modifier list at all.
    """

    node_id: int
    kind: NodeKind
    text: str
    start: int = 0
    end: int = 0
    name: str = ""
    visibility: Visibility | None = None
    is_static: bool = False
    annotations: list[str] = field(default_factory=list)
    has_doc: bool = False
    declared_type: str | None = None
    body: "ClassBody | None" = None

    @property
    def is_member(self) -> bool:
        return self.kind in (NodeKind.FIELD, NodeKind.METHOD)

    @property
    def is_sortable(self) -> bool:
        """Members and nested types take part in whole-class sorting"""
        return self.kind in (NodeKind.FIELD, NodeKind.METHOD, NodeKind.TYPE)

    @property
    def is_field(self) -> bool:
        return self.kind == NodeKind.FIELD

    @property
    def is_method(self) -> bool:
        return self.kind == NodeKind.METHOD

    @property
    def is_type(self) -> bool:
        return self.kind == NodeKind.TYPE

    @property
    def is_comment(self) -> bool:
        return self.kind == NodeKind.COMMENT

    @property
    def is_whitespace(self) -> bool:
        return self.kind == NodeKind.WHITESPACE

    @property
    def is_doc_comment(self) -> bool:
        return self.kind == NodeKind.COMMENT and self.text.startswith("/**")

    @property
    def has_annotation(self) -> bool:
        return len(self.annotations) > 0

    def copy(self) -> "SourceNode":
        """Detached deep copy with no reference back to the original tree.

        The copy gets a new id, so it is never confused with the original.
        """
        clone = copy.deepcopy(self)
        clone.node_id = next_node_id()
        return clone

    def render(self) -> str:
        if self.body is not None:
            return self.body.render()
        return self.text

    def __repr__(self) -> str:
        label = self.name or self.text[:20].replace("\n", "\\n")
        return f"<{self.kind.value} #{self.node_id} {label!r} [{self.start}:{self.end})>"


def whitespace_node(text: str) -> SourceNode:
    """Create a detached whitespace node"""
    return SourceNode(node_id=next_node_id(), kind=NodeKind.WHITESPACE, text=text)


@dataclass
class ClassBody:
    """Children of one type declaration, between its braces.

    ``header`` is the declaration text up to and including the opening brace,
    ``footer`` starts at the closing brace. ``newline`` is the line break of
    the source file, used for every line break the sorter writes.
    """

    name: str
    header: str
    footer: str
    children: list[SourceNode] = field(default_factory=list)
    declaration: str = "class"
    start: int = 0
    end: int = 0
    member_indent: str = "    "
    closing_indent: str = ""
    newline: str = "\n"
    _tombstones: set[int] = field(default_factory=set, init=False, repr=False)
    _insertions: dict[int | None, list[SourceNode]] = field(
        default_factory=dict, init=False, repr=False
    )

    # ============================================================
    # QUERIES
    # ============================================================

    def resident(self) -> list[SourceNode]:
        """Children that are not tombstoned"""
        return [node for node in self.children if node.node_id not in self._tombstones]

    def is_resident(self, node: SourceNode) -> bool:
        if node.node_id in self._tombstones:
            return False
        return any(child.node_id == node.node_id for child in self.children)

    def members(self) -> list[SourceNode]:
        """Direct fields and methods, in document order"""
        return [node for node in self.resident() if node.is_member]

    def sortable_elements(self) -> list[SourceNode]:
        """Direct fields, methods and nested types, in document order"""
        return [node for node in self.resident() if node.is_sortable]

    def nested_types(self) -> list[SourceNode]:
        return [node for node in self.resident() if node.is_type]

    def position(self, node: SourceNode) -> int:
        """Index of a resident node in the arena"""
        if node.node_id in self._tombstones:
            raise StructuralEditError(f"{node!r} was already deleted from {self.name}")
        for index, child in enumerate(self.children):
            if child.node_id == node.node_id:
                return index
        raise StructuralEditError(f"{node!r} is not a child of {self.name}")

    def previous_sibling(self, node: SourceNode) -> SourceNode | None:
        """Closest resident node before ``node``"""
        index = self.position(node)
        for child in reversed(self.children[:index]):
            if child.node_id not in self._tombstones:
                return child
        return None

    @property
    def has_pending_edits(self) -> bool:
        return bool(self._tombstones or self._insertions)

    # ============================================================
    # MUTATION
    # ============================================================

    def delete(self, node: SourceNode) -> None:
        """Tombstone a resident node"""
        self.position(node)
        self._tombstones.add(node.node_id)
        logger.debug(f"Deleted {node!r} from {self.name}")

    def insert_before(self, anchor: SourceNode | None, nodes: list[SourceNode]) -> None:
        """Queue nodes for insertion in front of ``anchor``.

        The anchor may already be tombstoned, the inserted nodes then take its
        place. A None anchor appends at the end of the body.
        """
        if anchor is not None and not any(
            child.node_id == anchor.node_id for child in self.children
        ):
            raise StructuralEditError(f"Anchor {anchor!r} is not a child of {self.name}")
        key = anchor.node_id if anchor is not None else None
        self._insertions.setdefault(key, []).extend(nodes)

    def commit(self) -> list[SourceNode]:
        """Apply pending deletions and insertions, return the new children"""
        result = []
        for child in self.children:
            result.extend(self._insertions.get(child.node_id, []))
            if child.node_id not in self._tombstones:
                result.append(child)
        result.extend(self._insertions.get(None, []))

        self.children = result
        self._tombstones = set()
        self._insertions = {}
        return result

    def rollback(self) -> None:
        """Drop pending edits without applying them"""
        self._tombstones = set()
        self._insertions = {}

    # ============================================================
    # RENDERING
    # ============================================================

    def render(self) -> str:
        return self.header + "".join(child.render() for child in self.children) + self.footer


@dataclass
class SourceDocument:
    """A parsed compilation unit.

    ``types`` holds the top-level type declarations in document order.
    """

    text: str
    types: list[SourceNode] = field(default_factory=list)
    path: Path | None = None

    def first_class(self) -> SourceNode | None:
        """First top-level declaration, None when it has no sortable body.

        Later declarations are never targeted, even when the first one is an
        enum or an annotation type.
        """
        if not self.types or self.types[0].body is None:
            return None
        return self.types[0]

    def render(self) -> str:
        """Rebuild the document text from the (possibly edited) types"""
        parts = []
        cursor = 0
        for node in self.types:
            parts.append(self.text[cursor : node.start])
            parts.append(node.render())
            cursor = node.end
        parts.append(self.text[cursor:])
        return "".join(parts)

    def snapshot(self) -> list[SourceNode]:
        return copy.deepcopy(self.types)

    def restore(self, types: list[SourceNode]) -> None:
        self.types = types

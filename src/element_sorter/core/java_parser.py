"""
Java source model provider built on tree-sitter.

Parses a compilation unit and exposes its top-level type declarations as
``SourceNode`` objects whose ``ClassBody`` lists every child between the
braces, including synthesized whitespace nodes for the gaps between tokens.
Offsets are character offsets into the original text.
"""

import logging
from pathlib import Path
from typing import Any

from tree_sitter_language_pack import get_parser

from element_sorter.core.exceptions import SourceParseError
from element_sorter.core.source_model import (
    ClassBody,
    NodeKind,
    SourceDocument,
    SourceNode,
    Visibility,
    next_node_id,
)

logger = logging.getLogger(__name__)


class JavaSourceParser:
    """Build a ``SourceDocument`` from Java source text."""

    TYPE_DECLARATIONS: set[str] = {
        "class_declaration",
        "interface_declaration",
        "enum_declaration",
        "record_declaration",
        "annotation_type_declaration",
    }

    # Declarations whose body is a plain member list we know how to sort
    SORTABLE_BODIES: set[str] = {"class_body", "interface_body"}

    FIELD_DECLARATIONS: set[str] = {"field_declaration", "constant_declaration"}
    METHOD_DECLARATIONS: set[str] = {"method_declaration"}
    CONSTRUCTOR_DECLARATIONS: set[str] = {
        "constructor_declaration",
        "compact_constructor_declaration",
    }
    COMMENTS: set[str] = {"line_comment", "block_comment", "comment"}
    ANNOTATIONS: set[str] = {"marker_annotation", "annotation"}

    VISIBILITY_KEYWORDS: dict[str, Visibility] = {
        "public": Visibility.PUBLIC,
        "protected": Visibility.PROTECTED,
        "private": Visibility.PRIVATE,
    }

    def __init__(self):
        self._parser = get_parser("java")
        self._text = ""
        self._char_at: list[int] = []
        self._newline = "\n"

    def parse(self, text: str, path: Path | None = None) -> SourceDocument:
        """Parse Java source into a source document.

        Args:
            text: Java source code
            path: Optional file path, used in messages only

        Returns:
            SourceDocument with all top-level type declarations

        Raises:
            SourceParseError: if the source has syntax errors
        """
        source_bytes = text.encode("utf-8")
        tree = self._parser.parse(source_bytes)
        root = tree.root_node

        if root.has_error:
            location = self._first_error_location(root)
            raise SourceParseError(
                f"Syntax error in {path or 'source'}"
                + (f" near line {location}" if location else "")
            )

        self._text = text
        self._char_at = self._build_char_index(text)
        self._newline = self._detect_newline(text)

        types = []
        for child in root.children:
            if child.type in self.TYPE_DECLARATIONS:
                types.append(self._build_type(child, in_interface=False))

        logger.debug(f"Parsed {len(types)} top-level types from {path or 'source'}")
        return SourceDocument(text=text, types=types, path=path)

    # ============================================================
    # OFFSETS
    # ============================================================

    @staticmethod
    def _build_char_index(text: str) -> list[int]:
        """Map every UTF-8 byte offset to its character offset"""
        index = []
        for position, char in enumerate(text):
            index.extend([position] * len(char.encode("utf-8")))
        index.append(len(text))
        return index

    @staticmethod
    def _detect_newline(text: str) -> str:
        """Line break of the first line, LF when there is none"""
        position = text.find("\n")
        if position > 0 and text[position - 1] == "\r":
            return "\r\n"
        return "\n"

    def _span(self, node: Any) -> tuple[int, int]:
        return self._char_at[node.start_byte], self._char_at[node.end_byte]

    def _node_text(self, node: Any) -> str:
        start, end = self._span(node)
        return self._text[start:end]

    def _line_indent(self, offset: int) -> str:
        """Whitespace between the start of the line and ``offset``"""
        line_start = self._text.rfind("\n", 0, offset) + 1
        prefix = self._text[line_start:offset]
        return prefix if prefix.strip() == "" else ""

    @staticmethod
    def _first_error_location(root: Any) -> int | None:
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                return node.start_point[0] + 1
            stack.extend(reversed(node.children))
        return None

    # ============================================================
    # DECLARATIONS
    # ============================================================

    def _build_type(self, node: Any, in_interface: bool) -> SourceNode:
        """Build a TYPE node, with a body when the declaration is sortable"""
        start, end = self._span(node)
        has_modifiers, keywords, annotations = self._read_modifiers(node)
        name_node = node.child_by_field_name("name")

        type_node = SourceNode(
            node_id=next_node_id(),
            kind=NodeKind.TYPE,
            text=self._text[start:end],
            start=start,
            end=end,
            name=self._node_text(name_node) if name_node is not None else "",
            visibility=self._visibility(has_modifiers, keywords, in_interface),
            is_static="static" in keywords or in_interface,
            annotations=annotations,
        )

        body_node = node.child_by_field_name("body")
        if body_node is not None and body_node.type in self.SORTABLE_BODIES:
            type_node.body = self._build_body(node, body_node, type_node.name)

        return type_node

    def _build_body(self, type_node: Any, body_node: Any, name: str) -> ClassBody:
        children = body_node.children
        open_brace, close_brace = children[0], children[-1]
        type_start, type_end = self._span(type_node)
        open_end = self._char_at[open_brace.end_byte]
        close_start = self._char_at[close_brace.start_byte]
        in_interface = body_node.type == "interface_body"

        nodes: list[SourceNode] = []
        cursor = open_end
        for child in children[1:-1]:
            child_start, _ = self._span(child)
            if child_start > cursor:
                nodes.append(self._gap_node(cursor, child_start))
            built = self._build_child(child, in_interface)
            nodes.append(built)
            cursor = built.end
        if close_start > cursor:
            nodes.append(self._gap_node(cursor, close_start))

        self._mark_documented(nodes)

        body = ClassBody(
            name=name,
            header=self._text[type_start:open_end],
            footer=self._text[close_start:type_end],
            children=nodes,
            declaration=type_node.type.replace("_declaration", ""),
            start=type_start,
            end=type_end,
            newline=self._newline,
        )
        body.closing_indent = self._closing_indent(nodes, type_start)
        body.member_indent = self._member_indent(nodes, body.closing_indent)
        return body

    def _build_child(self, node: Any, in_interface: bool) -> SourceNode:
        if node.type in self.TYPE_DECLARATIONS:
            return self._build_type(node, in_interface)

        start, end = self._span(node)
        text = self._text[start:end]

        if node.type in self.COMMENTS:
            kind = NodeKind.COMMENT
            # Line comments end before the CR of a CRLF line break
            if text.endswith("\r"):
                end -= 1
                text = text[:-1]
        elif node.type in self.FIELD_DECLARATIONS:
            kind = NodeKind.FIELD
        elif node.type in self.METHOD_DECLARATIONS:
            kind = NodeKind.METHOD
        elif node.type in self.CONSTRUCTOR_DECLARATIONS:
            kind = NodeKind.CONSTRUCTOR
        else:
            kind = NodeKind.OTHER

        result = SourceNode(
            node_id=next_node_id(),
            kind=kind,
            text=text,
            start=start,
            end=end,
        )

        if kind == NodeKind.FIELD:
            self._describe_field(node, result, in_interface)
        elif kind in (NodeKind.METHOD, NodeKind.CONSTRUCTOR):
            self._describe_method(node, result, in_interface)

        return result

    def _describe_field(self, node: Any, result: SourceNode, in_interface: bool):
        has_modifiers, keywords, annotations = self._read_modifiers(node)
        declarator = node.child_by_field_name("declarator")
        name_node = (
            declarator.child_by_field_name("name") if declarator is not None else None
        )
        type_node = node.child_by_field_name("type")

        result.name = self._node_text(name_node) if name_node is not None else ""
        result.visibility = self._visibility(has_modifiers, keywords, in_interface)
        # Interface constants are implicitly static
        result.is_static = "static" in keywords or in_interface
        result.annotations = annotations
        result.declared_type = (
            self._node_text(type_node) if type_node is not None else None
        )

    def _describe_method(self, node: Any, result: SourceNode, in_interface: bool):
        has_modifiers, keywords, annotations = self._read_modifiers(node)
        name_node = node.child_by_field_name("name")

        result.name = self._node_text(name_node) if name_node is not None else ""
        result.visibility = self._visibility(has_modifiers, keywords, in_interface)
        result.is_static = "static" in keywords
        result.annotations = annotations

    def _read_modifiers(self, node: Any) -> tuple[bool, set[str], list[str]]:
        """Return (has modifier list, keyword set, annotation texts)"""
        modifiers = None
        for child in node.children:
            if child.type == "modifiers":
                modifiers = child
                break

        if modifiers is None:
            return False, set(), []

        keywords = set()
        annotations = []
        for child in modifiers.children:
            if child.type in self.ANNOTATIONS:
                annotations.append(self._node_text(child))
            elif child.type not in self.COMMENTS:
                keywords.add(self._node_text(child))
        return True, keywords, annotations

    def _visibility(
        self,
        has_modifiers: bool,
        keywords: set[str],
        in_interface: bool,
    ) -> Visibility | None:
        for keyword, visibility in self.VISIBILITY_KEYWORDS.items():
            if keyword in keywords:
                return visibility
        if in_interface:
            return Visibility.PUBLIC
        if not has_modifiers:
            return None
        return Visibility.PACKAGE_PRIVATE

    # ============================================================
    # LAYOUT
    # ============================================================

    def _gap_node(self, start: int, end: int) -> SourceNode:
        text = self._text[start:end]
        kind = NodeKind.WHITESPACE if text.strip() == "" else NodeKind.OTHER
        return SourceNode(
            node_id=next_node_id(),
            kind=kind,
            text=text,
            start=start,
            end=end,
        )

    @staticmethod
    def _mark_documented(nodes: list[SourceNode]) -> None:
        """Flag members whose previous non-whitespace sibling is a doc comment"""
        previous = None
        for node in nodes:
            if node.is_whitespace:
                continue
            if node.is_sortable and previous is not None and previous.is_doc_comment:
                node.has_doc = True
            previous = node

    def _closing_indent(self, nodes: list[SourceNode], type_start: int) -> str:
        if nodes and nodes[-1].is_whitespace and "\n" in nodes[-1].text:
            return nodes[-1].text.rsplit("\n", 1)[1]
        return self._line_indent(type_start)

    @staticmethod
    def _member_indent(nodes: list[SourceNode], closing_indent: str) -> str:
        previous = None
        for node in nodes:
            if node.is_sortable and previous is not None and previous.is_whitespace:
                if "\n" in previous.text:
                    return previous.text.rsplit("\n", 1)[1]
            previous = node
        return closing_indent + "    "

"""
Unit tests for the reorganizer
"""

from unittest.mock import patch

import pytest
from element_sorter.core.config import SortingConfig
from element_sorter.core.exceptions import StructuralEditError
from element_sorter.core.reorganizer import (
    NO_CLASS_FOUND,
    NO_ELEMENTS_FOUND,
    SORTING_FAILED,
    Reorganizer,
    SortStatus,
    normalize_whitespace,
)
from element_sorter.core.reporting import CollectingReporter, MessageLevel
from element_sorter.core.selection import NO_ELEMENTS_IN_SELECTION, SelectionRange
from element_sorter.core.source_model import ClassBody

SORTED_ORDER = """package com.acme.orders;

import java.util.List;

/**
 * An order.
 */
public class Order {
    public Order() {
        this.status = "NEW";
    }

    public static final int MAX_LINES = 50;

    private List<String> lines;
    private String status;

    // Primary key
    @Id
    private Long id;

    public String getStatus() {
        return status;
    }

    /**
     * Recalculate the totals.
     */
    public void recalculate() {
        total = 0;
    }

    protected void archive() {
    }
}
"""

FIVE_FIELDS = """public class Five {
    public int e;
    public int d;
    public int c;
    public int b;
    public int a;
}
"""


def sort_source(parser, source, policy=None, selection=None):
    reporter = CollectingReporter()
    document = parser.parse(source)
    outcome = Reorganizer(policy, reporter).reorganize(document, selection)
    return outcome, reporter


def selection_for(source: str, first: str, last: str) -> SelectionRange:
    start = source.index(first)
    end = source.index(last) + len(last)
    return SelectionRange(start, end)


class TestScenarios:
    """Reference scenarios for whole-class and selection sorting"""

    def test_static_then_visibility_then_name(self, parser, unsorted_fields_source):
        """Scenario A"""
        outcome, reporter = sort_source(parser, unsorted_fields_source)

        assert outcome.text == (
            "public class Account {\n"
            "    public static int C;\n"
            "\n"
            "    public String a;\n"
            "    private int b;\n"
            "}\n"
        )
        assert outcome.status == SortStatus.SORTED
        assert reporter.texts() == ["Sorted 3 elements: 3 fields, 0 methods"]

    def test_method_names_case_insensitive(self, parser):
        """Scenario B"""
        source = (
            "public class Greeter {\n"
            "    public void Zeta() {\n"
            "    }\n"
            "\n"
            "    public void alpha() {\n"
            "    }\n"
            "}\n"
        )

        outcome, _ = sort_source(parser, source)

        assert outcome.text == (
            "public class Greeter {\n"
            "    public void alpha() {\n"
            "    }\n"
            "\n"
            "    public void Zeta() {\n"
            "    }\n"
            "}\n"
        )
        assert outcome.message == "Sorted 2 elements: 0 fields, 2 methods"

    def test_plain_fields_before_annotated(self, parser):
        """Scenario C"""
        source = (
            "public class Note {\n"
            "    @Deprecated\n"
            "    public String note;\n"
            "    public int count;\n"
            "}\n"
        )

        outcome, _ = sort_source(parser, source)

        assert outcome.text == (
            "public class Note {\n"
            "    public int count;\n"
            "\n"
            "    @Deprecated\n"
            "    public String note;\n"
            "}\n"
        )

    def test_selection_reorders_only_selected(self, parser):
        """Scenario D"""
        selection = selection_for(FIVE_FIELDS, "public int d;", "public int c;")

        outcome, reporter = sort_source(parser, FIVE_FIELDS, selection=selection)

        assert outcome.text == FIVE_FIELDS.replace(
            "public int d;\n    public int c;", "public int c;\n    public int d;"
        )
        assert outcome.selected
        assert reporter.texts() == ["Sorted 2 selected elements"]

    def test_empty_class_is_untouched(self, parser):
        """Scenario E"""
        source = "public class Empty {\n\n}\n"

        outcome, reporter = sort_source(parser, source)

        assert outcome.status == SortStatus.NO_ELEMENTS
        assert outcome.text == source
        assert reporter.texts(MessageLevel.INFO) == [NO_ELEMENTS_FOUND]


class TestWholeClass:
    """Whole-class grouping, spacing and attachments"""

    def test_sample_class(self, parser, sample_java_code):
        outcome, _ = sort_source(parser, sample_java_code)

        assert outcome.text == SORTED_ORDER
        assert (outcome.fields, outcome.methods) == (4, 3)
        assert outcome.message == "Sorted 7 elements: 4 fields, 3 methods"

    def test_idempotent(self, parser, sample_java_code):
        first, _ = sort_source(parser, sample_java_code)
        second, _ = sort_source(parser, first.text)

        assert second.text == first.text

    def test_already_sorted_source_is_unchanged(self, parser):
        outcome, _ = sort_source(parser, SORTED_ORDER)

        assert outcome.status == SortStatus.SORTED
        assert outcome.text == SORTED_ORDER

    def test_comments_stay_attached(self, parser, sample_java_code):
        outcome, _ = sort_source(parser, sample_java_code)

        assert "// Primary key\n    @Id\n    private Long id;" in outcome.text
        assert (
            "/**\n     * Recalculate the totals.\n     */\n    public void recalculate()"
            in outcome.text
        )
        assert outcome.text.count("// Primary key") == 1

    def test_text_outside_class_untouched(self, parser, sample_java_code):
        outcome, _ = sort_source(parser, sample_java_code)
        prefix = sample_java_code[: sample_java_code.index("public class Order {")]

        assert outcome.text.startswith(prefix)

    def test_blank_line_after_documented_field(self, parser):
        source = (
            "class A {\n"
            "    private int b;\n"
            "    /** The a. */\n"
            "    private int a;\n"
            "}\n"
        )

        outcome, _ = sort_source(parser, source)

        assert outcome.text == (
            "class A {\n"
            "    /** The a. */\n"
            "    private int a;\n"
            "\n"
            "    private int b;\n"
            "}\n"
        )

    def test_no_blank_line_after_doc_when_disabled(self, parser):
        source = "class A {\n    private int b;\n    /** The a. */\n    private int a;\n}\n"
        policy = SortingConfig(blank_line_after_doc_or_annotation=False)

        outcome, _ = sort_source(parser, source, policy)

        assert outcome.text == (
            "class A {\n    /** The a. */\n    private int a;\n    private int b;\n}\n"
        )

    def test_no_blank_line_between_methods_when_disabled(self, parser):
        source = "class A {\n    void b() {}\n    void a() {}\n}\n"
        policy = SortingConfig(blank_line_between_methods=False)

        outcome, _ = sort_source(parser, source, policy)

        assert outcome.text == "class A {\n    void a() {}\n    void b() {}\n}\n"

    def test_constructors_and_initializers_stay(self, parser):
        source = (
            "class A {\n"
            "    int b;\n"
            "\n"
            "    static {\n"
            "        init();\n"
            "    }\n"
            "\n"
            "    A() {}\n"
            "    int a;\n"
            "}\n"
        )

        outcome, _ = sort_source(parser, source)

        assert outcome.text == (
            "class A {\n"
            "    static {\n"
            "        init();\n"
            "    }\n"
            "\n"
            "    A() {}\n"
            "\n"
            "    int a;\n"
            "    int b;\n"
            "}\n"
        )

    def test_excess_blank_lines_collapsed(self, parser):
        source = "class A {\n    int b;\n\n\n\n    /** Doc. */\n\n\n    int a;   \n\n\n}\n"

        outcome, _ = sort_source(parser, source)

        assert "\n\n\n" not in outcome.text
        assert outcome.text.endswith("    int b;\n}\n")
        assert "/** Doc. */\n\n    int a;" in outcome.text

    def test_single_line_class(self, parser):
        outcome, _ = sort_source(parser, "class A { int b; int a; }")

        assert outcome.text == "class A {\n    int a;\n    int b;\n}"

    def test_end_of_line_comment_on_last_member(self, parser):
        source = "class T {\n    int b; // about b\n    int a; // about a\n}\n"

        first, _ = sort_source(parser, source)
        second, _ = sort_source(parser, first.text)

        assert first.text == (
            "class T {\n"
            "    // about a\n"
            "\n"
            "    // about b\n"
            "    int a;\n"
            "    int b;\n"
            "}\n"
        )
        assert second.text == first.text

    def test_blank_line_before_unmoved_constructor_kept(self, parser):
        source = "class A {\n\n    A() {}\n\n    int b;\n    int a;\n}\n"

        outcome, _ = sort_source(parser, source)

        assert outcome.text == "class A {\n\n    A() {}\n\n    int a;\n    int b;\n}\n"

    def test_crlf_line_endings_kept(self, parser):
        source = "class T {\r\n    int b;\r\n    int a;\r\n\r\n    void m() {\r\n    }\r\n}\r\n"

        outcome, _ = sort_source(parser, source)

        assert outcome.text == (
            "class T {\r\n    int a;\r\n    int b;\r\n\r\n    void m() {\r\n    }\r\n}\r\n"
        )
        assert outcome.text.count("\n") == outcome.text.count("\r\n")

    def test_crlf_sample_class(self, parser, sample_java_code):
        source = sample_java_code.replace("\n", "\r\n")

        first, _ = sort_source(parser, source)
        second, _ = sort_source(parser, first.text)

        assert first.text == SORTED_ORDER.replace("\n", "\r\n")
        assert second.text == first.text

    def test_nested_types_sorted_and_last(self, parser, nested_java_code):
        outcome, _ = sort_source(parser, nested_java_code)

        assert outcome.text == (
            "public class Outer {\n"
            "    public int a;\n"
            "    private int z;\n"
            "\n"
            "    static class Inner {\n"
            "        public int x;\n"
            "        private int y;\n"
            "    }\n"
            "}\n"
        )
        assert outcome.message == "Sorted 3 elements: 2 fields, 0 methods, 1 nested types"

    def test_nested_types_keep_source_order(self, parser):
        source = "class A {\n    class Zed {}\n\n    class Abc {}\n    int x;\n}\n"

        outcome, _ = sort_source(parser, source)

        assert outcome.text == (
            "class A {\n    int x;\n\n    class Zed {}\n\n    class Abc {}\n}\n"
        )

    def test_nesting_depth_limit(self, parser, nested_java_code):
        outcome, _ = sort_source(parser, nested_java_code, SortingConfig(max_nesting_depth=0))

        assert "        private int y;\n        public int x;" in outcome.text

    def test_list_demotion_policy(self, parser, sample_java_code):
        outcome, _ = sort_source(
            parser, sample_java_code, SortingConfig(demote_list_fields=True)
        )

        assert "    private String status;\n    private List<String> lines;" in outcome.text

    def test_annotation_only_policy(self, parser):
        source = (
            "class A {\n"
            "    @Inject\n"
            "    static Service service;\n"
            "    int count;\n"
            "    static int total;\n"
            "}\n"
        )

        outcome, _ = sort_source(
            parser, source, SortingConfig(static_precedes_annotated=False)
        )

        assert outcome.text == (
            "class A {\n"
            "    static int total;\n"
            "    int count;\n"
            "\n"
            "    @Inject\n"
            "    static Service service;\n"
            "}\n"
        )

    def test_interface(self, parser):
        source = 'public interface Shape {\n    double area();\n    String NAME = "shape";\n}\n'

        outcome, _ = sort_source(parser, source)

        assert outcome.text == (
            'public interface Shape {\n    String NAME = "shape";\n\n    double area();\n}\n'
        )


class TestSelectedSubset:
    """Selection mode keeps the rest of the class in place"""

    def test_partially_selected_member_is_untouched(self, parser):
        start = FIVE_FIELDS.index("public int d;") + 4
        end = FIVE_FIELDS.index("public int b;") + len("public int b;")

        outcome, reporter = sort_source(
            parser, FIVE_FIELDS, selection=SelectionRange(start, end)
        )

        assert outcome.text == FIVE_FIELDS.replace(
            "public int c;\n    public int b;", "public int b;\n    public int c;"
        )
        assert reporter.texts() == ["Sorted 2 selected elements"]

    def test_selection_moves_comments(self, parser):
        source = (
            "class A {\n"
            "    int z;\n"
            "    // about y\n"
            "    int y;\n"
            "    int x;\n"
            "}\n"
        )
        selection = selection_for(source, "int y;", "int x;")

        outcome, _ = sort_source(parser, source, selection=selection)

        assert outcome.text == (
            "class A {\n"
            "    int z;\n"
            "    int x;\n"
            "    // about y\n"
            "    int y;\n"
            "}\n"
        )

    def test_selection_does_not_group(self, parser):
        source = "class A {\n    void run() {}\n    @Id int id;\n}\n"
        selection = selection_for(source, "void run()", "@Id int id;")

        outcome, _ = sort_source(parser, source, selection=selection)

        assert outcome.text == "class A {\n    @Id int id;\n    void run() {}\n}\n"

    def test_selection_without_members(self, parser):
        start = FIVE_FIELDS.index("public int c;")
        selection = SelectionRange(start + 2, start + 6)

        outcome, reporter = sort_source(parser, FIVE_FIELDS, selection=selection)

        assert outcome.status == SortStatus.INVALID_SELECTION
        assert outcome.text == FIVE_FIELDS
        assert reporter.texts() == [NO_ELEMENTS_IN_SELECTION]

    def test_collapsed_selection_sorts_whole_class(self, parser):
        outcome, _ = sort_source(parser, FIVE_FIELDS, selection=SelectionRange(30, 30))

        assert not outcome.selected
        assert outcome.text.index("public int a;") < outcome.text.index("public int e;")


class TestPreconditionsAndFailures:
    """Informational no-ops and rollback"""

    def test_no_class(self, parser):
        source = "enum Color { RED }\n"

        outcome, reporter = sort_source(parser, source)

        assert outcome.status == SortStatus.NO_CLASS
        assert outcome.text == source
        assert reporter.texts() == [NO_CLASS_FOUND]

    def test_later_class_is_not_targeted(self, parser):
        source = "enum Color { RED }\nclass Palette {\n    int b;\n    int a;\n}\n"

        outcome, reporter = sort_source(parser, source)

        assert outcome.status == SortStatus.NO_CLASS
        assert outcome.text == source
        assert reporter.texts() == [NO_CLASS_FOUND]

    def test_structural_failure_rolls_back(self, parser, sample_java_code):
        reporter = CollectingReporter()
        document = parser.parse(sample_java_code)

        with patch.object(
            ClassBody, "commit", side_effect=StructuralEditError("rejected")
        ):
            outcome = Reorganizer(reporter=reporter).reorganize(document)

        assert outcome.status == SortStatus.FAILED
        assert outcome.text == sample_java_code
        assert document.render() == sample_java_code
        assert not document.first_class().body.has_pending_edits
        assert reporter.texts(MessageLevel.ERROR) == [SORTING_FAILED]

    def test_failed_separator_is_skipped(self, parser, unsorted_fields_source):
        document = parser.parse(unsorted_fields_source)
        body = document.first_class().body
        original_insert = ClassBody.insert_before

        def reject_whitespace(self, anchor, nodes):
            if all(node.is_whitespace for node in nodes):
                raise StructuralEditError("no whitespace allowed")
            return original_insert(self, anchor, nodes)

        with patch.object(ClassBody, "insert_before", reject_whitespace):
            outcome = Reorganizer().reorganize(document)

        assert outcome.status == SortStatus.SORTED
        assert [m.name for m in body.members()] == ["C", "a", "b"]
        assert outcome.text == "public class Account {public static int C;public String a;private int b;}\n"

    def test_unexpected_errors_propagate(self, parser, sample_java_code):
        document = parser.parse(sample_java_code)

        with patch.object(ClassBody, "commit", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                Reorganizer().reorganize(document)

        assert document.render() == sample_java_code


class TestNormalizeWhitespace:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("\n\n\n\n    ", "\n\n    "),
            ("   \n    ", "\n    "),
            ("\n  \n\t", "\n\n\t"),
            ("  ", "  "),
        ],
    )
    def test_normalize(self, text, expected):
        assert normalize_whitespace(text) == expected

    def test_normalize_crlf(self):
        assert normalize_whitespace("\r\n\r\n\r\n    ", "\r\n") == "\r\n\r\n    "
        assert normalize_whitespace("\n    ", "\r\n") == "\r\n    "

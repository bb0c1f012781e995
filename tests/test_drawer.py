"""Tests for property drawer structure and the context detector."""

import pytest

from propfill._drawer import (
    BLANK,
    HEADLINE,
    NODE_PROPERTY,
    PARAGRAPH,
    PROPERTY_DRAWER,
    Element,
    GenericContext,
    PropertyContext,
    delete_property,
    detect_context,
    drawer_bounds,
    element_at,
    get_logical_value,
    is_at_property,
    is_in_property,
    property_span,
)
from propfill._property import PropertyName, PropertyNotFound

DOC = [
    "* Heading",
    ":PROPERTIES:",
    ":DESC: Alpha beta",
    ":DESC+: gamma delta",
    ":OTHER: x",
    ":END:",
    "Some paragraph text",
    ":DESC: outside any drawer",
    "",
]


class TestDrawerBounds:
    @pytest.mark.parametrize("row", [1, 2, 3, 4, 5])
    def test_rows_inside_drawer(self, row):
        assert drawer_bounds(DOC, row) == (1, 5)

    @pytest.mark.parametrize("row", [0, 6, 7, 8])
    def test_rows_outside_drawer(self, row):
        assert drawer_bounds(DOC, row) is None

    def test_out_of_range_row(self):
        assert drawer_bounds(DOC, 99) is None

    def test_unterminated_drawer(self):
        assert drawer_bounds([":PROPERTIES:", ":A: b"], 1) is None

    def test_drawer_does_not_cross_headline(self):
        lines = [":PROPERTIES:", "* Next", ":A: b", ":END:"]
        assert drawer_bounds(lines, 2) is None


class TestElementAt:
    def test_headline(self):
        assert element_at(DOC, 0) == Element(HEADLINE)

    def test_drawer_delimiters(self):
        assert element_at(DOC, 1).type == PROPERTY_DRAWER
        assert element_at(DOC, 5).type == PROPERTY_DRAWER

    def test_node_property_keys(self):
        assert element_at(DOC, 2) == Element(NODE_PROPERTY, "DESC")
        assert element_at(DOC, 3) == Element(NODE_PROPERTY, "DESC+")

    def test_record_outside_drawer_is_paragraph(self):
        assert element_at(DOC, 7).type == PARAGRAPH

    def test_blank(self):
        assert element_at(DOC, 8).type == BLANK


class TestDetectContext:
    def test_property_context(self):
        ctx = detect_context(DOC, 3)
        assert isinstance(ctx, PropertyContext)
        assert ctx.name == PropertyName("DESC", True)
        assert ctx.drawer == (1, 5)

    @pytest.mark.parametrize("row", [0, 1, 5, 6, 7, 8])
    def test_generic_context(self, row):
        assert detect_context(DOC, row) == GenericContext(row)

    @pytest.mark.parametrize("row", range(len(DOC)))
    def test_predicates_agree(self, row):
        assert is_in_property(DOC, row) == is_at_property(DOC, row)


class TestLogicalProperty:
    def test_span_from_primary(self):
        assert property_span(DOC, "DESC", 2) == (2, 3)

    def test_span_from_continuation(self):
        assert property_span(DOC, "DESC", 3) == (2, 3)

    def test_single_record_span(self):
        assert property_span(DOC, "OTHER", 4) == (4, 4)

    def test_logical_value_joins_with_space(self):
        assert get_logical_value(DOC, "DESC", 3) == "Alpha beta gamma delta"

    def test_missing_property(self):
        with pytest.raises(PropertyNotFound):
            get_logical_value(DOC, "MISSING", 2)

    def test_orphan_continuation(self):
        lines = [":PROPERTIES:", ":DESC+: tail", ":END:"]
        with pytest.raises(PropertyNotFound):
            property_span(lines, "DESC", 1)

    def test_outside_drawer(self):
        with pytest.raises(PropertyNotFound):
            property_span(DOC, "DESC", 7)

    def test_delete_property(self):
        lines = DOC[:]
        first = delete_property(lines, "DESC", 3)
        assert first == 2
        assert lines[1:4] == [":PROPERTIES:", ":OTHER: x", ":END:"]
        assert DOC[2] == ":DESC: Alpha beta"

"""Tests for the SGR interpreter."""

import pytest

from sgrflow.errors import DiagnosticKind, MalformedParameter
from sgrflow.graphics import Attribute, GraphicsState, Indexed, Truecolor
from sgrflow.sgr import UNSUPPORTED_RULE, apply_sgr, match_rule, parse_parameters


def apply(parameters, state=None, truecolor=True):
    diagnostics = []
    state = GraphicsState() if state is None else state
    apply_sgr(
        state,
        parameters,
        truecolor=truecolor,
        report=lambda kind, message: diagnostics.append(kind),
    )
    return state, diagnostics


class TestParseParameters:
    @pytest.mark.parametrize(
        "parameters, expected",
        [
            ("", [0]),
            ("0", [0]),
            ("1;31", [1, 31]),
            (";5", [0, 5]),
            ("38;5;", [38, 5, 0]),
            ("007", [7]),
            ("38;2;10;20;300", [38, 2, 10, 20, 300]),
        ],
    )
    def test_parse(self, parameters, expected):
        assert parse_parameters(parameters) == expected

    @pytest.mark.parametrize("parameters", ["1:2", "?25", "3x", "1 ;2"])
    def test_malformed(self, parameters):
        with pytest.raises(MalformedParameter):
            parse_parameters(parameters)


class TestAttributes:
    def test_reset(self):
        state, _ = apply([1, 3, 4, 7, 9, 51, 53, 31, 42])
        assert not state.is_default
        apply([0], state)
        assert state == GraphicsState()
        assert state.is_default

    def test_set_and_clear_independent(self):
        state, _ = apply([3, 4, 23])
        assert state.attributes == Attribute.UNDERLINE

    @pytest.mark.parametrize(
        "set_code, clear_code, attribute",
        [
            (1, 22, Attribute.BRIGHT),
            (3, 23, Attribute.ITALIC),
            (4, 24, Attribute.UNDERLINE),
            (7, 27, Attribute.NEGATIVE),
            (9, 29, Attribute.STRIKE),
            (51, 54, Attribute.FRAME),
            (53, 55, Attribute.OVERLINE),
        ],
    )
    def test_set_clear(self, set_code, clear_code, attribute):
        state, _ = apply([set_code])
        assert state.attributes == attribute
        apply([clear_code], state)
        assert state.attributes == Attribute.NONE

    def test_faint_clears_bright(self):
        state, diagnostics = apply([1, 2])
        assert Attribute.BRIGHT not in state.attributes
        assert diagnostics == []

    def test_attributes_leave_colors(self):
        state, _ = apply([31, 44, 1, 22])
        assert state.foreground == Indexed(1)
        assert state.background == Indexed(4)


class TestColors:
    def test_basic(self):
        state, _ = apply([37, 40])
        assert state.foreground == Indexed(7)
        assert state.background == Indexed(0)

    def test_default_colors(self):
        state, _ = apply([31, 41, 39])
        assert state.foreground is None
        assert state.background == Indexed(1)
        apply([49], state)
        assert state.background is None

    def test_aixterm(self):
        state, _ = apply([91, 107])
        assert state.foreground == Indexed(9)
        assert state.background == Indexed(15)
        assert Attribute.BRIGHT not in state.attributes

    def test_bright_attribute(self):
        state, _ = apply([1, 31])
        assert state.foreground == Indexed(1)
        assert Attribute.BRIGHT in state.attributes

    def test_256(self):
        state, diagnostics = apply([38, 5, 196, 48, 5, 17])
        assert state.foreground == Indexed(196)
        assert state.background == Indexed(17)
        assert diagnostics == []

    def test_256_out_of_range(self):
        state, diagnostics = apply([31, 38, 5, 300, 4])
        assert state.foreground == Indexed(1)
        assert Attribute.UNDERLINE in state.attributes
        assert diagnostics == [DiagnosticKind.OUT_OF_RANGE_COLOR_COMPONENT]

    def test_truecolor(self):
        state, _ = apply([38, 2, 10, 20, 30, 48, 2, 255, 255, 0])
        assert state.foreground == Truecolor(10, 20, 30)
        assert state.background == Truecolor(255, 255, 0)

    def test_truecolor_out_of_range(self):
        state, diagnostics = apply([38, 2, 10, 20, 300])
        assert state.foreground is None
        assert diagnostics == [DiagnosticKind.OUT_OF_RANGE_COLOR_COMPONENT]

    def test_truecolor_unavailable(self):
        state, diagnostics = apply([38, 2, 1, 2, 3, 4], truecolor=False)
        assert state.foreground is None
        # 1, 2, 3 were consumed as channels; only 4 applies
        assert state.attributes == Attribute.UNDERLINE
        assert diagnostics == [DiagnosticKind.TRUECOLOR_UNAVAILABLE]

    def test_truecolor_unavailable_keeps_indexed(self):
        state, _ = apply([38, 5, 100], truecolor=False)
        assert state.foreground == Indexed(100)

    def test_incomplete_extended_color(self):
        state, diagnostics = apply([38, 5])
        assert state.is_default
        # 38 alone is unknown, then 5 (blink) is unsupported
        assert diagnostics == [
            DiagnosticKind.UNSUPPORTED_SGR_CODE,
            DiagnosticKind.UNSUPPORTED_SGR_CODE,
        ]


class TestRules:
    def test_unsupported(self):
        state, diagnostics = apply([5, 8, 1000, 3])
        assert state.attributes == Attribute.ITALIC
        assert diagnostics == [DiagnosticKind.UNSUPPORTED_SGR_CODE] * 3

    def test_match_rule_arity(self):
        assert match_rule([38, 2, 1, 2, 3]).arity == 5
        assert match_rule([38, 5, 1]).arity == 3
        assert match_rule([38, 2, 1]) is UNSUPPORTED_RULE

    def test_no_report(self):
        state = apply_sgr(GraphicsState(), [38, 5, 999, 1])
        assert state.attributes == Attribute.BRIGHT

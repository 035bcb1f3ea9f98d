"""Tests for version keys and constraint matching."""

from __future__ import annotations

import pytest

from envctl.domain.errors import ParseError
from envctl.domain.versions import Constraint, parse_constraint, version_key, version_satisfies


class TestVersionKey:
    def test_numeric_components(self) -> None:
        assert version_key("10.0.1") == ((0, 10), (0, 0), (0, 1))

    def test_numeric_sorts_before_alpha(self) -> None:
        assert version_key("2.9") < version_key("2.10")
        assert version_key("2.9.1") < version_key("2.9.rc1")

    def test_separators(self) -> None:
        assert version_key("1-2_3+4") == version_key("1.2.3.4")


class TestParseConstraint:
    @pytest.mark.parametrize(
        ("text", "operator", "version"),
        [
            ("10", "prefix", "10"),
            (">=3.11", ">=", "3.11"),
            ("== 2.9.14", "==", "2.9.14"),
            ("~15.0", "~", "15.0"),
            ("<4", "<", "4"),
        ],
    )
    def test_operators(self, text: str, operator: str, version: str) -> None:
        assert parse_constraint(text) == Constraint(operator=operator, version=version)

    def test_str_is_normalized(self) -> None:
        assert str(parse_constraint(">= 3.11")) == ">=3.11"
        assert str(parse_constraint("10")) == "10"

    @pytest.mark.parametrize("text", ["", "   ", ">=", "1..2", "~beta", "1.2 3"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ParseError):
            parse_constraint(text)


class TestSatisfies:
    def test_prefix_is_component_wise(self) -> None:
        assert version_satisfies("10", "10.0.1")
        assert not version_satisfies("10", "100.1")

    def test_equality_pads_zeros(self) -> None:
        assert version_satisfies("==10", "10.0")
        assert not version_satisfies("!=10", "10.0.0")

    def test_ordering(self) -> None:
        assert version_satisfies(">=3.11", "3.12.1")
        assert not version_satisfies(">=3.11", "3.9")
        assert version_satisfies("<4", "3.99")
        assert version_satisfies(">2.9", "2.10")

    def test_compatible_release(self) -> None:
        assert version_satisfies("~15.0", "15.0.7")
        assert not version_satisfies("~15.0", "16.0")
        assert not version_satisfies("~15.2", "15.1")

    @pytest.mark.parametrize(
        ("constraint", "version", "expected"),
        [
            (">10", "10.0", False),
            (">=10", "10.0", True),
            ("<=10", "10.0", True),
            ("<10", "10.0", False),
            ("<=10.0.0", "10", True),
            (">10", "10.0.1", True),
            ("~15", "15.0", True),
            ("~15.0", "15", True),
        ],
    )
    def test_ordering_ignores_trailing_zeros(
        self, constraint: str, version: str, expected: bool
    ) -> None:
        assert version_satisfies(constraint, version) is expected

from __future__ import annotations

import pytest

from depscout.exceptions import InvalidConstraintError
from depscout.models.requirement import (
    IndividualRequirement,
    MultiPartRequirement,
    RangeRequirement,
    Requirement,
)
from depscout.models.version import NuGetVersion


def v(text: str) -> NuGetVersion:
    return NuGetVersion.parse(text)


@pytest.mark.unit
class TestRequirementParse:
    """Tests for Requirement.parse."""

    def test_comparator(self) -> None:
        """Test a single comparator yields an IndividualRequirement."""
        req = Requirement.parse(">= 1.2.0")

        assert isinstance(req, IndividualRequirement)
        assert req.operator == ">="
        assert req.version == v("1.2.0")

    def test_bare_version_means_equality(self) -> None:
        """Test a bare version is an equality rule."""
        req = Requirement.parse("2.0.1")

        assert isinstance(req, IndividualRequirement)
        assert req.operator == "="

    def test_double_equals_normalized(self) -> None:
        """Test '==' is accepted as '='."""
        req = Requirement.parse("==1.0")

        assert isinstance(req, IndividualRequirement)
        assert req.operator == "="

    def test_comma_joins_parts(self) -> None:
        """Test comma-separated comparators must all hold."""
        req = Requirement.parse(">= 1.0, < 2.0")

        assert isinstance(req, MultiPartRequirement)
        assert len(req.parts) == 2
        assert str(req) == ">= 1.0.0, < 2.0.0"

    def test_range_notation(self) -> None:
        """Test bracketed text is parsed as a NuGet range."""
        req = Requirement.parse("[1.0, 2.0)")

        assert isinstance(req, RangeRequirement)
        assert str(req) == "[1.0, 2.0)"

    @pytest.mark.parametrize("text", ["", "  ", ">=", ">= 1.0,", "=> 1.0", ">= abc", "[1.0"])
    def test_invalid(self, text: str) -> None:
        """Test malformed rules raise InvalidConstraintError."""
        with pytest.raises(InvalidConstraintError):
            Requirement.parse(text)


@pytest.mark.unit
class TestRequirementSatisfaction:
    """Tests for is_satisfied_by."""

    @pytest.mark.parametrize(
        "rule, version, expected",
        [
            ("= 1.0.0", "1.0", True),
            ("= 1.0.0", "1.0.1", False),
            ("!= 1.0.0", "1.0.1", True),
            ("!= 1.0.0", "1.0.0", False),
            ("> 1.0.0", "1.0.1", True),
            ("> 1.0.0", "1.0.0", False),
            (">= 1.0.0", "1.0.0", True),
            ("< 2.0.0", "2.0.0-beta", True),
            ("< 2.0.0", "2.0.0", False),
            ("<= 2.0.0", "2.0.0", True),
        ],
    )
    def test_comparators(self, rule: str, version: str, expected: bool) -> None:
        """Test each comparison operator."""
        assert Requirement.parse(rule).is_satisfied_by(v(version)) is expected

    def test_pessimistic_three_parts(self) -> None:
        """Test ~> 1.2.3 allows patch updates only."""
        req = Requirement.parse("~> 1.2.3")

        assert req.is_satisfied_by(v("1.2.3"))
        assert req.is_satisfied_by(v("1.2.9"))
        assert not req.is_satisfied_by(v("1.3.0"))
        assert not req.is_satisfied_by(v("1.2.2"))

    def test_pessimistic_two_parts(self) -> None:
        """Test ~> 1.2 allows minor updates."""
        req = Requirement.parse("~> 1.2")

        assert req.is_satisfied_by(v("1.9.0"))
        assert not req.is_satisfied_by(v("2.0.0"))

    def test_multi_part(self) -> None:
        """Test every part of a multi-part rule must hold."""
        req = Requirement.parse(">= 1.0, < 2.0, != 1.5.0")

        assert req.is_satisfied_by(v("1.4.0"))
        assert not req.is_satisfied_by(v("1.5.0"))
        assert not req.is_satisfied_by(v("2.0.0"))

    def test_range_requirement(self) -> None:
        """Test range rules use interval containment."""
        req = Requirement.parse("[1.1.0]")

        assert req.is_satisfied_by(v("1.1.0"))
        assert not req.is_satisfied_by(v("1.1.1"))

"""Tests for structured filter specifications."""

import pytest

from identity_service.shared.domain.query import And, Filter, Operator, Or, all_of, any_of


class TestFilter:

    def test_operator_accepts_plain_strings(self):
        f = Filter("age", "ge", 18)
        assert f.operator is Operator.GE

    def test_unknown_operator_rejected(self):
        with pytest.raises(ValueError):
            Filter("age", "between", (1, 2))

    def test_in_requires_a_collection(self):
        with pytest.raises(ValueError):
            Filter("username", Operator.IN, "alice")

    def test_in_helper_freezes_values(self):
        f = Filter.in_("username", ["a", "b"])
        assert f.value == ("a", "b")

    def test_filters_are_hashable_values(self):
        assert Filter.eq("email", "a@x.com") == Filter.eq("email", "a@x.com")
        assert len({Filter.eq("email", "a@x.com"), Filter.eq("email", "a@x.com")}) == 1


class TestComposition:

    def test_or_operator(self):
        spec = Filter.eq("email", "a@x.com") | Filter.eq("username", "a")
        assert isinstance(spec, Or)
        assert spec.clauses == (Filter.eq("email", "a@x.com"), Filter.eq("username", "a"))

    def test_and_operator(self):
        spec = Filter.eq("email", "a@x.com") & Filter.ne("username", "a")
        assert isinstance(spec, And)
        assert len(spec.clauses) == 2

    def test_nested_composition(self):
        spec = (Filter.eq("a", 1) | Filter.eq("b", 2)) & Filter.eq("c", 3)
        assert isinstance(spec, And)
        assert isinstance(spec.clauses[0], Or)

    def test_helpers(self):
        assert all_of(Filter.eq("a", 1)) == And((Filter.eq("a", 1),))
        assert any_of(Filter.eq("a", 1), Filter.eq("b", 2)).clauses[1] == Filter.eq("b", 2)
